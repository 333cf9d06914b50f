"""Subscription router: topic selection and per-event authorization.

Each subscription is a :class:`SubscriptionPipeline` binding a bus
registration (the sink) to a predicate.  Envelopes for which the
predicate is false are dropped for that subscriber only.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Union

from quill_auth.errors import AuthenticationRequired
from quill_persistence.store import BlogStore

from quill_gql.errors import NotFound
from quill_gql.event_bus import Envelope, Subscription, TopicBus
from quill_gql.events import POST_TOPIC, author_topic, comment_topic

logger = logging.getLogger(__name__)

Predicate = Callable[[Envelope], Union[bool, Awaitable[bool]]]


def _always(envelope: Envelope) -> bool:
    return True


@dataclass
class SubscriptionPipeline:
    """A filtered view over one bus subscription."""

    topic: str
    predicate: Predicate
    sink: Subscription

    async def _admits(self, envelope: Envelope) -> bool:
        try:
            verdict = self.predicate(envelope)
            if inspect.isawaitable(verdict):
                verdict = await verdict
        except Exception:
            logger.exception(
                "Subscription filter failed on %s; dropping envelope",
                self.topic,
                extra={"event": "subscription_filter_failed"},
            )
            return False
        return bool(verdict)

    def __aiter__(self) -> SubscriptionPipeline:
        return self

    async def __anext__(self) -> Envelope:
        async for envelope in self.sink:
            if await self._admits(envelope):
                return envelope
        raise StopAsyncIteration

    def close(self) -> None:
        self.sink.close()

    async def aclose(self) -> None:
        self.sink.close()

    async def __aenter__(self) -> SubscriptionPipeline:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


class SubscriptionRouter:
    """Builds pipelines for the three live streams.

    Checks that can fail (missing post, missing identity) run before the
    bus registration is made, so a rejected subscribe leaves nothing
    behind.
    """

    def __init__(self, bus: TopicBus, store: BlogStore) -> None:
        self._bus = bus
        self._store = store

    def _pipeline(self, topic: str, predicate: Predicate) -> SubscriptionPipeline:
        return SubscriptionPipeline(topic=topic, predicate=predicate, sink=self._bus.subscribe(topic))

    async def comments(self, post_id: str) -> SubscriptionPipeline:
        """Every comment change on one existing post."""
        if await self._store.posts.find_by_id(post_id) is None:
            raise NotFound("Post")
        return self._pipeline(comment_topic(post_id), _always)

    async def posts(self, identity: str | None) -> SubscriptionPipeline:
        """Global post lifecycle, minus other authors' drafts."""

        def visible(envelope: Envelope) -> bool:
            post = envelope.resource
            return bool(post.get("published")) or (identity is not None and post.get("author_id") == identity)

        return self._pipeline(POST_TOPIC, visible)

    async def my_posts(self, identity: str | None) -> SubscriptionPipeline:
        """The caller's own posts as they become visible."""
        if identity is None:
            raise AuthenticationRequired()

        async def still_owned(envelope: Envelope) -> bool:
            post = await self._store.posts.find_by_id(envelope.resource["id"])
            return post is not None and post["author_id"] == identity

        return self._pipeline(author_topic(identity), still_owned)
