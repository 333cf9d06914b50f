"""Subscription resolvers for the live comment and post streams.

Each resolver is a coroutine that performs its checks and only then
returns the stream, so a rejected subscribe fails the operation itself
instead of producing a stream that errors later.
"""

from collections.abc import AsyncGenerator, Callable
from typing import TypeVar

import strawberry
from strawberry.types import Info

from quill_gql.event_bus import Envelope
from quill_gql.router import SubscriptionPipeline
from quill_gql.types import CommentSubscriptionPayload, PostSubscriptionPayload

PayloadT = TypeVar("PayloadT")


async def _stream(
    pipeline: SubscriptionPipeline,
    to_payload: Callable[[Envelope], PayloadT],
) -> AsyncGenerator[PayloadT, None]:
    async with pipeline:
        async for envelope in pipeline:
            yield to_payload(envelope)


async def comment(info: Info, post_id: strawberry.ID) -> AsyncGenerator[CommentSubscriptionPayload, None]:
    pipeline = await info.context.router.comments(post_id)
    return _stream(pipeline, CommentSubscriptionPayload.from_envelope)


async def post(info: Info) -> AsyncGenerator[PostSubscriptionPayload, None]:
    pipeline = await info.context.router.posts(info.context.identity(require_auth=False))
    return _stream(pipeline, PostSubscriptionPayload.from_envelope)


async def my_post(info: Info) -> AsyncGenerator[PostSubscriptionPayload, None]:
    pipeline = await info.context.router.my_posts(info.context.identity(require_auth=False))
    return _stream(pipeline, PostSubscriptionPayload.from_envelope)
