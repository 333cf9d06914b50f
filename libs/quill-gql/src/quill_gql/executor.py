"""Mutation executor: authorized writes and the events they publish.

Every mutation checks ownership before touching the database, writes
through the :class:`~quill_persistence.store.BlogStore`, and then
publishes exactly one envelope per observable transition on the
:class:`~quill_gql.event_bus.TopicBus`.

Post events follow the published flag as stored before and after the
write (see :func:`~quill_gql.events.derive_post_event`); the flag a
client sends is never trusted on its own.
"""

from __future__ import annotations

import logging
from typing import Any

from quill_auth.errors import InvalidCredential, NotAuthorized
from quill_auth.strategies.identity import IdentityStrategy
from quill_persistence.adapters import MAX_QUERY_LIMIT
from quill_persistence.exceptions import DuplicateEntityError
from quill_persistence.store import BlogStore

from quill_gql.errors import NotFound, ValidationFailed
from quill_gql.event_bus import ChangeType, TopicBus
from quill_gql.events import (
    comment_envelope,
    comment_topic,
    derive_post_event,
    post_envelope,
    post_topics,
)
from quill_gql.validation import check_email, require_text

logger = logging.getLogger(__name__)


class MutationExecutor:
    """Runs every write operation for one request or connection."""

    def __init__(self, store: BlogStore, bus: TopicBus, identity: IdentityStrategy) -> None:
        self._store = store
        self._bus = bus
        self._identity = identity

    # -- helpers ---------------------------------------------------------------

    async def _caller(self, caller: str) -> dict[str, Any]:
        user = await self._store.users.find_by_id(caller)
        if user is None:
            # A valid token whose account has since been deleted.
            raise InvalidCredential("Account no longer exists.")
        return user

    async def _owned(self, repo_name: str, resource: str, record_id: str, caller: str) -> dict[str, Any]:
        repo = getattr(self._store, repo_name)
        record = await repo.find_by_id(record_id)
        if record is None:
            raise NotFound(resource)
        if record["author_id"] != caller:
            logger.warning(
                "Caller %s denied write on %s %s",
                caller,
                resource,
                record_id,
                extra={"event": "write_denied", "user_id": caller},
            )
            raise NotAuthorized()
        return record

    async def _publish_post(self, kind: ChangeType, post: dict[str, Any]) -> None:
        envelope = post_envelope(kind, post)
        for topic in post_topics(kind, post):
            await self._bus.publish(topic, envelope)

    async def _publish_comment(self, kind: ChangeType, comment: dict[str, Any]) -> None:
        await self._bus.publish(comment_topic(comment["post_id"]), comment_envelope(kind, comment))

    async def _check_credentials(
        self, *, email: str | None, password: str | None, exclude_id: str | None = None
    ) -> None:
        problems: list[str] = []
        if email is not None:
            check_email(email)
            existing = await self._store.users.find_one({"email": email})
            if existing is not None and existing["id"] != exclude_id:
                problems.append("Email already exists.")
        if password is not None:
            problems.extend(self._identity.password_problems(password))
        if problems:
            raise ValidationFailed(*problems)

    def _session(self, user: dict[str, Any]) -> dict[str, Any]:
        return {"user": user, "token": self._identity.issue_token(user["id"])}

    # -- users -----------------------------------------------------------------

    async def create_user(self, *, name: str, email: str, password: str) -> dict[str, Any]:
        """Register a user and return ``{"user", "token"}``."""
        require_text("name", name)
        await self._check_credentials(email=email, password=password)
        try:
            user = await self._store.users.create(
                {"name": name, "email": email, "password_hash": self._identity.hash_password(password)}
            )
        except DuplicateEntityError as exc:
            raise ValidationFailed("Email already exists.") from exc
        logger.info("User registered: user_id=%s", user["id"], extra={"event": "user_registered", "user_id": user["id"]})
        return self._session(user)

    async def login(self, *, email: str, password: str) -> dict[str, Any]:
        user = await self._identity.login(self._store.users, email, password)
        return self._session(user)

    async def update_user(
        self,
        caller: str,
        *,
        name: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> dict[str, Any]:
        """Update the caller's own account."""
        await self._caller(caller)
        patch: dict[str, Any] = {}
        if name is not None:
            patch["name"] = require_text("name", name)
        await self._check_credentials(email=email, password=password, exclude_id=caller)
        if email is not None:
            patch["email"] = email
        if password is not None:
            patch["password_hash"] = self._identity.hash_password(password)
        try:
            user = await self._store.users.update(caller, patch)
        except DuplicateEntityError as exc:
            raise ValidationFailed("Email already exists.") from exc
        if user is None:
            raise NotFound("User")
        return user

    async def delete_user(self, caller: str) -> dict[str, Any]:
        """Delete the caller with their posts and comments.

        Each published post disappears from the global stream with a
        DELETED envelope before any row is removed.
        """
        user = await self._caller(caller)
        offset = 0
        while True:
            page = await self._store.posts.find_many(
                {"author_id": caller, "published": True}, MAX_QUERY_LIMIT, offset=offset
            )
            for post in page:
                await self._publish_post(ChangeType.DELETED, post)
            if len(page) < MAX_QUERY_LIMIT:
                break
            offset += len(page)
        await self._store.comments.delete_many({"author_id": caller})
        await self._store.comments.delete_many({}, where=[self._store.comments_on_posts_by(caller)])
        await self._store.posts.delete_many({"author_id": caller})
        await self._store.users.delete(caller)
        logger.info("User deleted: user_id=%s", caller, extra={"event": "user_deleted", "user_id": caller})
        return user

    # -- posts -----------------------------------------------------------------

    async def create_post(self, caller: str, *, title: str, body: str, published: bool = False) -> dict[str, Any]:
        await self._caller(caller)
        post = await self._store.posts.create(
            {
                "title": require_text("title", title),
                "body": body,
                "published": published,
                "author_id": caller,
            }
        )
        kind = derive_post_event(False, post["published"])
        if kind is not None:
            await self._publish_post(kind, post)
        return post

    async def update_post(
        self,
        caller: str,
        post_id: str,
        *,
        title: str | None = None,
        body: str | None = None,
        published: bool | None = None,
    ) -> dict[str, Any]:
        """Apply a partial update to the caller's post.

        A change of the published flag in either direction removes the
        post's comments before the post event is published.
        """
        previous = await self._owned("posts", "Post", post_id, caller)
        patch: dict[str, Any] = {}
        if title is not None:
            patch["title"] = require_text("title", title)
        if body is not None:
            patch["body"] = body
        if published is not None:
            patch["published"] = published

        if published is not None and published != previous["published"]:
            removed = await self._store.comments.delete_many({"post_id": post_id})
            logger.info(
                "Visibility of post %s changed; removed %d comments",
                post_id,
                removed,
                extra={"event": "post_visibility_changed"},
            )

        post = await self._store.posts.update(post_id, patch)
        if post is None:
            raise NotFound("Post")
        kind = derive_post_event(previous["published"], post["published"])
        if kind is ChangeType.DELETED:
            # Subscribers who saw the post are told with its last visible version.
            await self._publish_post(kind, previous)
        elif kind is not None:
            await self._publish_post(kind, post)
        return post

    async def delete_post(self, caller: str, post_id: str) -> dict[str, Any]:
        post = await self._owned("posts", "Post", post_id, caller)
        if post["published"]:
            await self._publish_post(ChangeType.DELETED, post)
        await self._store.comments.delete_many({"post_id": post_id})
        await self._store.posts.delete(post_id)
        return post

    # -- comments --------------------------------------------------------------

    async def create_comment(self, caller: str, *, post_id: str, text: str) -> dict[str, Any]:
        """Comment on a post the caller can see."""
        await self._caller(caller)
        require_text("text", text)
        post = await self._store.posts.find_by_id(post_id)
        if post is None or not (post["published"] or post["author_id"] == caller):
            raise NotFound("Post")
        comment = await self._store.comments.create({"text": text, "author_id": caller, "post_id": post_id})
        await self._publish_comment(ChangeType.CREATED, comment)
        return comment

    async def update_comment(self, caller: str, comment_id: str, *, text: str) -> dict[str, Any]:
        await self._owned("comments", "Comment", comment_id, caller)
        comment = await self._store.comments.update(comment_id, {"text": require_text("text", text)})
        if comment is None:
            raise NotFound("Comment")
        await self._publish_comment(ChangeType.UPDATED, comment)
        return comment

    async def delete_comment(self, caller: str, comment_id: str) -> dict[str, Any]:
        comment = await self._owned("comments", "Comment", comment_id, caller)
        await self._store.comments.delete(comment_id)
        await self._publish_comment(ChangeType.DELETED, comment)
        return comment
