"""Topic names and the post visibility event rules."""

from __future__ import annotations

from typing import Any

from quill_gql.event_bus import ChangeType, Envelope

POST_TOPIC = "post"


def comment_topic(post_id: str) -> str:
    return f"post.{post_id}.comments"


def author_topic(author_id: str) -> str:
    return f"author.{author_id}.posts"


def derive_post_event(previous: bool, new: bool) -> ChangeType | None:
    """Map a post's published flag before and after a write to an event kind.

    ``None`` means the transition is not observable (a draft stayed a draft).
    """
    if previous and new:
        return ChangeType.UPDATED
    if previous:
        return ChangeType.DELETED
    if new:
        return ChangeType.CREATED
    return None


def post_topics(kind: ChangeType, post: dict[str, Any]) -> list[str]:
    """Topics a post envelope of *kind* goes to.

    Only a newly visible post reaches the author's own stream.
    """
    if kind is ChangeType.CREATED:
        return [POST_TOPIC, author_topic(post["author_id"])]
    return [POST_TOPIC]


def post_envelope(kind: ChangeType, post: dict[str, Any]) -> Envelope:
    return Envelope(kind=kind, resource_type="Post", resource=dict(post))


def comment_envelope(kind: ChangeType, comment: dict[str, Any]) -> Envelope:
    return Envelope(kind=kind, resource_type="Comment", resource=dict(comment))
