"""Tests for MutationExecutor authorization, writes and published events."""

from __future__ import annotations

import pytest
from quill_auth.errors import InvalidCredential, NotAuthorized
from quill_gql.errors import NotFound, ValidationFailed
from quill_gql.event_bus import ChangeType, Subscription, TopicBus


def _drain(sub: Subscription) -> list:
    """Collect envelopes already buffered without waiting."""
    received = []
    while sub.pending:
        received.append(sub._queue.get_nowait())
    return received


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class TestUsers:
    async def test_create_user_returns_token(self, register, services) -> None:
        session = await register("Alice")
        assert session["user"]["name"] == "Alice"
        assert "password_hash" in session["user"]
        assert session["user"]["password_hash"] != "correct-horse"
        assert services.bearer.resolve(session["token"]) == session["user"]["id"]

    async def test_duplicate_email_rejected(self, register) -> None:
        await register("Alice", "same@example.com")
        with pytest.raises(ValidationFailed, match="Email already exists"):
            await register("Bob", "same@example.com")

    async def test_short_password_rejected(self, register) -> None:
        with pytest.raises(ValidationFailed, match="at least 8"):
            await register("Alice", password="short")

    async def test_malformed_email_rejected(self, register) -> None:
        with pytest.raises(ValidationFailed, match="email"):
            await register("Alice", "not-an-email")

    async def test_login_wrong_password(self, register, executor) -> None:
        await register("Alice")
        with pytest.raises(InvalidCredential):
            await executor.login(email="alice@example.com", password="wrong-password")

    async def test_login_unknown_email(self, executor) -> None:
        with pytest.raises(InvalidCredential):
            await executor.login(email="ghost@example.com", password="whatever-123")

    async def test_login_success(self, register, executor) -> None:
        alice = await register("Alice")
        session = await executor.login(email="alice@example.com", password="correct-horse")
        assert session["user"]["id"] == alice["user"]["id"]

    async def test_update_user_keeps_own_email(self, register, executor) -> None:
        alice = await register("Alice")
        updated = await executor.update_user(alice["user"]["id"], name="Alicia", email="alice@example.com")
        assert updated["name"] == "Alicia"

    async def test_update_user_rejects_taken_email(self, register, executor) -> None:
        alice = await register("Alice")
        await register("Bob")
        with pytest.raises(ValidationFailed):
            await executor.update_user(alice["user"]["id"], email="bob@example.com")

    async def test_update_user_changes_password(self, register, executor) -> None:
        alice = await register("Alice")
        await executor.update_user(alice["user"]["id"], password="new-password-1")
        session = await executor.login(email="alice@example.com", password="new-password-1")
        assert session["user"]["id"] == alice["user"]["id"]

    async def test_delete_user_removes_content_and_announces_posts(
        self, register, executor, bus: TopicBus, store
    ) -> None:
        alice = await register("Alice")
        bob = await register("Bob")
        alice_id = alice["user"]["id"]
        published = await executor.create_post(alice_id, title="live", body="b", published=True)
        await executor.create_post(alice_id, title="draft", body="b")
        await executor.create_comment(bob["user"]["id"], post_id=published["id"], text="hi")
        feed = bus.subscribe("post")

        await executor.delete_user(alice_id)

        events = _drain(feed)
        assert [(e.kind, e.resource["id"]) for e in events] == [(ChangeType.DELETED, published["id"])]
        assert await store.users.find_by_id(alice_id) is None
        assert await store.posts.find_many({"author_id": alice_id}) == []
        assert await store.comments.find_many({"post_id": published["id"]}) == []

    async def test_delete_user_announces_every_page_of_posts(
        self, register, executor, bus: TopicBus, store, monkeypatch
    ) -> None:
        monkeypatch.setattr("quill_gql.executor.MAX_QUERY_LIMIT", 2)
        alice = await register("Alice")
        bob = await register("Bob")
        alice_id = alice["user"]["id"]
        posts = [await executor.create_post(alice_id, title=f"p{n}", body="b", published=True) for n in range(5)]
        draft = await executor.create_post(alice_id, title="draft", body="b")
        for post in [*posts, draft]:
            await executor.create_comment(alice_id if post is draft else bob["user"]["id"], post_id=post["id"], text="c")
        feed = bus.subscribe("post")

        await executor.delete_user(alice_id)

        events = _drain(feed)
        assert all(e.kind is ChangeType.DELETED for e in events)
        assert sorted(e.resource["id"] for e in events) == sorted(p["id"] for p in posts)
        assert await store.comments.find_many() == []
        assert await store.users.find_by_id(bob["user"]["id"]) is not None

    async def test_deleted_account_token_cannot_write(self, register, executor) -> None:
        alice = await register("Alice")
        await executor.delete_user(alice["user"]["id"])
        with pytest.raises(InvalidCredential):
            await executor.create_post(alice["user"]["id"], title="t", body="b")


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


class TestPostEvents:
    async def test_draft_create_publishes_nothing(self, register, executor, bus: TopicBus) -> None:
        alice = await register("Alice")
        feed = bus.subscribe("post")
        await executor.create_post(alice["user"]["id"], title="t", body="b", published=False)
        assert feed.pending == 0

    async def test_published_create_reaches_global_and_author_topics(
        self, register, executor, bus: TopicBus
    ) -> None:
        alice = await register("Alice")
        alice_id = alice["user"]["id"]
        feed = bus.subscribe("post")
        mine = bus.subscribe(f"author.{alice_id}.posts")
        post = await executor.create_post(alice_id, title="t", body="b", published=True)

        (global_event,) = _drain(feed)
        (author_event,) = _drain(mine)
        assert global_event.kind is ChangeType.CREATED
        assert global_event.resource["id"] == post["id"]
        assert author_event == global_event

    async def test_publishing_a_draft_emits_one_created(self, register, executor, bus: TopicBus) -> None:
        alice = await register("Alice")
        alice_id = alice["user"]["id"]
        post = await executor.create_post(alice_id, title="t", body="b")
        feed = bus.subscribe("post")

        await executor.update_post(alice_id, post["id"], published=True)

        events = _drain(feed)
        assert [e.kind for e in events] == [ChangeType.CREATED]

    async def test_unpublishing_emits_one_deleted_after_removing_comments(
        self, register, executor, bus: TopicBus, store
    ) -> None:
        alice = await register("Alice")
        alice_id = alice["user"]["id"]
        post = await executor.create_post(alice_id, title="t", body="b", published=True)
        await executor.create_comment(alice_id, post_id=post["id"], text="first")
        feed = bus.subscribe("post")

        await executor.update_post(alice_id, post["id"], published=False)

        events = _drain(feed)
        assert [e.kind for e in events] == [ChangeType.DELETED]
        assert events[0].resource["published"] is True
        assert await store.comments.find_many({"post_id": post["id"]}) == []

    async def test_publishing_also_clears_draft_comments(self, register, executor, store) -> None:
        alice = await register("Alice")
        alice_id = alice["user"]["id"]
        post = await executor.create_post(alice_id, title="t", body="b")
        await executor.create_comment(alice_id, post_id=post["id"], text="note to self")

        await executor.update_post(alice_id, post["id"], published=True)

        assert await store.comments.find_many({"post_id": post["id"]}) == []

    async def test_edit_of_published_post_emits_updated(self, register, executor, bus: TopicBus) -> None:
        alice = await register("Alice")
        alice_id = alice["user"]["id"]
        post = await executor.create_post(alice_id, title="t", body="b", published=True)
        feed = bus.subscribe("post")
        mine = bus.subscribe(f"author.{alice_id}.posts")

        updated = await executor.update_post(alice_id, post["id"], title="new title", published=True)

        (event,) = _drain(feed)
        assert event.kind is ChangeType.UPDATED
        assert event.resource["title"] == "new title"
        assert updated["title"] == "new title"
        assert mine.pending == 0

    async def test_edit_of_draft_emits_nothing(self, register, executor, bus: TopicBus) -> None:
        alice = await register("Alice")
        alice_id = alice["user"]["id"]
        post = await executor.create_post(alice_id, title="t", body="b")
        feed = bus.subscribe("post")
        await executor.update_post(alice_id, post["id"], body="changed")
        assert feed.pending == 0

    async def test_delete_published_post_emits_deleted(self, register, executor, bus: TopicBus, store) -> None:
        alice = await register("Alice")
        alice_id = alice["user"]["id"]
        post = await executor.create_post(alice_id, title="t", body="b", published=True)
        await executor.create_comment(alice_id, post_id=post["id"], text="c")
        feed = bus.subscribe("post")

        await executor.delete_post(alice_id, post["id"])

        assert [e.kind for e in _drain(feed)] == [ChangeType.DELETED]
        assert await store.posts.find_by_id(post["id"]) is None
        assert await store.comments.find_many({"post_id": post["id"]}) == []

    async def test_delete_draft_emits_nothing(self, register, executor, bus: TopicBus) -> None:
        alice = await register("Alice")
        alice_id = alice["user"]["id"]
        post = await executor.create_post(alice_id, title="t", body="b")
        feed = bus.subscribe("post")
        await executor.delete_post(alice_id, post["id"])
        assert feed.pending == 0


class TestPostAuthorization:
    async def test_other_user_cannot_delete(self, register, executor, bus: TopicBus, store) -> None:
        alice = await register("Alice")
        bob = await register("Bob")
        post = await executor.create_post(alice["user"]["id"], title="t", body="b", published=True)
        feed = bus.subscribe("post")

        with pytest.raises(NotAuthorized):
            await executor.delete_post(bob["user"]["id"], post["id"])

        assert feed.pending == 0
        assert await store.posts.find_by_id(post["id"]) is not None

    async def test_other_user_cannot_update(self, register, executor, bus: TopicBus) -> None:
        alice = await register("Alice")
        bob = await register("Bob")
        post = await executor.create_post(alice["user"]["id"], title="t", body="b", published=True)
        feed = bus.subscribe("post")
        with pytest.raises(NotAuthorized):
            await executor.update_post(bob["user"]["id"], post["id"], published=False)
        assert feed.pending == 0

    async def test_missing_post_is_not_found(self, register, executor) -> None:
        alice = await register("Alice")
        with pytest.raises(NotFound):
            await executor.update_post(alice["user"]["id"], "0" * 32, title="x")

    async def test_empty_title_rejected(self, register, executor) -> None:
        alice = await register("Alice")
        with pytest.raises(ValidationFailed, match="title"):
            await executor.create_post(alice["user"]["id"], title="  ", body="b")


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


class TestCommentEvents:
    @pytest.mark.parametrize("published", [True, False])
    async def test_each_comment_write_emits_one_envelope(
        self, register, executor, bus: TopicBus, published: bool
    ) -> None:
        alice = await register("Alice")
        alice_id = alice["user"]["id"]
        post = await executor.create_post(alice_id, title="t", body="b", published=published)
        thread = bus.subscribe(f"post.{post['id']}.comments")

        comment = await executor.create_comment(alice_id, post_id=post["id"], text="one")
        await executor.update_comment(alice_id, comment["id"], text="two")
        await executor.delete_comment(alice_id, comment["id"])

        events = _drain(thread)
        assert [e.kind for e in events] == [ChangeType.CREATED, ChangeType.UPDATED, ChangeType.DELETED]
        assert all(e.resource["id"] == comment["id"] for e in events)
        assert events[1].resource["text"] == "two"

    async def test_cannot_comment_on_hidden_draft(self, register, executor, bus: TopicBus) -> None:
        alice = await register("Alice")
        bob = await register("Bob")
        draft = await executor.create_post(alice["user"]["id"], title="t", body="b")
        with pytest.raises(NotFound):
            await executor.create_comment(bob["user"]["id"], post_id=draft["id"], text="hi")

    async def test_other_user_cannot_edit_comment(self, register, executor, bus: TopicBus) -> None:
        alice = await register("Alice")
        bob = await register("Bob")
        post = await executor.create_post(alice["user"]["id"], title="t", body="b", published=True)
        comment = await executor.create_comment(alice["user"]["id"], post_id=post["id"], text="mine")
        thread = bus.subscribe(f"post.{post['id']}.comments")

        with pytest.raises(NotAuthorized):
            await executor.update_comment(bob["user"]["id"], comment["id"], text="hijack")
        with pytest.raises(NotAuthorized):
            await executor.delete_comment(bob["user"]["id"], comment["id"])
        assert thread.pending == 0

    async def test_missing_comment_is_not_found(self, register, executor) -> None:
        alice = await register("Alice")
        with pytest.raises(NotFound):
            await executor.delete_comment(alice["user"]["id"], "f" * 32)


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


async def test_blog_scenario(register, executor, bus: TopicBus) -> None:
    alice = await register("Alice", "alice@example.com")
    with pytest.raises(ValidationFailed):
        await register("Imposter", "alice@example.com")
    with pytest.raises(InvalidCredential):
        await executor.login(email="alice@example.com", password="not-her-password")

    alice_id = alice["user"]["id"]
    feed = bus.subscribe("post")
    draft = await executor.create_post(alice_id, title="t", body="b", published=False)
    assert feed.pending == 0
    await executor.update_post(alice_id, draft["id"], published=True)
    assert [e.kind for e in _drain(feed)] == [ChangeType.CREATED]

    bob = await register("Bob")
    with pytest.raises(NotAuthorized):
        await executor.delete_post(bob["user"]["id"], draft["id"])
    assert feed.pending == 0
