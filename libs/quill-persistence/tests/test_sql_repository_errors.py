"""SQL driver failures surface as persistence exceptions."""

import pytest
from quill_persistence.exceptions import DuplicateEntityError, PersistenceError, QueryError
from quill_persistence.store import BlogStore


async def test_duplicate_email_raises_duplicate_entity_error(store: BlogStore):
    await store.users.create({"name": "Alice", "email": "same@example.com", "password_hash": "x"})
    with pytest.raises(DuplicateEntityError) as exc_info:
        await store.users.create({"name": "Bob", "email": "same@example.com", "password_hash": "x"})
    assert exc_info.value.table == "users"
    assert exc_info.value.operation == "create"
    assert exc_info.value.detail == DuplicateEntityError.default_detail
    assert exc_info.value.__cause__ is not None


async def test_update_unique_violation_raises_duplicate_entity_error(store: BlogStore):
    await store.users.create({"name": "Alice", "email": "a@example.com", "password_hash": "x"})
    bob = await store.users.create({"name": "Bob", "email": "b@example.com", "password_hash": "x"})
    with pytest.raises(DuplicateEntityError) as exc_info:
        await store.users.update(bob["id"], {"email": "a@example.com"})
    assert exc_info.value.operation == "update"


async def test_unknown_filter_column_raises_query_error(store: BlogStore):
    with pytest.raises(QueryError) as exc_info:
        await store.users.find_one({"shoe_size": 42})
    assert "shoe_size" in exc_info.value.detail


async def test_delete_many_without_filters_refused(store: BlogStore):
    with pytest.raises(QueryError):
        await store.comments.delete_many({})


async def test_missing_table_is_a_persistence_error():
    from sqlalchemy.ext.asyncio import create_async_engine

    bare = BlogStore(create_async_engine("sqlite+aiosqlite:///:memory:"))
    try:
        with pytest.raises(PersistenceError) as exc_info:
            await bare.users.find_one({"email": "a@example.com"})
        assert exc_info.value.operation == "find_one"
    finally:
        await bare.close()


def test_persistence_error_message():
    err = QueryError(table="posts", operation="find_many", detail="boom")
    assert str(err) == "[posts] find_many failed: boom"
    assert isinstance(err, PersistenceError)


def test_default_detail_per_error_class():
    err = DuplicateEntityError(table="users", operation="create")
    assert err.detail.startswith("A record with the same key")
    assert str(err).startswith("[users] create failed: ")
