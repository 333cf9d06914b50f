"""Shared fixtures: a BlogStore on an in-memory SQLite database."""

import pytest
from quill_persistence.store import BlogStore
from sqlalchemy.ext.asyncio import create_async_engine


@pytest.fixture
async def store():
    blog_store = BlogStore(create_async_engine("sqlite+aiosqlite:///:memory:"))
    await blog_store.ensure_schema()
    yield blog_store
    await blog_store.close()
