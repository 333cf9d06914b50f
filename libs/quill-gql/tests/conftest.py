"""Shared fixtures: an in-memory store, a bus, and a schema wired together."""

from __future__ import annotations

import pytest
from quill_auth.config import AuthConfig, BearerConfig
from quill_gql.context import QuillServices, RequestContext
from quill_gql.event_bus import TopicBus
from quill_gql.schema import build_schema
from quill_persistence.store import BlogStore
from sqlalchemy.ext.asyncio import create_async_engine


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    monkeypatch.setenv("QUILL_ENV", "test")


@pytest.fixture
async def store():
    blog_store = BlogStore(create_async_engine("sqlite+aiosqlite:///:memory:"))
    await blog_store.ensure_schema()
    yield blog_store
    await blog_store.close()


@pytest.fixture
def bus() -> TopicBus:
    return TopicBus(buffer_size=8)


@pytest.fixture
def services(store: BlogStore, bus: TopicBus) -> QuillServices:
    bearer = BearerConfig(secret_key="gql-test-secret-key-that-is-at-least-32-bytes")
    return QuillServices(store, bus, AuthConfig(bearer=bearer))


@pytest.fixture
def executor(services: QuillServices):
    return services.executor


@pytest.fixture
def schema():
    return build_schema()


@pytest.fixture
def make_context(services: QuillServices):
    """Build a RequestContext, optionally authenticated with a session token."""

    def _make(token: str | None = None) -> RequestContext:
        return RequestContext(services, token=f"Bearer {token}" if token else None)

    return _make


@pytest.fixture
def register(executor):
    """Create a user through the executor and return ``{"user", "token"}``."""

    async def _register(name: str, email: str | None = None, password: str = "correct-horse") -> dict:
        return await executor.create_user(name=name, email=email or f"{name.lower()}@example.com", password=password)

    return _register
