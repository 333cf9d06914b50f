"""BlogStore: the repositories for users, posts and comments on one engine."""

from __future__ import annotations

import logging

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncEngine

from quill_persistence import tables
from quill_persistence.adapters.sql import SQLRepository
from quill_persistence.connections import create_engine
from quill_persistence.protocols import Repository

logger = logging.getLogger(__name__)


class BlogStore:
    """Holds one repository per table, all sharing a single engine.

    Users sort by name; posts and comments sort most recently updated
    first, with the id as tie-breaker.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self.users: Repository = SQLRepository(
            engine,
            tables.users,
            order_by=(tables.users.c.name.asc(), tables.users.c.id.asc()),
            search_fields=("name",),
            exact_search_fields=("email",),
        )
        self.posts: Repository = SQLRepository(
            engine,
            tables.posts,
            order_by=(tables.posts.c.updated_at.desc(), tables.posts.c.id.asc()),
            search_fields=("title", "body"),
        )
        self.comments: Repository = SQLRepository(
            engine,
            tables.comments,
            order_by=(tables.comments.c.updated_at.desc(), tables.comments.c.id.asc()),
            search_fields=("text",),
        )

    @classmethod
    def from_url(cls, url: str, *, echo: bool = False) -> BlogStore:
        return cls(create_engine(url, echo=echo))

    @staticmethod
    def posts_visible_to(viewer: str | None) -> sa.ColumnElement[bool]:
        """Clause over ``posts``: published, or authored by *viewer*."""
        published = tables.posts.c.published.is_(True)
        if viewer is None:
            return published
        return sa.or_(published, tables.posts.c.author_id == viewer)

    @classmethod
    def comments_visible_to(cls, viewer: str | None) -> sa.ColumnElement[bool]:
        """Clause over ``comments``: the parent post is visible to *viewer*."""
        visible_posts = sa.select(tables.posts.c.id).where(cls.posts_visible_to(viewer))
        return tables.comments.c.post_id.in_(visible_posts)

    @staticmethod
    def comments_on_posts_by(author_id: str) -> sa.ColumnElement[bool]:
        """Clause over ``comments``: the parent post belongs to *author_id*."""
        authored = sa.select(tables.posts.c.id).where(tables.posts.c.author_id == author_id)
        return tables.comments.c.post_id.in_(authored)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def ensure_schema(self) -> None:
        """Create all tables that do not exist yet."""
        async with self._engine.begin() as conn:
            await conn.run_sync(tables.metadata.create_all)

    async def close(self) -> None:
        """Dispose the engine's connection pool."""
        await self._engine.dispose()
        logger.info("Database engine disposed", extra={"event": "engine_disposed"})
