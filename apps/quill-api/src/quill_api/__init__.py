"""Quill API: FastAPI composition shell.

Wires quill-auth, quill-persistence and quill-gql into one servable app
that speaks GraphQL over HTTP and WebSocket on a single port.  No
business logic lives here.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from quill_auth import create_auth_router
from quill_gql import QuillServices, TopicBus, build_schema
from quill_persistence import BlogStore, redact_url

from quill_api.config import ServerConfig
from quill_api.gateway import QuillGraphQLRouter

logger = logging.getLogger(__name__)


def create_app(config: ServerConfig | None = None, *, store: BlogStore | None = None) -> FastAPI:
    """Construct the FastAPI application with all middleware and routes.

    *store* replaces the one built from ``config.database_url``.
    """
    config = config or ServerConfig.from_file()
    store = store or BlogStore.from_url(config.database_url)
    bus = TopicBus(buffer_size=config.bus_buffer_size)
    services = QuillServices(store, bus, config.auth)
    schema = build_schema(config.graphql)
    graphql_router = QuillGraphQLRouter(schema, services)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await store.ensure_schema()
        logger.info(
            "Quill API ready (database=%s)",
            redact_url(config.database_url),
            extra={"event": "startup_complete"},
        )

        yield

        # Streams end first, then their sockets, then the database goes away.
        await bus.aclose()
        await graphql_router.close_streams()
        await store.close()
        logger.info("Quill API stopped", extra={"event": "shutdown_complete"})

    app = FastAPI(
        title="Quill API",
        description="Blog content over GraphQL with live subscriptions",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.services = services
    app.state.schema = schema
    app.state.graphql_router = graphql_router

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_auth_router(services.identity_strategy, store.users))
    app.include_router(graphql_router, prefix="/graphql")

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        """Lightweight health-check endpoint."""
        return {
            "status": "ok",
            "websockets": request.app.state.graphql_router.open_sockets,
        }

    return app


def get_app() -> FastAPI:
    """Return the module-level app singleton (created on first call).

    Deferred so that import alone does not trigger config validation.
    ``uvicorn quill_api:app`` still works because uvicorn resolves the
    attribute at runtime, which invokes ``__getattr__``.
    """
    global _app  # noqa: PLW0603
    if _app is None:
        _app = create_app()
    return _app


_app: FastAPI | None = None


def __getattr__(name: str) -> Any:
    """Module-level ``__getattr__`` so ``uvicorn quill_api:app`` works."""
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
