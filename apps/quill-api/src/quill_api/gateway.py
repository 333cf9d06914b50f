"""GraphQL over HTTP and WebSocket on one route.

HTTP requests get a fresh :class:`~quill_gql.context.RequestContext` per
call.  A WebSocket connection gets one context for its whole life; its
identity is settled in :meth:`QuillGraphQLRouter.on_ws_connect` from the
``connection_init`` payload, and a bad credential refuses the connection.
"""

from __future__ import annotations

import logging
import weakref
from typing import Any

from quill_auth.errors import InvalidCredential
from quill_gql.context import QuillServices, RequestContext
from starlette.websockets import WebSocket, WebSocketState
from strawberry import Schema
from strawberry.exceptions import ConnectionRejectionError
from strawberry.fastapi import GraphQLRouter
from strawberry.subscriptions import GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL

logger = logging.getLogger(__name__)

GOING_AWAY = 1001


class QuillGraphQLRouter(GraphQLRouter):
    """``GraphQLRouter`` that builds Quill contexts and tracks open sockets."""

    def __init__(self, schema: Schema, services: QuillServices, **kwargs: Any) -> None:
        self.services = services
        self._sockets: weakref.WeakSet[WebSocket] = weakref.WeakSet()

        async def get_context() -> RequestContext:
            return RequestContext(services)

        super().__init__(
            schema,
            context_getter=get_context,
            subscription_protocols=(GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL),
            **kwargs,
        )

    async def on_ws_connect(self, context: RequestContext) -> Any:
        try:
            identity = context.identity(require_auth=False)
        except InvalidCredential as exc:
            logger.warning(
                "WebSocket connection rejected: %s",
                exc,
                extra={"event": "ws_connection_rejected"},
            )
            raise ConnectionRejectionError({"message": str(exc), "code": exc.code}) from exc

        if isinstance(context.request, WebSocket):
            self._sockets.add(context.request)
        logger.info(
            "WebSocket connection accepted (authenticated=%s)",
            identity is not None,
            extra={"event": "ws_connected", "user_id": identity},
        )
        return await super().on_ws_connect(context)

    @property
    def open_sockets(self) -> int:
        return sum(1 for ws in list(self._sockets) if ws.application_state == WebSocketState.CONNECTED)

    async def close_streams(self, code: int = GOING_AWAY) -> int:
        """Close every WebSocket still connected; returns how many were closed."""
        closed = 0
        for ws in list(self._sockets):
            if ws.application_state != WebSocketState.CONNECTED:
                continue
            try:
                await ws.close(code=code)
            except RuntimeError:
                # The peer finished its close handshake first.
                logger.debug("WebSocket already closing", extra={"event": "ws_close_skipped"})
                continue
            closed += 1
        if closed:
            logger.info("Closed %d WebSocket connection(s)", closed, extra={"event": "ws_streams_closed"})
        return closed
