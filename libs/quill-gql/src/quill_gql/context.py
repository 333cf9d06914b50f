"""Request and connection context handed to every resolver."""

from __future__ import annotations

from typing import Any

from quill_auth.config import AuthConfig
from quill_auth.errors import AuthenticationRequired
from quill_auth.strategies.bearer import BearerStrategy
from quill_auth.strategies.identity import IdentityStrategy
from quill_persistence.store import BlogStore
from starlette.websockets import WebSocket
from strawberry.fastapi import BaseContext

from quill_gql.event_bus import TopicBus
from quill_gql.executor import MutationExecutor
from quill_gql.router import SubscriptionRouter

_UNRESOLVED = object()

_CONNECTION_TOKEN_KEYS = ("accessToken", "Authorization", "authorization")


class QuillServices:
    """Process-lifetime collaborators shared by all contexts."""

    def __init__(self, store: BlogStore, bus: TopicBus, auth: AuthConfig | None = None) -> None:
        self.store = store
        self.bus = bus
        self.auth_config = auth or AuthConfig()
        self.bearer = BearerStrategy(self.auth_config.bearer)
        self.identity_strategy = IdentityStrategy(self.auth_config)
        self.executor = MutationExecutor(store, bus, self.identity_strategy)
        self.router = SubscriptionRouter(bus, store)


class RequestContext(BaseContext):
    """One per HTTP request, or one per WebSocket connection.

    The identity is resolved on first use and then reused, so a
    WebSocket connection authenticates once for all its operations.
    *token* overrides whatever the transport carries.
    """

    def __init__(self, services: QuillServices, *, token: str | None = None) -> None:
        super().__init__()
        self.services = services
        self._token = token
        self._identity: Any = _UNRESOLVED

    @property
    def store(self) -> BlogStore:
        return self.services.store

    @property
    def bus(self) -> TopicBus:
        return self.services.bus

    @property
    def executor(self) -> MutationExecutor:
        return self.services.executor

    @property
    def router(self) -> SubscriptionRouter:
        return self.services.router

    @property
    def credential(self) -> str | None:
        """The raw credential as carried by the transport."""
        if self._token is not None:
            return self._token
        if isinstance(self.request, WebSocket) or self.connection_params is not None:
            params = self.connection_params if isinstance(self.connection_params, dict) else {}
            for key in _CONNECTION_TOKEN_KEYS:
                value = params.get(key)
                if isinstance(value, str):
                    return value
            return None
        if self.request is not None:
            return self.request.headers.get("authorization")
        return None

    def identity(self, require_auth: bool = True) -> str | None:
        """Return the caller's subject id.

        A missing credential yields ``None`` unless *require_auth* is
        set; a bad credential always raises.
        """
        if self._identity is _UNRESOLVED:
            self._identity = self.services.bearer.resolve(self.credential, require_auth=False)
        if self._identity is None and require_auth:
            raise AuthenticationRequired()
        return self._identity
