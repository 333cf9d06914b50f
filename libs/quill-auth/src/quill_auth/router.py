"""FastAPI router factory for the email/password login endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from quill_auth.errors import InvalidCredential
from quill_auth.strategies.identity import IdentityStrategy
from quill_auth.user_store import UserStore

logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    """Payload for ``POST /auth/login``."""

    email: str
    password: str


def create_auth_router(
    identity_strategy: IdentityStrategy,
    users: UserStore,
    *,
    prefix: str = "/auth",
) -> APIRouter:
    """Create a router exposing ``POST {prefix}/login``.

    On success the response carries a bearer token valid for both the
    HTTP ``Authorization`` header and the WebSocket ``accessToken``
    connection parameter.  Bad credentials answer ``401``.
    """
    router = APIRouter(prefix=prefix, tags=["auth"])

    @router.post("/login")
    async def login(payload: LoginRequest) -> JSONResponse:
        try:
            user = await identity_strategy.login(users, payload.email, payload.password)
        except InvalidCredential as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc

        token = identity_strategy.issue_token(user["id"])
        return JSONResponse(
            content={
                "access_token": token,
                "token_type": "bearer",
                "user_id": user["id"],
            }
        )

    return router
