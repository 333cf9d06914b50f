"""Tests for the login router factory."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from quill_auth.config import AuthConfig, BearerConfig
from quill_auth.router import create_auth_router
from quill_auth.strategies.bearer import BearerStrategy
from quill_auth.strategies.identity import IdentityStrategy

SECRET = "test-secret-key-that-is-at-least-32-bytes-long"


@pytest.fixture
def identity() -> IdentityStrategy:
    return IdentityStrategy(AuthConfig(bearer=BearerConfig(secret_key=SECRET)))


@pytest.fixture
def app(identity: IdentityStrategy, memory_users) -> FastAPI:
    memory_users.records.append(
        {"id": "u1", "email": "a@x.com", "password_hash": identity.hash_password("0123456789")}
    )
    app = FastAPI()
    app.include_router(create_auth_router(identity, memory_users))
    return app


async def test_login_returns_bearer_token(app: FastAPI, identity: IdentityStrategy):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/auth/login", json={"email": "a@x.com", "password": "0123456789"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user_id"] == "u1"
    assert BearerStrategy(identity.config.bearer).resolve(body["access_token"]) == "u1"


async def test_login_wrong_password_is_401(app: FastAPI):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/auth/login", json={"email": "a@x.com", "password": "bad-password"})
    assert resp.status_code == 401


async def test_login_missing_fields_is_422(app: FastAPI):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/auth/login", json={"email": "a@x.com"})
    assert resp.status_code == 422
