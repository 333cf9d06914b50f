"""Shared fixtures for quill-api tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from quill_api import create_app
from quill_api.config import ServerConfig
from quill_auth.config import AuthConfig, BearerConfig
from starlette.testclient import TestClient

SECRET = "api-test-secret-key-that-is-at-least-32-bytes"


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    monkeypatch.setenv("QUILL_ENV", "test")


@pytest.fixture()
def config(tmp_path: Path) -> ServerConfig:
    """Config pointing at a throwaway SQLite file."""
    return ServerConfig(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'quill.db'}",
        auth=AuthConfig(bearer=BearerConfig(secret_key=SECRET)),
    )


@pytest.fixture()
def app(config: ServerConfig):
    return create_app(config)


@pytest.fixture()
def client(app):
    """TestClient with the lifespan running for the whole test."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def gql(client: TestClient):
    """POST a GraphQL operation and return the decoded body."""

    def _post(query: str, variables: dict | None = None, token: str | None = None) -> dict:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        response = client.post("/graphql", json={"query": query, "variables": variables or {}}, headers=headers)
        assert response.status_code == 200, response.text
        return response.json()

    return _post


@pytest.fixture()
def signup(gql):
    """Create a user over GraphQL and return ``(user_id, token)``."""

    def _signup(name: str, password: str = "correct-horse") -> tuple[str, str]:
        body = gql(
            "mutation ($data: CreateUserInput!) { createUser(data: $data) { token user { id } } }",
            {"data": {"name": name, "email": f"{name.lower()}@example.com", "password": password}},
        )
        payload = body["data"]["createUser"]
        return payload["user"]["id"], payload["token"]

    return _signup
