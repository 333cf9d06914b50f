"""Server configuration loaded from ``.quill/config.json`` plus environment."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from quill_auth.config import AuthConfig
from quill_gql.security import GraphQLSecurityConfig

DEFAULT_CONFIG_PATH = ".quill/config.json"


class ServerConfig(BaseModel):
    """Everything the gateway needs to start.

    Environment variables override the file: ``QUILL_DATABASE_URL``,
    ``PORT``, ``QUILL_HOST``, ``QUILL_JWT_SECRET`` and
    ``QUILL_CORS_ORIGINS`` (comma separated).
    """

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    database_url: str = "sqlite+aiosqlite:///quill.db"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    graceful_shutdown_seconds: int = Field(
        default=10,
        ge=0,
        description="How long in-flight requests may run once shutdown begins.",
    )
    bus_buffer_size: int = Field(default=64, ge=1, description="Per-subscriber event buffer.")
    auth: AuthConfig = Field(default_factory=AuthConfig)
    graphql: GraphQLSecurityConfig = Field(default_factory=GraphQLSecurityConfig)

    model_config = {"extra": "forbid"}

    @classmethod
    def from_file(
        cls,
        path: str | Path = DEFAULT_CONFIG_PATH,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> ServerConfig:
        """Load config from a JSON file (if present) and apply env overrides."""
        env = os.environ if environ is None else environ
        p = Path(path)
        data: dict[str, Any] = json.loads(p.read_text()) if p.exists() else {}

        if url := env.get("QUILL_DATABASE_URL"):
            data["database_url"] = url
        if port := env.get("PORT"):
            data["port"] = int(port)
        if host := env.get("QUILL_HOST"):
            data["host"] = host
        if origins := env.get("QUILL_CORS_ORIGINS"):
            data["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]
        if secret := env.get("QUILL_JWT_SECRET"):
            auth = data.setdefault("auth", {})
            auth.setdefault("bearer", {})["secret_key"] = secret

        return cls.model_validate(data)
