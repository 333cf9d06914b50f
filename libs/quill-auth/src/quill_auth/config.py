"""Auth configuration: token signing and password policy."""

from __future__ import annotations

import base64
import binascii
import logging
import os
import secrets
from typing import Literal

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

_HMAC_ALGORITHMS = {"HS256", "HS384", "HS512"}
_DEV_ENVIRONMENTS = ("dev", "development", "test")

# Seven days, the lifetime of tokens handed out by signup and login.
DEFAULT_TOKEN_EXPIRY_MINUTES = 7 * 24 * 60


def is_dev_environment() -> bool:
    """Return ``True`` when ``QUILL_ENV`` names a development or test mode."""
    return os.environ.get("QUILL_ENV", "").lower() in _DEV_ENVIRONMENTS


class BearerConfig(BaseModel):
    """JWT signing and verification settings shared by HTTP and WebSocket auth."""

    algorithm: str = "HS256"
    secret_key: str = ""
    secret_encoding: Literal["raw", "base64"] = "raw"
    token_expiry_minutes: int = Field(default=DEFAULT_TOKEN_EXPIRY_MINUTES, ge=1)

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def _check_secret(self) -> BearerConfig:
        if self.algorithm not in _HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported token algorithm '{self.algorithm}'. Use one of {sorted(_HMAC_ALGORITHMS)}.")
        if not self.secret_key:
            if is_dev_environment():
                logger.warning(
                    "BearerConfig.secret_key is empty. Auto-generating a random key for %s mode; "
                    "issued tokens will not survive a restart.",
                    os.environ.get("QUILL_ENV"),
                )
                self.secret_key = secrets.token_urlsafe(32)
                self.secret_encoding = "raw"
                return self
            raise ValueError(
                "BearerConfig.secret_key must not be empty. Set QUILL_JWT_SECRET "
                "or QUILL_ENV=dev for local development."
            )
        if self.secret_encoding == "base64":
            try:
                base64.b64decode(self.secret_key, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ValueError("BearerConfig.secret_key is not valid base64.") from exc
        return self

    @property
    def signing_key(self) -> str | bytes:
        """Return the key material handed to PyJWT."""
        if self.secret_encoding == "base64":
            return base64.b64decode(self.secret_key)
        return self.secret_key


class PasswordPolicy(BaseModel):
    """Rules applied to passwords on signup and password change."""

    min_length: int = Field(default=8, ge=1)


class AuthConfig(BaseModel):
    """Top-level auth configuration."""

    bearer: BearerConfig = Field(default_factory=BearerConfig)
    password_policy: PasswordPolicy = Field(default_factory=PasswordPolicy)
