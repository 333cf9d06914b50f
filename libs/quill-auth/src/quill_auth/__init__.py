"""Quill Auth: bearer identity resolution, password hashing and token issuance."""

from quill_auth.config import AuthConfig, BearerConfig, PasswordPolicy
from quill_auth.errors import (
    AuthenticationError,
    AuthenticationRequired,
    InvalidCredential,
    NotAuthorized,
)
from quill_auth.router import create_auth_router
from quill_auth.strategies.bearer import BearerStrategy, extract_bearer, resolve_identity
from quill_auth.strategies.identity import IdentityStrategy
from quill_auth.user_store import UserStore

__all__ = [
    "AuthConfig",
    "AuthenticationError",
    "AuthenticationRequired",
    "BearerConfig",
    "BearerStrategy",
    "IdentityStrategy",
    "InvalidCredential",
    "NotAuthorized",
    "PasswordPolicy",
    "UserStore",
    "create_auth_router",
    "extract_bearer",
    "resolve_identity",
]
