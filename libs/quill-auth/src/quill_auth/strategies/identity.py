"""Built-in identity strategy: password hashing and session token issuance."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt

from quill_auth.config import AuthConfig
from quill_auth.errors import InvalidCredential
from quill_auth.user_store import UserStore

logger = logging.getLogger(__name__)


class IdentityStrategy:
    """Hashes passwords with bcrypt and issues signed, time-bounded JWTs."""

    # Pre-computed dummy hash so missing-user lookups still run bcrypt,
    # preventing timing side-channel user enumeration.
    _DUMMY_HASH: str = bcrypt.hashpw(b"dummy", bcrypt.gensalt()).decode()

    def __init__(self, config: AuthConfig) -> None:
        self.config = config

    def hash_password(self, password: str) -> str:
        """Hash a plaintext password using bcrypt."""
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()

    def verify_password(self, plain: str, hashed: str | None) -> bool:
        """Verify a password against its bcrypt hash.

        When *hashed* is ``None`` (unknown user) a dummy comparison still
        runs and ``False`` is returned.
        """
        matches = bcrypt.checkpw(plain.encode(), (hashed or self._DUMMY_HASH).encode())
        return matches and hashed is not None

    def password_problems(self, password: str) -> list[str]:
        """Return the policy violations of *password* (empty when acceptable)."""
        policy = self.config.password_policy
        if len(password) < policy.min_length:
            return [f"Password must be at least {policy.min_length} characters long."]
        return []

    async def login(self, users: UserStore, email: str, password: str) -> dict[str, Any]:
        """Authenticate by email and password and return the stored user record.

        Raises:
            InvalidCredential: Unknown email or wrong password.  The two
                cases are indistinguishable to the caller.
        """
        user = await users.find_one({"email": email})
        # Always perform a hash comparison so missing users take the same
        # time as wrong passwords.
        password_valid = self.verify_password(password, user["password_hash"] if user else None)

        if user is None:
            logger.warning(
                "Login failed: unknown email",
                extra={"event": "login_failed", "reason": "unknown_email"},
            )
            raise InvalidCredential("Unable to login.")
        if not password_valid:
            logger.warning(
                "Login failed: bad password for user_id=%s",
                user["id"],
                extra={"event": "login_failed", "reason": "bad_password", "user_id": user["id"]},
            )
            raise InvalidCredential("Unable to login.")

        logger.info(
            "Login successful: user_id=%s",
            user["id"],
            extra={"event": "login_success", "user_id": user["id"]},
        )
        return user

    def issue_token(self, user_id: str) -> str:
        """Issue a JWT session token whose subject is *user_id*."""
        bearer = self.config.bearer
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + timedelta(minutes=bearer.token_expiry_minutes),
        }
        token = jwt.encode(payload, bearer.signing_key, algorithm=bearer.algorithm)
        logger.info(
            "Token issued: user_id=%s",
            user_id,
            extra={"event": "token_issued", "user_id": user_id},
        )
        return token
