"""JWT bearer token validation: the identity resolver.

HTTP requests carry the token in the ``Authorization`` header and WebSocket
connections carry it in their connection parameters.  Both transports hand
the raw value to :func:`resolve_identity`, so a credential is judged the
same way regardless of how it arrived.
"""

from __future__ import annotations

import logging
from typing import Any

import jwt

from quill_auth.config import BearerConfig
from quill_auth.errors import AuthenticationRequired, InvalidCredential

logger = logging.getLogger(__name__)

# Claims that must be present in every JWT.
_REQUIRED_CLAIMS = ("sub", "exp")

_BEARER_PREFIX = "bearer "


def extract_bearer(credential: str | None) -> str | None:
    """Normalize a transport credential to a bare token string.

    Strips an optional ``Bearer`` prefix (case-insensitive).  Returns
    ``None`` when nothing usable is present.
    """
    if credential is None:
        return None
    value = credential.strip()
    if value[: len(_BEARER_PREFIX)].lower() == _BEARER_PREFIX:
        value = value[len(_BEARER_PREFIX) :].strip()
    return value or None


def resolve_identity(
    credential: str | None,
    secret: str | bytes,
    require_auth: bool = True,
    *,
    algorithm: str = "HS256",
) -> str | None:
    """Turn a credential into a subject id.

    Returns ``None`` when no credential is present and *require_auth* is
    false.

    Raises:
        AuthenticationRequired: No credential and *require_auth* is true.
        InvalidCredential: The token is malformed, expired, forged, or has
            no usable ``sub`` claim.  Raised regardless of *require_auth*.
    """
    token = extract_bearer(credential)
    if token is None:
        if require_auth:
            raise AuthenticationRequired()
        return None

    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": list(_REQUIRED_CLAIMS)},
        )
    except jwt.ExpiredSignatureError as exc:
        logger.warning(
            "Token validation failed: reason=expired",
            extra={"event": "token_validation_failed", "reason": "expired"},
        )
        raise InvalidCredential("Token has expired.") from exc
    except jwt.PyJWTError as exc:
        logger.warning(
            "Token validation failed: reason=%s",
            type(exc).__name__,
            extra={"event": "token_validation_failed", "reason": type(exc).__name__},
        )
        raise InvalidCredential("Invalid token.") from exc

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.strip():
        logger.warning(
            "JWT 'sub' claim is empty or not a string",
            extra={"event": "token_validation_failed", "reason": "invalid_sub"},
        )
        raise InvalidCredential("Invalid token.")

    logger.debug("Bearer token validated: user_id=%s", sub, extra={"event": "token_validated", "user_id": sub})
    return sub


class BearerStrategy:
    """Binds :func:`resolve_identity` to a configured signing key."""

    def __init__(self, config: BearerConfig) -> None:
        self.config = config

    def resolve(self, credential: str | None, require_auth: bool = True) -> str | None:
        return resolve_identity(
            credential,
            self.config.signing_key,
            require_auth,
            algorithm=self.config.algorithm,
        )
