"""GraphQL-facing error types and the extension that tags errors with codes.

Errors raised by resolvers become per-field GraphQL errors.  Each domain
error has a stable ``code``; :class:`ErrorCodeExtension` makes sure every
reported error carries one in its ``extensions``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from graphql import GraphQLError
from strawberry.extensions import SchemaExtension

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = "INTERNAL_SERVER_ERROR"


class QuillError(Exception):
    code = INTERNAL_ERROR_CODE

    @property
    def extensions(self) -> dict[str, Any]:
        return {"code": self.code}


class NotFound(QuillError):
    """Raised when the target record does not exist or is not visible."""

    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource") -> None:
        self.resource = resource
        super().__init__(f"{resource} not found.")


class ValidationFailed(QuillError):
    """Raised when input violates a field rule.

    Attributes
    ----------
    errors : list[str]
        Individual validation error messages.
    """

    code = "BAD_USER_INPUT"

    def __init__(self, *errors: str) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid input.")


def error_code(error: GraphQLError) -> str:
    """Return the stable code for a GraphQL error."""
    existing = (error.extensions or {}).get("code")
    if existing:
        return existing
    original = error.original_error
    if original is None:
        # Syntax and validation errors never reach a resolver.
        return "GRAPHQL_VALIDATION_FAILED"
    code = getattr(original, "code", None)
    if isinstance(code, str):
        return code
    if isinstance(original, PermissionError):
        return "FORBIDDEN"
    return INTERNAL_ERROR_CODE


def tag_errors(errors: list[GraphQLError] | None) -> None:
    for error in errors or ():
        code = error_code(error)
        error.extensions = {**(error.extensions or {}), "code": code}
        if code == INTERNAL_ERROR_CODE:
            logger.error(
                "Unhandled error in GraphQL operation: %s",
                error.message,
                exc_info=error.original_error,
                extra={"event": "graphql_internal_error"},
            )


class ErrorCodeExtension(SchemaExtension):
    """Copies each error's stable code into its ``extensions`` after execution."""

    def on_operation(self) -> Iterator[None]:
        yield
        result = getattr(self.execution_context, "result", None)
        if result is not None:
            tag_errors(getattr(result, "errors", None))
