"""Argument validation for queries and mutations.

Checks run before anything reaches the persistence layer and raise
:class:`~quill_gql.errors.ValidationFailed` with one message per problem.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from quill_gql.errors import ValidationFailed

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class Page:
    """Validated paging arguments."""

    first: int = DEFAULT_PAGE_SIZE
    skip: int = 0
    after: str | None = None


def validate_page(first: int | None = None, skip: int | None = None, after: str | None = None) -> Page:
    errors: list[str] = []
    first = DEFAULT_PAGE_SIZE if first is None else first
    skip = 0 if skip is None else skip
    if not 1 <= first <= MAX_PAGE_SIZE:
        errors.append(f"Argument 'first': must be between 1 and {MAX_PAGE_SIZE}, got {first}")
    if skip < 0:
        errors.append(f"Argument 'skip': must be >= 0, got {skip}")
    if errors:
        raise ValidationFailed(*errors)
    return Page(first=first, skip=skip, after=after or None)


def require_text(field_name: str, value: str | None) -> str:
    """Reject empty or whitespace-only text for a required field."""
    if value is None or not value.strip():
        raise ValidationFailed(f"Field '{field_name}': must not be empty")
    return value


def check_email(email: str) -> str:
    if not _EMAIL_RE.match(email):
        raise ValidationFailed(f"Field 'email': '{email}' is not a valid email address")
    return email
