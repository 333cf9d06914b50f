"""User lookup protocol consumed by the login flow."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class UserStore(Protocol):
    """Anything that can fetch a stored user record by field equality.

    Records must carry ``id`` and ``password_hash`` keys.  The persistence
    layer's user repository satisfies this protocol.
    """

    async def find_one(self, filters: dict[str, Any]) -> dict[str, Any] | None:
        """Return the first record matching every filter, or ``None``."""
        ...
