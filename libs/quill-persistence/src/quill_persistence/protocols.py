"""Repository protocol: the persistence collaborator seen by the API layer."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Repository(Protocol):
    """CRUD over one table with equality filters, search, ordering and paging.

    Filter values that are lists or tuples match with ``IN``; any other
    value matches with equality.  Ordering is fixed per repository.
    """

    async def find_by_id(self, id: str) -> dict[str, Any] | None:
        """Retrieve a single record by primary key."""
        ...

    async def find_one(self, filters: dict[str, Any]) -> dict[str, Any] | None:
        """Retrieve the first record matching every filter."""
        ...

    async def find_many(
        self,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        *,
        offset: int = 0,
        search: str | None = None,
        after: str | None = None,
        where: Sequence[Any] = (),
    ) -> list[dict[str, Any]]:
        """Retrieve a page of records in the repository's fixed order.

        *search* matches text in the repository's designated fields.
        *after* keeps only records whose id sorts after the given cursor.
        *where* carries extra backend-specific clauses.
        """
        ...

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new record and return it as stored."""
        ...

    async def update(self, id: str, patch: dict[str, Any]) -> dict[str, Any] | None:
        """Apply a partial update; ``None`` when the record does not exist."""
        ...

    async def delete(self, id: str) -> bool:
        """Delete a record by primary key. Returns True if deleted."""
        ...

    async def delete_many(self, filters: dict[str, Any], *, where: Sequence[Any] = ()) -> int:
        """Delete every record matching the filters and extra clauses; returns the count."""
        ...
