"""SQLAlchemy async repository implementing the Repository protocol."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from quill_persistence.adapters import _validate_limit, _validate_offset
from quill_persistence.exceptions import (
    ConnectionFailedError,
    DuplicateEntityError,
    PersistenceError,
    QueryError,
    TransactionError,
)

logger = logging.getLogger(__name__)


def new_id() -> str:
    """Return a fresh 32-character lowercase hex identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SQLRepository:
    """Async repository over one SQLAlchemy ``Table``.

    Every method opens its own connection; writes run inside
    ``engine.begin()`` so each call is one committed transaction.
    Driver exceptions are re-raised as persistence exceptions.

    Args:
        engine: The shared async engine.
        table: The table this repository reads and writes.
        order_by: Column clauses applied to every ``find_many``.
        search_fields: Columns matched as substrings by ``search``.
        exact_search_fields: Columns matched by equality by ``search``.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        table: sa.Table,
        *,
        order_by: Sequence[sa.ColumnElement[Any]] = (),
        search_fields: Sequence[str] = (),
        exact_search_fields: Sequence[str] = (),
    ) -> None:
        self._engine = engine
        self._table = table
        self._order_by = tuple(order_by) or (table.c.id,)
        self._search_fields = tuple(search_fields)
        self._exact_search_fields = tuple(exact_search_fields)

    @property
    def table(self) -> sa.Table:
        return self._table

    @contextmanager
    def _translate(self, operation: str, *, write: bool = False) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            error_cls: type[PersistenceError]
            if isinstance(exc, IntegrityError):
                error_cls = DuplicateEntityError
            elif isinstance(exc, OperationalError):
                error_cls = ConnectionFailedError
            else:
                error_cls = TransactionError if write else QueryError
            logger.error(
                "SQL %s failed for %s: %s",
                operation,
                self._table.name,
                type(exc).__name__,
                extra={"event": "persistence_error"},
            )
            raise error_cls(table=self._table.name, operation=operation, cause=exc) from exc

    def _where(self, filters: dict[str, Any] | None, operation: str) -> list[sa.ColumnElement[bool]]:
        clauses: list[sa.ColumnElement[bool]] = []
        for col_name, value in (filters or {}).items():
            if col_name not in self._table.c:
                raise QueryError(
                    table=self._table.name,
                    operation=operation,
                    detail=f"Unknown filter column '{col_name}'.",
                )
            column = self._table.c[col_name]
            if isinstance(value, (list, tuple, set, frozenset)):
                clauses.append(column.in_(list(value)))
            else:
                clauses.append(column == value)
        return clauses

    def _substring(self, column: sa.Column[Any], search: str) -> sa.ColumnElement[bool]:
        # SQLite's LIKE folds ASCII case; instr() compares bytes.
        if self._engine.dialect.name == "sqlite":
            return sa.func.instr(column, search) > 0
        return column.contains(search, autoescape=True)

    def _search_clause(self, search: str) -> sa.ColumnElement[bool] | None:
        options: list[sa.ColumnElement[bool]] = [
            self._substring(self._table.c[name], search) for name in self._search_fields
        ]
        options.extend(self._table.c[name] == search for name in self._exact_search_fields)
        if not options:
            return None
        return sa.or_(*options)

    async def ensure_table(self) -> None:
        """Create this repository's table if it does not exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(self._table.create, checkfirst=True)

    async def find_by_id(self, id: str) -> dict[str, Any] | None:
        return await self.find_one({"id": id})

    async def find_one(self, filters: dict[str, Any]) -> dict[str, Any] | None:
        stmt = self._table.select().where(*self._where(filters, "find_one")).limit(1)
        with self._translate("find_one"):
            async with AsyncSession(self._engine) as session:
                result = await session.execute(stmt)
                row = result.mappings().first()
                return dict(row) if row else None

    async def find_many(
        self,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        *,
        offset: int = 0,
        search: str | None = None,
        after: str | None = None,
        where: Sequence[sa.ColumnElement[bool]] = (),
    ) -> list[dict[str, Any]]:
        """Retrieve a page of records in this repository's fixed order.

        *where* adds raw SQLAlchemy clauses, for conditions that reach
        beyond this table.
        """
        limit = _validate_limit(limit)
        offset = _validate_offset(offset)
        stmt = self._table.select().where(*self._where(filters, "find_many")).where(*where)
        if search:
            clause = self._search_clause(search)
            if clause is not None:
                stmt = stmt.where(clause)
        if after is not None:
            stmt = stmt.where(self._table.c.id > after)
        stmt = stmt.order_by(*self._order_by).limit(limit).offset(offset)
        with self._translate("find_many"):
            async with AsyncSession(self._engine) as session:
                result = await session.execute(stmt)
                return [dict(row) for row in result.mappings().all()]

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a record, filling in ``id`` and timestamps when absent."""
        now = utcnow()
        record = {"id": new_id(), "created_at": now, "updated_at": now, **data}
        with self._translate("create", write=True):
            async with self._engine.begin() as conn:
                await conn.execute(self._table.insert().values(**record))
        return record

    async def update(self, id: str, patch: dict[str, Any]) -> dict[str, Any] | None:
        """Apply a partial update and bump ``updated_at``."""
        values = {"updated_at": utcnow(), **patch}
        stmt = self._table.update().where(self._table.c.id == id).values(**values)
        with self._translate("update", write=True):
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
                if result.rowcount == 0:
                    return None
        return await self.find_by_id(id)

    async def delete(self, id: str) -> bool:
        """Delete a record by primary key. Returns True if deleted."""
        stmt = self._table.delete().where(self._table.c.id == id)
        with self._translate("delete", write=True):
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
                return result.rowcount > 0

    async def delete_many(
        self,
        filters: dict[str, Any],
        *,
        where: Sequence[sa.ColumnElement[bool]] = (),
    ) -> int:
        """Delete every record matching *filters* and *where*; no condition at all is refused."""
        clauses = [*self._where(filters, "delete_many"), *where]
        if not clauses:
            raise QueryError(
                table=self._table.name,
                operation="delete_many",
                detail="Refusing to delete without filters.",
            )
        stmt = self._table.delete().where(*clauses)
        with self._translate("delete_many", write=True):
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
                return result.rowcount
