"""Errors raised by the repositories.

``SQLRepository`` never lets a SQLAlchemy exception escape; it wraps it
in the matching class below, keeping the driver error as ``__cause__``.
Messages name the table and operation but never the SQL or bound values.
"""

from __future__ import annotations


class PersistenceError(Exception):
    """A repository call on *table* failed during *operation*.

    Subclasses set ``default_detail``, used when no *detail* is given.
    """

    default_detail = "Persistence operation failed."

    def __init__(
        self,
        *,
        table: str,
        operation: str,
        detail: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.table = table
        self.operation = operation
        self.detail = detail or self.default_detail
        super().__init__(f"[{table}] {operation} failed: {self.detail}")
        if cause is not None:
            self.__cause__ = cause


class DuplicateEntityError(PersistenceError):
    default_detail = "A record with the same key or unique constraint already exists."


class ConnectionFailedError(PersistenceError):
    default_detail = "Database connection failed."


class QueryError(PersistenceError):
    """Bad read: unknown filter column, missing table, driver refusal."""

    default_detail = "Query execution failed."


class TransactionError(PersistenceError):
    default_detail = "Write transaction failed."
