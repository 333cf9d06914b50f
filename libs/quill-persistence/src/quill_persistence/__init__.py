"""Quill Persistence: async SQL repositories for users, posts and comments."""

from quill_persistence.adapters.sql import SQLRepository
from quill_persistence.connections import InvalidConnectionURL, create_engine, redact_url
from quill_persistence.exceptions import (
    ConnectionFailedError,
    DuplicateEntityError,
    PersistenceError,
    QueryError,
    TransactionError,
)
from quill_persistence.protocols import Repository
from quill_persistence.store import BlogStore

__all__ = [
    "BlogStore",
    "ConnectionFailedError",
    "DuplicateEntityError",
    "InvalidConnectionURL",
    "PersistenceError",
    "QueryError",
    "Repository",
    "SQLRepository",
    "TransactionError",
    "create_engine",
    "redact_url",
]
