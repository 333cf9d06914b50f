"""Shared fixtures for quill-auth tests."""

from typing import Any

import pytest


@pytest.fixture(autouse=True)
def _quill_dev_env(monkeypatch):
    """Default all auth tests to test mode so an empty secret is tolerated."""
    monkeypatch.setenv("QUILL_ENV", "test")


class MemoryUsers:
    """Tiny ``UserStore`` over a list of records."""

    def __init__(self, records: list[dict[str, Any]] | None = None) -> None:
        self.records = records or []

    async def find_one(self, filters: dict[str, Any]) -> dict[str, Any] | None:
        for record in self.records:
            if all(record.get(k) == v for k, v in filters.items()):
                return record
        return None


@pytest.fixture
def memory_users() -> MemoryUsers:
    return MemoryUsers()
