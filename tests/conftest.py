"""Shared fixtures for fastlandz tests."""

from __future__ import annotations

from typing import Any

import pytest

from fastlandz.client.connectivity import ManualConnectivity
from fastlandz.client.storage import MemoryStorage
from fastlandz.client.store import ErrorKind, MemoryRowStore, StoreError, StoreResult
from fastlandz.client.sync import OperationQueue, StorageError


class FlakyStore:
    """MemoryRowStore wrapper that fails writes on demand.

    Reads always go to the wrapped store. Writes consume ``errors`` one
    at a time, then fall back to ``always`` (if set), then succeed.
    """

    def __init__(self, inner: MemoryRowStore | None = None) -> None:
        self.inner = inner or MemoryRowStore()
        self.errors: list[StoreError] = []
        self.always: StoreError | None = None
        self.raises: Exception | None = None
        self.online = True
        self.calls: list[tuple[str, str]] = []

    def fail_next(self, kind: ErrorKind, count: int = 1) -> None:
        for _ in range(count):
            self.errors.append(StoreError(kind, f"{kind.value} failure"))

    def fail_always(self, kind: ErrorKind) -> None:
        self.always = StoreError(kind, f"{kind.value} failure")

    def _injected(self, method: str, table: str) -> StoreResult | None:
        self.calls.append((method, table))
        if self.raises is not None:
            raise self.raises
        if self.errors:
            return StoreResult.failure(self.errors.pop(0))
        if self.always is not None:
            return StoreResult.failure(self.always)
        return None

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.inner.rows(table)

    def select(self, table: str, filters: Any = None, **kwargs: Any) -> StoreResult:
        return self.inner.select(table, filters, **kwargs)

    def insert(self, table: str, rows: Any) -> StoreResult:
        failure = self._injected("insert", table)
        return failure if failure is not None else self.inner.insert(table, rows)

    def update(self, table: str, values: dict[str, Any], filters: dict[str, Any]) -> StoreResult:
        failure = self._injected("update", table)
        return failure if failure is not None else self.inner.update(table, values, filters)

    def delete(self, table: str, filters: dict[str, Any]) -> StoreResult:
        failure = self._injected("delete", table)
        return failure if failure is not None else self.inner.delete(table, filters)

    def health_check(self) -> bool:
        return self.online


class FailingStorage(MemoryStorage):
    """MemoryStorage whose writes fail while ``fail_writes`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageError(f"Failed to write {key!r}: disk full")
        super().set(key, value)


@pytest.fixture
def storage() -> MemoryStorage:
    """Fresh in-memory local storage."""
    return MemoryStorage()


@pytest.fixture
def queue(storage: MemoryStorage) -> OperationQueue:
    """Operation queue over the shared local storage."""
    return OperationQueue(storage)


@pytest.fixture
def store() -> FlakyStore:
    """Remote store double that can be told to fail."""
    return FlakyStore()


@pytest.fixture
def connectivity() -> ManualConnectivity:
    """Connectivity flag, online by default."""
    return ManualConnectivity(online=True)
