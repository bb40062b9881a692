"""Row store contract shared by the HTTP client and the in-memory store.

This module provides:
- ErrorKind / StoreError: Structured error values returned by a store
- StoreResult: Result-or-error value of one store call
- RowStore: Protocol implemented by RestStoreClient and MemoryRowStore
- MemoryRowStore: In-process store used when no remote is configured

Store calls never raise for expected conditions. "No row found" is an
empty result, and failures come back as ``StoreResult.error`` so the
caller decides whether the failure is worth queuing.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)

Row = dict[str, Any]
Filters = dict[str, Any]


class ErrorKind(Enum):
    """Category of a store failure."""

    NETWORK = "network"  # Host unreachable, connection reset
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"  # 429
    SERVER = "server"  # 5xx
    AUTH = "auth"  # 401 / 403
    NOT_FOUND = "not_found"  # 404 (unknown table, not an empty result)
    CONFLICT = "conflict"  # 409, unique constraint
    VALIDATION = "validation"  # Other 4xx: rejected as invalid


# Failures that may succeed if the same write is replayed later
TRANSIENT_KINDS = frozenset(
    {ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.RATE_LIMITED, ErrorKind.SERVER}
)


class APIError(Exception):
    """Raised by StoreResult.raise_for_error()."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class StoreError:
    """Error value returned by a store call.

    Attributes:
        kind: Error category, drives queue-or-surface decisions.
        message: Human readable description.
        status_code: HTTP status when the store answered.
        code: Store-specific error code (e.g. "23505").
    """

    kind: ErrorKind
    message: str
    status_code: int | None = None
    code: str | None = None

    @property
    def is_transient(self) -> bool:
        """Check if replaying the call later may succeed."""
        return self.kind in TRANSIENT_KINDS

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass
class StoreResult:
    """Result of a single store call: rows or an error, never both."""

    data: list[Row] = field(default_factory=list)
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def first(self) -> Row | None:
        """Get the first returned row, if any."""
        return self.data[0] if self.data else None

    def raise_for_error(self) -> StoreResult:
        """Raise APIError if the call failed, else return self."""
        if self.error is not None:
            raise APIError(str(self.error), self.error.status_code)
        return self

    @classmethod
    def success(cls, data: list[Row] | None = None) -> StoreResult:
        return cls(data=data or [])

    @classmethod
    def failure(cls, error: StoreError) -> StoreResult:
        return cls(error=error)


class RowStore(Protocol):
    """Row-oriented store addressed by table name with equality filters."""

    def select(
        self,
        table: str,
        filters: Filters | None = None,
        columns: str = "*",
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> StoreResult: ...

    def insert(self, table: str, rows: Row | list[Row]) -> StoreResult: ...

    def update(self, table: str, values: Row, filters: Filters) -> StoreResult: ...

    def delete(self, table: str, filters: Filters) -> StoreResult: ...

    def health_check(self) -> bool: ...


def _matches(row: Row, filters: Filters | None) -> bool:
    if not filters:
        return True
    return all(row.get(column) == value for column, value in filters.items())


class MemoryRowStore:
    """Thread-safe in-memory implementation of RowStore.

    Rows get a generated ``id`` on insert when they carry none. Returned
    rows are copies, so callers cannot mutate stored state.
    """

    def __init__(self, tables: dict[str, list[Row]] | None = None) -> None:
        self._lock = threading.RLock()
        self._tables: dict[str, list[Row]] = copy.deepcopy(tables) if tables else {}

    def rows(self, table: str) -> list[Row]:
        """Get a copy of every row in a table."""
        with self._lock:
            return copy.deepcopy(self._tables.get(table, []))

    def select(
        self,
        table: str,
        filters: Filters | None = None,
        columns: str = "*",
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> StoreResult:
        with self._lock:
            rows = [r for r in self._tables.get(table, []) if _matches(r, filters)]
            if order:
                rows.sort(key=lambda r: (r.get(order) is None, r.get(order)), reverse=descending)
            if limit is not None:
                rows = rows[:limit]
            if columns != "*":
                wanted = [c.strip() for c in columns.split(",")]
                rows = [{c: r.get(c) for c in wanted} for r in rows]
            return StoreResult.success(copy.deepcopy(rows))

    def insert(self, table: str, rows: Row | list[Row]) -> StoreResult:
        batch = [rows] if isinstance(rows, dict) else list(rows)
        inserted: list[Row] = []
        with self._lock:
            target = self._tables.setdefault(table, [])
            for row in batch:
                stored = copy.deepcopy(row)
                stored.setdefault("id", str(uuid.uuid4()))
                target.append(stored)
                inserted.append(copy.deepcopy(stored))
        logger.debug("Inserted %d row(s) into %s", len(inserted), table)
        return StoreResult.success(inserted)

    def update(self, table: str, values: Row, filters: Filters) -> StoreResult:
        updated: list[Row] = []
        with self._lock:
            for row in self._tables.get(table, []):
                if _matches(row, filters):
                    row.update(copy.deepcopy(values))
                    updated.append(copy.deepcopy(row))
        return StoreResult.success(updated)

    def delete(self, table: str, filters: Filters) -> StoreResult:
        with self._lock:
            rows = self._tables.get(table, [])
            removed = [r for r in rows if _matches(r, filters)]
            self._tables[table] = [r for r in rows if not _matches(r, filters)]
        return StoreResult.success(removed)

    def health_check(self) -> bool:
        return True
