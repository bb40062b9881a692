"""Shared types and dataclasses for the offline sync queue.

This module provides:
- SyncError, StorageError: Exception classes
- OperationType: Closed set of replayable write kinds
- QueuedOperation: One buffered write
- ProcessResult: Outcome of a single processing attempt
- DrainResult: Outcome of a drain pass
- QueueStatus: Diagnostic snapshot of the queue
- Type aliases for callbacks
"""

from __future__ import annotations

import itertools
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class SyncError(Exception):
    """Base exception for sync errors."""


class StorageError(SyncError):
    """Durable local storage failed to read or write.

    Not retryable by the sync layer: a write that hit this error is not
    safely queued and the caller must be told.
    """


class OperationType(str, Enum):
    """Kinds of writes the queue knows how to replay."""

    PROGRESS_UPDATE = "progress_update"
    JOURNAL_CREATE = "journal_create"
    JOURNAL_UPDATE = "journal_update"
    FAST_SESSION_UPDATE = "fast_session_update"

    @classmethod
    def parse(cls, value: str) -> OperationType | None:
        """Look up a type by its stored value, None if unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


_id_counter = itertools.count()


def generate_operation_id(op_type: str, timestamp_ms: int) -> str:
    """Build an id unique across rapid repeated enqueues.

    Combines the enqueue timestamp, a process-local counter and a random
    suffix (the counter covers same-millisecond enqueues in one process,
    the suffix covers separate processes sharing storage).
    """
    return f"{op_type}_{timestamp_ms}_{next(_id_counter)}_{secrets.token_hex(4)}"


@dataclass
class QueuedOperation:
    """A write buffered for later replay against the remote store.

    Attributes:
        id: Unique identifier assigned at enqueue time.
        type: OperationType value; kept as str so unknown values survive
            loading and are rejected by the processor.
        payload: Everything needed to replay the write.
        enqueued_at: Enqueue time in epoch milliseconds.
        retry_count: Failed processing attempts so far.
    """

    id: str
    type: str
    payload: dict[str, Any]
    enqueued_at: int
    retry_count: int = 0

    @classmethod
    def create(cls, op_type: OperationType | str, payload: dict[str, Any]) -> QueuedOperation:
        """Create a fresh operation with a new id and zero retries."""
        type_value = op_type.value if isinstance(op_type, OperationType) else str(op_type)
        now = int(time.time() * 1000)
        return cls(
            id=generate_operation_id(type_value, now),
            type=type_value,
            payload=payload,
            enqueued_at=now,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueuedOperation:
        """Create from the persisted dict form."""
        return cls(
            id=data["id"],
            type=data["type"],
            payload=data.get("payload") or {},
            enqueued_at=int(data["enqueued_at"]),
            retry_count=int(data.get("retry_count", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "payload": self.payload,
            "enqueued_at": self.enqueued_at,
            "retry_count": self.retry_count,
        }

    def with_retry(self) -> QueuedOperation:
        """Copy of this operation with retry_count incremented."""
        return replace(self, retry_count=self.retry_count + 1)

    def __repr__(self) -> str:
        return f"QueuedOperation({self.type}, id={self.id}, retries={self.retry_count})"


@dataclass
class ProcessResult:
    """Outcome of one processing attempt."""

    success: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> ProcessResult:
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> ProcessResult:
        return cls(success=False, error=error)


@dataclass
class DrainResult:
    """Result of a drain pass.

    Attributes:
        processed: Operations applied successfully.
        failed: Operations dropped after exhausting their retry budget.
        requeued: Operations kept for another attempt.
    """

    processed: int = 0
    failed: int = 0
    requeued: int = 0
    dropped: list[QueuedOperation] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


@dataclass(frozen=True)
class QueueStatus:
    """Diagnostic snapshot of the queue."""

    pending: int
    oldest_timestamp: int | None


# Type aliases for callbacks
DrainCallback = Callable[[DrainResult], None]
DroppedCallback = Callable[[QueuedOperation], None]
