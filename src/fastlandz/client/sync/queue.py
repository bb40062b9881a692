"""Durable FIFO queue of pending write operations.

This module provides:
- OperationQueue: Ordered log of QueuedOperation records kept in local storage

Persistence:
    The whole queue is serialized as one JSON array under a single
    storage key. Every mutation rewrites that key in one storage write,
    so after a crash the queue reloads either as it was before the write
    or as it was after, never half-written.

    Appends (enqueue) are serialized with a lock so concurrent trackers
    do not lose each other's operations. The sync engine commits the
    remaining queue after a drain pass with replace().
"""

from __future__ import annotations

import json
import logging
import threading
from typing import TYPE_CHECKING, Any

from fastlandz.client.sync.types import (
    OperationType,
    QueuedOperation,
    QueueStatus,
    StorageError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from fastlandz.client.storage import LocalStorage

logger = logging.getLogger(__name__)

QUEUE_KEY = "fastlandz_sync_queue"


class OperationQueue:
    """FIFO queue of pending operations persisted to local storage.

    Attributes:
        key: Storage key holding the serialized queue.
    """

    def __init__(self, storage: LocalStorage, key: str = QUEUE_KEY) -> None:
        """Initialize the queue.

        Args:
            storage: Durable key-value storage.
            key: Storage key for the serialized queue.
        """
        self._storage = storage
        self.key = key
        self._lock = threading.RLock()

    def _load(self) -> list[QueuedOperation]:
        raw = self._storage.get(self.key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
            return [QueuedOperation.from_dict(item) for item in items]
        except (ValueError, KeyError, TypeError) as e:
            raise StorageError(f"Corrupt sync queue under {self.key!r}: {e}") from e

    def _save(self, operations: Iterable[QueuedOperation]) -> None:
        try:
            raw = json.dumps([op.to_dict() for op in operations])
        except (TypeError, ValueError) as e:
            raise StorageError(f"Cannot serialize sync queue: {e}") from e
        self._storage.set(self.key, raw)

    def enqueue(self, op_type: OperationType | str, payload: dict[str, Any]) -> QueuedOperation:
        """Append a new operation at the tail of the queue.

        Args:
            op_type: Kind of write to replay.
            payload: Data needed to replay the write.

        Returns:
            The queued operation.

        Raises:
            StorageError: If the queue cannot be read, serialized or written.
        """
        operation = QueuedOperation.create(op_type, payload)
        with self._lock:
            operations = self._load()
            operations.append(operation)
            self._save(operations)
            size = len(operations)
        logger.debug("Queued %r (queue size: %d)", operation, size)
        return operation

    def list(self) -> list[QueuedOperation]:
        """Get all pending operations in FIFO order.

        Raises:
            StorageError: If the persisted queue cannot be read.
        """
        with self._lock:
            return self._load()

    def replace(self, operations: Iterable[QueuedOperation]) -> None:
        """Atomically overwrite the persisted queue.

        Raises:
            StorageError: If the queue cannot be written.
        """
        operations = list(operations)
        with self._lock:
            self._save(operations)
        logger.debug("Committed sync queue (%d pending)", len(operations))

    def clear(self) -> int:
        """Remove all operations from the queue.

        Returns:
            Number of operations removed.
        """
        with self._lock:
            try:
                count = len(self._load())
            except StorageError:
                logger.warning("Discarding unreadable sync queue under %r", self.key)
                count = 0
            self._storage.remove(self.key)
        logger.info("Cleared %d operations from sync queue", count)
        return count

    def status(self) -> QueueStatus:
        """Get pending count and the oldest enqueue timestamp."""
        operations = self.list()
        oldest = min((op.enqueued_at for op in operations), default=None)
        return QueueStatus(pending=len(operations), oldest_timestamp=oldest)

    @property
    def lock(self) -> threading.RLock:
        """Lock held around every read-modify-write of the queue."""
        return self._lock

    def __len__(self) -> int:
        """Get number of pending operations."""
        return len(self.list())

    def __iter__(self) -> Iterator[QueuedOperation]:
        """Iterate over a snapshot of pending operations in FIFO order."""
        return iter(self.list())

    def __bool__(self) -> bool:
        """Check if queue has operations."""
        return len(self) > 0
