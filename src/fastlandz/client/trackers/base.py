"""Base tracker implementing optimistic writes with queue fallback.

This module provides:
- TrackerError, ValidationError, OfflineError: Errors surfaced to callers
- WriteOutcome: How a write ended (written, queued, kept local)
- BaseTracker: The write state machine shared by all trackers

Write state machine:
    1. Apply the change to local state (memory + local storage).
    2. Offline: enqueue, done.
    3. Online: write directly.
       - success: done
       - transient failure: enqueue, done (the queue now owns the write)
       - application failure: roll back step 1, raise ValidationError

Trackers never retry. Once a write is queued, the sync engine owns it.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx

from fastlandz.client.sync.types import OperationType, StorageError

if TYPE_CHECKING:
    from fastlandz.client.connectivity import ConnectivityMonitor
    from fastlandz.client.storage import LocalStorage
    from fastlandz.client.store import RowStore, StoreError, StoreResult
    from fastlandz.client.sync.queue import OperationQueue

logger = logging.getLogger(__name__)

# Raised (rather than returned) by stores that talk to the network directly
TRANSPORT_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
)


class TrackerError(Exception):
    """Base exception for tracker errors."""


class ValidationError(TrackerError):
    """The store rejected a write as invalid. The local change was undone."""

    def __init__(self, error: StoreError) -> None:
        super().__init__(error.message)
        self.error = error


class OfflineError(TrackerError):
    """A write that cannot be queued was attempted without connectivity."""


class WriteOutcome(Enum):
    """How a tracker write ended."""

    WRITTEN = "written"  # Applied to the remote store
    QUEUED = "queued"  # Handed to the offline queue
    LOCAL_ONLY = "local_only"  # Nothing remote to write against
    UNCHANGED = "unchanged"  # State already as requested


class BaseTracker:
    """Shared plumbing for progress, journal and fast-session trackers."""

    def __init__(
        self,
        user_id: str,
        store: RowStore,
        queue: OperationQueue,
        connectivity: ConnectivityMonitor,
        storage: LocalStorage,
    ) -> None:
        """Initialize the tracker.

        Args:
            user_id: Owner of the rows this tracker writes.
            store: Remote row store.
            queue: Offline queue for writes that cannot reach the store.
            connectivity: Reports whether to attempt direct writes.
            storage: Local storage mirroring tracker state.
        """
        self.user_id = user_id
        self._store = store
        self._queue = queue
        self._connectivity = connectivity
        self._storage = storage
        self._lock = threading.RLock()
        self.last_error: str | None = None

    # === Local storage mirror ===

    def _read_local(self, key: str) -> Any:
        raw = self._storage.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Ignoring unreadable local data under %r", key)
            return None

    def _write_local(self, key: str, value: Any) -> None:
        self._storage.set(key, json.dumps(value))

    # === Write state machine ===

    def _write(
        self,
        op_type: OperationType,
        payload: dict[str, Any],
        direct: Callable[[], StoreResult],
        rollback: Callable[[], None],
    ) -> WriteOutcome:
        """Send an already-applied change to the store or the queue.

        Args:
            op_type: Operation kind used if the write is queued.
            payload: Replayable payload used if the write is queued.
            direct: Performs the direct store call.
            rollback: Undoes the optimistic local change.

        Raises:
            ValidationError: The store rejected the write.
            StorageError: The write could not be queued.
        """
        if not self._connectivity.is_online():
            logger.debug("Offline, queuing %s", op_type.value)
            return self._enqueue(op_type, payload, rollback)

        try:
            result = direct()
        except TRANSPORT_EXCEPTIONS as e:
            logger.warning("Direct %s failed, queuing: %s", op_type.value, e)
            return self._enqueue(op_type, payload, rollback)

        if result.error is None:
            self.last_error = None
            return WriteOutcome.WRITTEN

        if result.error.is_transient:
            logger.warning("Direct %s failed, queuing: %s", op_type.value, result.error)
            return self._enqueue(op_type, payload, rollback)

        logger.error("Store rejected %s: %s", op_type.value, result.error)
        self.last_error = result.error.message
        rollback()
        raise ValidationError(result.error)

    def _enqueue(
        self,
        op_type: OperationType,
        payload: dict[str, Any],
        rollback: Callable[[], None],
    ) -> WriteOutcome:
        try:
            self._queue.enqueue(op_type, payload)
        except StorageError as e:
            logger.error("Could not queue %s: %s", op_type.value, e)
            self.last_error = str(e)
            rollback()
            raise
        return WriteOutcome.QUEUED
