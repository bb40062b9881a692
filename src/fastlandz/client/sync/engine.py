"""Sync engine draining the offline queue.

This module provides:
- SyncEngine: Replays queued operations with a bounded retry budget

A drain pass:
    1. Snapshot the queue (FIFO order).
    2. Process each operation through an OperationAttempt.
    3. Commit survivors plus anything enqueued during the pass with a
       single replace(), under the queue lock.

Drain passes are serialized by the engine's own lock, so two overlapping
drain() calls never interleave their list/replace pairs.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from fastlandz.client.sync.retry import OperationAttempt, OperationState
from fastlandz.client.sync.types import DrainResult, DroppedCallback, QueuedOperation
from fastlandz.core.config import MAX_RETRIES

if TYPE_CHECKING:
    from fastlandz.client.connectivity import ConnectivityMonitor
    from fastlandz.client.sync.processor import OperationProcessor
    from fastlandz.client.sync.queue import OperationQueue

logger = logging.getLogger(__name__)


class SyncEngine:
    """Drains the operation queue against the remote store."""

    def __init__(
        self,
        queue: OperationQueue,
        processor: OperationProcessor,
        connectivity: ConnectivityMonitor,
        max_retries: int = MAX_RETRIES,
        on_dropped: DroppedCallback | None = None,
    ) -> None:
        """Initialize the sync engine.

        Args:
            queue: Durable queue of pending operations.
            processor: Applies one operation to the remote store.
            connectivity: Reports whether the client is online.
            max_retries: Failed attempts before an operation is dropped.
            on_dropped: Optional callback for each dropped operation.
        """
        self._queue = queue
        self._processor = processor
        self._connectivity = connectivity
        self._max_retries = max_retries
        self._on_dropped = on_dropped
        self._drain_lock = threading.Lock()
        self._last_result: DrainResult | None = None

    @property
    def queue(self) -> OperationQueue:
        return self._queue

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def last_result(self) -> DrainResult | None:
        """Result of the most recent drain pass that ran."""
        return self._last_result

    @property
    def is_draining(self) -> bool:
        return self._drain_lock.locked()

    def drain(self) -> DrainResult:
        """Run one drain pass over the operations queued at call time.

        Returns:
            DrainResult with processed and failed (dropped) counts.

        Raises:
            StorageError: If the queue cannot be read or committed.
        """
        with self._drain_lock:
            if not self._connectivity.is_online():
                logger.debug("Offline, skipping drain")
                return DrainResult()

            snapshot = self._queue.list()
            if not snapshot:
                return DrainResult()

            logger.info("Draining %d queued operation(s)", len(snapshot))
            result = DrainResult()
            survivors: list[QueuedOperation] = []

            for operation in snapshot:
                attempt = OperationAttempt(operation, max_retries=self._max_retries)
                attempt.start()
                outcome = self._processor.process(operation)
                if outcome.success:
                    attempt.succeed()
                    result.processed += 1
                    continue

                state = attempt.fail(outcome.error)
                if state is OperationState.REQUEUED:
                    survivors.append(attempt.operation)
                    result.requeued += 1
                else:
                    result.failed += 1
                    result.dropped.append(attempt.operation)

            self._commit(snapshot, survivors)

            if self._on_dropped:
                for dropped in result.dropped:
                    try:
                        self._on_dropped(dropped)
                    except Exception:
                        logger.exception("Dropped-operation callback failed for %s", dropped.id)

            if result.processed:
                logger.info("Synced %d operation(s)", result.processed)
            if result.failed:
                logger.warning("%d operation(s) failed after max retries", result.failed)

            self._last_result = result
            return result

    def _commit(self, snapshot: list[QueuedOperation], survivors: list[QueuedOperation]) -> None:
        """Write survivors back, keeping operations enqueued during the pass."""
        seen = {op.id for op in snapshot}
        with self._queue.lock:
            arrived = [op for op in self._queue.list() if op.id not in seen]
            if arrived:
                logger.debug("%d operation(s) enqueued during drain", len(arrived))
            self._queue.replace(survivors + arrived)
