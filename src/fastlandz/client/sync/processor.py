"""Replay of a single queued operation against the remote store.

This module provides:
- OperationProcessor: Dispatches a QueuedOperation to exactly one store call

The processor makes one stateless attempt and reports the outcome as a
ProcessResult. It never raises: the sync engine relies on that to keep
draining the rest of the queue. Retries belong to the engine.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from fastlandz.client.sync.types import OperationType, ProcessResult, QueuedOperation

if TYPE_CHECKING:
    from fastlandz.client.store import RowStore, StoreResult

logger = logging.getLogger(__name__)

PROGRESS_TABLE = "user_progress"
JOURNAL_TABLE = "journal_entries"
SESSIONS_TABLE = "fast_sessions"


class OperationProcessor:
    """Applies queued operations to the remote store."""

    def __init__(self, store: RowStore) -> None:
        """Initialize the processor.

        Args:
            store: Remote row store the writes are replayed against.
        """
        self._store = store
        self._handlers: dict[OperationType, Callable[[dict], StoreResult]] = {
            OperationType.PROGRESS_UPDATE: self._progress_update,
            OperationType.JOURNAL_CREATE: self._journal_create,
            OperationType.JOURNAL_UPDATE: self._journal_update,
            OperationType.FAST_SESSION_UPDATE: self._fast_session_update,
        }

    def process(self, operation: QueuedOperation) -> ProcessResult:
        """Attempt to apply one operation.

        Args:
            operation: The queued operation.

        Returns:
            ProcessResult; failure for unknown types, malformed payloads,
            store errors and unexpected exceptions.
        """
        op_type = OperationType.parse(operation.type)
        if op_type is None:
            logger.warning("Unknown operation type %r for %s", operation.type, operation.id)
            return ProcessResult.failed(f"Unknown operation type: {operation.type}")

        try:
            result = self._handlers[op_type](operation.payload)
        except KeyError as e:
            logger.error("Malformed payload for %r: missing %s", operation, e)
            return ProcessResult.failed(f"Malformed payload: missing {e}")
        except Exception as e:
            logger.error("Failed to process %r: %s", operation, e)
            return ProcessResult.failed(str(e))

        if result.error is not None:
            logger.warning("Store rejected %r: %s", operation, result.error)
            return ProcessResult.failed(str(result.error))

        logger.debug("Processed %r", operation)
        return ProcessResult.ok()

    # === Handlers ===

    def _progress_update(self, payload: dict) -> StoreResult:
        return self._store.update(
            PROGRESS_TABLE, payload["updates"], {"user_id": payload["user_id"]}
        )

    def _journal_create(self, payload: dict) -> StoreResult:
        if "user_id" not in payload:
            raise KeyError("user_id")
        return self._store.insert(JOURNAL_TABLE, payload)

    def _journal_update(self, payload: dict) -> StoreResult:
        return self._store.update(
            JOURNAL_TABLE,
            payload["updates"],
            {"user_id": payload["user_id"], "day": payload["day"]},
        )

    def _fast_session_update(self, payload: dict) -> StoreResult:
        return self._store.update(
            SESSIONS_TABLE, payload["updates"], {"id": payload["session_id"]}
        )
