"""Offline sync queue.

Architecture:
    Trackers → OperationQueue → SyncEngine → OperationProcessor → RowStore
                                    ▲
                          ConnectivityWatcher

Components:
- **OperationQueue**: Durable FIFO log of writes that could not reach the store
- **OperationProcessor**: Replays one operation as one store call
- **OperationAttempt**: Per-operation retry state machine
- **SyncEngine**: Drains the queue with a bounded retry budget
- **ConnectivityWatcher**: Drains on reconnect and periodically while online

All public symbols are re-exported here.
"""

from fastlandz.client.sync.engine import SyncEngine
from fastlandz.client.sync.processor import OperationProcessor
from fastlandz.client.sync.queue import QUEUE_KEY, OperationQueue
from fastlandz.client.sync.retry import OperationAttempt, OperationState
from fastlandz.client.sync.types import (
    DrainCallback,
    DrainResult,
    DroppedCallback,
    OperationType,
    ProcessResult,
    QueuedOperation,
    QueueStatus,
    StorageError,
    SyncError,
)
from fastlandz.client.sync.watcher import ConnectivityWatcher

__all__ = [
    # Queue
    "QUEUE_KEY",
    "OperationQueue",
    # Processing
    "OperationAttempt",
    "OperationProcessor",
    "OperationState",
    "SyncEngine",
    "ConnectivityWatcher",
    # Types
    "DrainCallback",
    "DrainResult",
    "DroppedCallback",
    "OperationType",
    "ProcessResult",
    "QueueStatus",
    "QueuedOperation",
    "StorageError",
    "SyncError",
]
