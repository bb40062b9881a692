"""Tests for the durable operation queue."""

from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest
from conftest import FailingStorage

from fastlandz.client.storage import MemoryStorage, SQLiteStorage
from fastlandz.client.sync import (
    QUEUE_KEY,
    OperationQueue,
    OperationType,
    QueuedOperation,
    StorageError,
)


class TestOperationType:
    """Tests for OperationType."""

    def test_parse_known(self) -> None:
        """Stored values map back to members."""
        assert OperationType.parse("journal_create") is OperationType.JOURNAL_CREATE

    def test_parse_unknown(self) -> None:
        """Unknown values yield None instead of raising."""
        assert OperationType.parse("teleport") is None


class TestQueuedOperation:
    """Tests for QueuedOperation."""

    def test_create(self) -> None:
        """New operations start with zero retries."""
        op = QueuedOperation.create(OperationType.PROGRESS_UPDATE, {"user_id": "u1"})

        assert op.type == "progress_update"
        assert op.retry_count == 0
        assert op.id.startswith("progress_update_")
        assert op.enqueued_at > 0

    def test_with_retry(self) -> None:
        """Should return a copy with one more retry."""
        op = QueuedOperation.create(OperationType.PROGRESS_UPDATE, {})

        retried = op.with_retry()

        assert retried.retry_count == 1
        assert retried.id == op.id
        assert op.retry_count == 0

    def test_unknown_type_survives_loading(self) -> None:
        """Types are kept as strings so unknown ones can be rejected later."""
        op = QueuedOperation.from_dict(
            {"id": "x", "type": "legacy_op", "payload": {}, "enqueued_at": 1}
        )

        assert op.type == "legacy_op"
        assert op.retry_count == 0


class TestOperationQueue:
    """Tests for OperationQueue."""

    def test_empty(self, queue: OperationQueue) -> None:
        """A fresh queue has nothing pending."""
        assert queue.list() == []
        assert len(queue) == 0
        assert not queue

    def test_fifo_order(self, queue: OperationQueue) -> None:
        """Operations come back in enqueue order."""
        first = queue.enqueue(OperationType.JOURNAL_CREATE, {"day": 1})
        second = queue.enqueue(OperationType.JOURNAL_UPDATE, {"day": 1})
        third = queue.enqueue(OperationType.PROGRESS_UPDATE, {"updates": {}})

        assert [op.id for op in queue] == [first.id, second.id, third.id]

    def test_ids_unique_for_rapid_enqueues(self, queue: OperationQueue) -> None:
        """Enqueues within the same millisecond still get distinct ids."""
        ids = {queue.enqueue(OperationType.PROGRESS_UPDATE, {}).id for _ in range(200)}

        assert len(ids) == 200

    def test_persisted_as_single_json_array(
        self, queue: OperationQueue, storage: MemoryStorage
    ) -> None:
        """The whole queue lives under one storage key."""
        op = queue.enqueue(OperationType.PROGRESS_UPDATE, {"user_id": "u1"})

        stored = json.loads(storage.get(QUEUE_KEY))

        assert stored == [
            {
                "id": op.id,
                "type": "progress_update",
                "payload": {"user_id": "u1"},
                "enqueued_at": op.enqueued_at,
                "retry_count": 0,
            }
        ]

    def test_survives_restart(self, tmp_path: Path) -> None:
        """A queue reopened over the same database sees earlier operations."""
        db_path = tmp_path / "local.db"
        with SQLiteStorage(db_path) as storage:
            op = OperationQueue(storage).enqueue(OperationType.JOURNAL_CREATE, {"day": 2})

        with SQLiteStorage(db_path) as storage:
            pending = OperationQueue(storage).list()

        assert [p.id for p in pending] == [op.id]
        assert pending[0].payload == {"day": 2}

    def test_replace(self, queue: OperationQueue) -> None:
        """replace() overwrites the queue in one write."""
        first = queue.enqueue(OperationType.PROGRESS_UPDATE, {})
        queue.enqueue(OperationType.PROGRESS_UPDATE, {})

        queue.replace([first.with_retry()])

        pending = queue.list()
        assert [op.id for op in pending] == [first.id]
        assert pending[0].retry_count == 1

    def test_clear(self, queue: OperationQueue, storage: MemoryStorage) -> None:
        """clear() returns how many operations were removed."""
        queue.enqueue(OperationType.PROGRESS_UPDATE, {})
        queue.enqueue(OperationType.PROGRESS_UPDATE, {})

        assert queue.clear() == 2
        assert queue.list() == []
        assert QUEUE_KEY not in storage

    def test_clear_corrupt_queue(self, queue: OperationQueue, storage: MemoryStorage) -> None:
        """An unreadable queue can still be cleared."""
        storage.set(QUEUE_KEY, "{not json")

        assert queue.clear() == 0
        assert QUEUE_KEY not in storage

    def test_corrupt_queue_raises(self, queue: OperationQueue, storage: MemoryStorage) -> None:
        """Corrupt data is a storage error, not an empty queue."""
        storage.set(QUEUE_KEY, '[{"type": "progress_update"}]')

        with pytest.raises(StorageError, match="Corrupt"):
            queue.list()

    def test_status(self, queue: OperationQueue) -> None:
        """status() reports pending count and oldest timestamp."""
        assert queue.status().pending == 0
        assert queue.status().oldest_timestamp is None

        first = queue.enqueue(OperationType.PROGRESS_UPDATE, {})
        queue.enqueue(OperationType.PROGRESS_UPDATE, {})

        status = queue.status()
        assert status.pending == 2
        assert status.oldest_timestamp == first.enqueued_at

    def test_enqueue_storage_failure(self) -> None:
        """A failed write raises and leaves the queue as it was."""
        storage = FailingStorage()
        queue = OperationQueue(storage)
        queue.enqueue(OperationType.PROGRESS_UPDATE, {})

        storage.fail_writes = True
        with pytest.raises(StorageError):
            queue.enqueue(OperationType.PROGRESS_UPDATE, {})

        assert len(queue) == 1

    def test_concurrent_enqueues(self, queue: OperationQueue) -> None:
        """Enqueues from several threads are all kept."""

        def worker() -> None:
            for _ in range(25):
                queue.enqueue(OperationType.PROGRESS_UPDATE, {})

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(queue) == 100
