"""Tests for ConnectivityWatcher."""

from __future__ import annotations

import time

import pytest
from conftest import FlakyStore

from fastlandz.client.connectivity import ManualConnectivity
from fastlandz.client.storage import MemoryStorage
from fastlandz.client.sync import (
    QUEUE_KEY,
    ConnectivityWatcher,
    DrainResult,
    OperationProcessor,
    OperationQueue,
    OperationType,
    SyncEngine,
)

# Long enough that the timer never fires during a test
NO_TIMER = 3600.0


def wait_for(condition, timeout: float = 2.0) -> bool:  # type: ignore[no-untyped-def]
    """Poll until condition() is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


@pytest.fixture
def engine(
    queue: OperationQueue, store: FlakyStore, connectivity: ManualConnectivity
) -> SyncEngine:
    return SyncEngine(queue, OperationProcessor(store), connectivity)


def enqueue_entry(queue: OperationQueue, day: int = 1) -> None:
    queue.enqueue(
        OperationType.JOURNAL_CREATE,
        {"user_id": "u1", "day": day, "date": f"2025-01-0{day}"},
    )


class TestTransitions:
    """Tests for draining on connectivity changes."""

    def test_drains_when_back_online(
        self,
        engine: SyncEngine,
        queue: OperationQueue,
        store: FlakyStore,
        connectivity: ManualConnectivity,
    ) -> None:
        """Going online drains the queue."""
        connectivity.set_online(False)
        enqueue_entry(queue)
        results: list[DrainResult] = []

        with ConnectivityWatcher(
            engine, connectivity, interval=NO_TIMER, on_result=results.append
        ):
            connectivity.set_online(True)

        assert queue.list() == []
        assert len(store.rows("journal_entries")) == 1
        assert results[0].processed == 1

    def test_going_offline_does_not_drain(
        self,
        engine: SyncEngine,
        queue: OperationQueue,
        store: FlakyStore,
        connectivity: ManualConnectivity,
    ) -> None:
        """Only offline -> online transitions drain."""
        enqueue_entry(queue)

        with ConnectivityWatcher(engine, connectivity, interval=NO_TIMER):
            connectivity.set_online(False)

        assert len(queue) == 1
        assert store.calls == []

    def test_stop_unsubscribes(
        self, engine: SyncEngine, queue: OperationQueue, connectivity: ManualConnectivity
    ) -> None:
        """After stop() transitions are ignored and the listener is gone."""
        watcher = ConnectivityWatcher(engine, connectivity, interval=NO_TIMER)
        watcher.start()
        assert connectivity.listener_count == 1
        assert watcher.is_running

        watcher.stop()
        assert connectivity.listener_count == 0
        assert not watcher.is_running

        connectivity.set_online(False)
        enqueue_entry(queue)
        connectivity.set_online(True)
        assert len(queue) == 1

    def test_start_twice_registers_once(
        self, engine: SyncEngine, connectivity: ManualConnectivity
    ) -> None:
        """start() is idempotent while running."""
        watcher = ConnectivityWatcher(engine, connectivity, interval=NO_TIMER)
        watcher.start()
        watcher.start()

        assert connectivity.listener_count == 1
        watcher.stop()

    def test_drain_errors_are_contained(
        self, engine: SyncEngine, storage: MemoryStorage, connectivity: ManualConnectivity
    ) -> None:
        """A storage failure during a drain does not reach the notifier."""
        connectivity.set_online(False)
        storage.set(QUEUE_KEY, "garbage")
        results: list[DrainResult] = []

        with ConnectivityWatcher(
            engine, connectivity, interval=NO_TIMER, on_result=results.append
        ):
            connectivity.set_online(True)

        assert results == []


class TestTick:
    """Tests for the periodic check."""

    def test_offline_tick(
        self,
        engine: SyncEngine,
        queue: OperationQueue,
        store: FlakyStore,
        connectivity: ManualConnectivity,
    ) -> None:
        """Ticks do nothing while offline."""
        enqueue_entry(queue)
        connectivity.set_online(False)

        assert ConnectivityWatcher(engine, connectivity).tick() is None
        assert len(queue) == 1

    def test_empty_tick(self, engine: SyncEngine, connectivity: ManualConnectivity) -> None:
        """Ticks skip the drain when nothing is pending."""
        assert ConnectivityWatcher(engine, connectivity).tick() is None
        assert engine.last_result is None

    def test_tick_drains_pending(
        self, engine: SyncEngine, queue: OperationQueue, connectivity: ManualConnectivity
    ) -> None:
        """Ticks drain when online with work pending."""
        enqueue_entry(queue)

        result = ConnectivityWatcher(engine, connectivity).tick()

        assert result is not None
        assert result.processed == 1

    def test_timer_drains_periodically(
        self, engine: SyncEngine, queue: OperationQueue, connectivity: ManualConnectivity
    ) -> None:
        """The background timer picks up operations queued while online."""
        with ConnectivityWatcher(engine, connectivity, interval=0.05):
            enqueue_entry(queue)
            assert wait_for(lambda: len(queue) == 0)


class TestCallbackFailures:
    """Tests for a failing on_result callback."""

    @staticmethod
    def broken_callback(result: DrainResult) -> None:
        raise RuntimeError("display went away")

    def test_tick_returns_result(
        self, engine: SyncEngine, queue: OperationQueue, connectivity: ManualConnectivity
    ) -> None:
        """The drain result survives a callback that raises."""
        enqueue_entry(queue)
        watcher = ConnectivityWatcher(engine, connectivity, on_result=self.broken_callback)

        result = watcher.tick()

        assert result is not None
        assert result.processed == 1
        assert queue.list() == []

    def test_timer_keeps_running(
        self, engine: SyncEngine, queue: OperationQueue, connectivity: ManualConnectivity
    ) -> None:
        """Later ticks still drain after the callback has raised."""
        with ConnectivityWatcher(
            engine, connectivity, interval=0.05, on_result=self.broken_callback
        ) as watcher:
            enqueue_entry(queue, day=1)
            assert wait_for(lambda: len(queue) == 0)

            enqueue_entry(queue, day=2)
            assert wait_for(lambda: len(queue) == 0)
            assert watcher.is_running
