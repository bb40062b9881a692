"""Connectivity watcher deciding when to drain the queue.

This module provides:
- ConnectivityWatcher: Drains on offline -> online transitions and on a
  periodic timer while online

The watcher owns two resources, a connectivity listener and a timer
thread. stop() releases both; use the watcher as a context manager to
make that automatic.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from fastlandz.client.sync.types import DrainCallback, DrainResult, SyncError
from fastlandz.core.config import SYNC_INTERVAL

if TYPE_CHECKING:
    from fastlandz.client.connectivity import ConnectivityMonitor
    from fastlandz.client.sync.engine import SyncEngine

logger = logging.getLogger(__name__)


class ConnectivityWatcher:
    """Triggers SyncEngine.drain() at the right moments.

    Usage:
        with ConnectivityWatcher(engine, connectivity) as watcher:
            ...  # drains happen in the background
    """

    def __init__(
        self,
        engine: SyncEngine,
        connectivity: ConnectivityMonitor,
        interval: float = SYNC_INTERVAL,
        on_result: DrainCallback | None = None,
    ) -> None:
        """Initialize the watcher.

        Args:
            engine: Sync engine to drive.
            connectivity: Source of status and transitions.
            interval: Seconds between periodic checks.
            on_result: Optional callback receiving each drain result.
        """
        self._engine = engine
        self._connectivity = connectivity
        self._interval = interval
        self._on_result = on_result

        self._unsubscribe: Callable[[], None] | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Subscribe to transitions and start the periodic timer."""
        if self.is_running:
            return

        self._unsubscribe = self._connectivity.add_listener(self._on_status_change)
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_timer,
            name="ConnectivityWatcher",
            daemon=True,
        )
        self._thread.start()
        logger.info("Connectivity watcher started (interval %.0fs)", self._interval)

    def stop(self) -> None:
        """Cancel the transition listener and the periodic timer."""
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
            self._thread = None
        logger.info("Connectivity watcher stopped")

    def __enter__(self) -> ConnectivityWatcher:
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.stop()

    def _on_status_change(self, online: bool) -> None:
        if online:
            logger.info("Back online - processing sync queue")
            self._drain()

    def _run_timer(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Error during periodic sync check")

    def tick(self) -> DrainResult | None:
        """Periodic check: drain only when online with work pending."""
        if not self._connectivity.is_online():
            return None
        try:
            pending = len(self._engine.queue)
        except SyncError as e:
            logger.error("Cannot read sync queue: %s", e)
            return None
        if pending == 0:
            return None
        return self._drain()

    def _drain(self) -> DrainResult | None:
        try:
            result = self._engine.drain()
        except SyncError as e:
            logger.error("Drain failed: %s", e)
            return None
        if self._on_result:
            try:
                self._on_result(result)
            except Exception:
                logger.exception("Drain result callback failed")
        return result
