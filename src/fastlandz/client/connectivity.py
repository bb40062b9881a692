"""Connectivity oracle and online/offline transition signal.

This module provides:
- ConnectivityMonitor: Protocol read by the sync engine and trackers
- ManualConnectivity: Status set by the host application
- HealthCheckConnectivity: Status probed from the store's health endpoint

is_online() is a plain read of the last status reported; it does not
guarantee that the next store call succeeds. Listeners receive the new
status on every transition and are removed with the callable returned
by add_listener().
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

from fastlandz.core.config import HEALTH_CHECK_INTERVAL

if TYPE_CHECKING:
    from fastlandz.client.store import RowStore

logger = logging.getLogger(__name__)

StatusListener = Callable[[bool], None]


class ConnectivityMonitor(Protocol):
    """Reports reachability and transitions between online and offline."""

    def is_online(self) -> bool: ...

    def add_listener(self, listener: StatusListener) -> Callable[[], None]: ...


class _BaseConnectivity:
    """Listener bookkeeping shared by the monitors."""

    def __init__(self, online: bool) -> None:
        self._online = online
        self._lock = threading.Lock()
        self._listeners: list[StatusListener] = []

    def is_online(self) -> bool:
        return self._online

    def add_listener(self, listener: StatusListener) -> Callable[[], None]:
        """Register a transition listener.

        Returns:
            Callable removing the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _set_status(self, online: bool) -> None:
        with self._lock:
            if online == self._online:
                return
            self._online = online
            listeners = list(self._listeners)

        if online:
            logger.info("Back online")
        else:
            logger.info("Gone offline - operations will be queued")

        for listener in listeners:
            try:
                listener(online)
            except Exception as e:
                logger.error("Connectivity listener failed: %s", e)


class ManualConnectivity(_BaseConnectivity):
    """Connectivity flag driven by the host application."""

    def __init__(self, online: bool = True) -> None:
        super().__init__(online)

    def set_online(self, online: bool) -> None:
        """Report a new status, notifying listeners on change."""
        self._set_status(online)


class HealthCheckConnectivity(_BaseConnectivity):
    """Connectivity probed by polling the store's health endpoint.

    Usage:
        monitor = HealthCheckConnectivity(store)
        monitor.start()
        ...
        monitor.stop()
    """

    def __init__(
        self,
        store: RowStore,
        check_interval: float = HEALTH_CHECK_INTERVAL,
    ) -> None:
        """Initialize the monitor.

        Args:
            store: Store whose health_check() defines reachability.
            check_interval: Seconds between probes.
        """
        super().__init__(online=False)
        self._store = store
        self._check_interval = check_interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def check(self) -> bool:
        """Probe the store once and update the status."""
        online = self._store.health_check()
        self._set_status(online)
        return online

    def start(self) -> None:
        """Probe once, then keep probing in a background thread."""
        if self._thread and self._thread.is_alive():
            logger.warning("HealthCheckConnectivity already running")
            return

        self.check()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="HealthCheckConnectivity",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop probing."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
            self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self._check_interval):
            self.check()

    def __enter__(self) -> HealthCheckConnectivity:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()
