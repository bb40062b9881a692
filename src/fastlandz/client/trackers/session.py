"""Fast session tracker.

Starting a fast inserts a fast_sessions row directly; there is no queued
form of an insert, so a fast started offline stays local-only. Pausing,
resuming, completing and failing a fast are fast_session_update writes
keyed by the session id, and go through the queue when needed.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from fastlandz.client.store import StoreResult
from fastlandz.client.sync.processor import SESSIONS_TABLE
from fastlandz.client.sync.types import OperationType
from fastlandz.client.trackers.base import (
    TRANSPORT_EXCEPTIONS,
    BaseTracker,
    ValidationError,
    WriteOutcome,
)
from fastlandz.core.timer import from_iso, now_ms, pause_fast, resume_fast, target_end, to_iso
from fastlandz.core.types import FastState

logger = logging.getLogger(__name__)

FAST_STATE_KEY = "fastlandz_faststate"


def state_from_row(row: dict[str, Any]) -> FastState:
    """Build a FastState from a fast_sessions row."""
    paused_at = row.get("paused_at")
    return FastState(
        is_active=bool(row.get("is_active")),
        start_time=from_iso(row["start_time"]),
        target_end_time=from_iso(row["target_end_time"]),
        duration_hours=row["duration_hours"],
        is_paused=bool(row.get("is_paused")),
        paused_at=from_iso(paused_at) if paused_at else None,
        total_paused_time=row.get("total_paused_time") or 0,
        session_id=row.get("id"),
    )


class FastSessionTracker(BaseTracker):
    """Tracks the running fast and mirrors it to the store."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        saved = self._read_local(FAST_STATE_KEY)
        self._state = FastState.from_dict(saved) if saved else FastState.idle()

    @property
    def state(self) -> FastState:
        return self._state

    def _set(self, state: FastState) -> None:
        self._write_local(FAST_STATE_KEY, state.to_dict())
        self._state = state

    def _select_active(self, columns: str = "*") -> StoreResult:
        return self._store.select(
            SESSIONS_TABLE,
            {"user_id": self.user_id, "is_active": True},
            columns=columns,
            order="created_at",
            descending=True,
            limit=1,
        )

    def load(self) -> FastState:
        """Refresh the active session from the store when online."""
        if not self._connectivity.is_online():
            return self._state
        try:
            result = self._select_active()
        except TRANSPORT_EXCEPTIONS as e:
            self.last_error = str(e)
            return self._state
        if result.error is not None:
            logger.warning("Could not load active fast: %s", result.error)
            self.last_error = result.error.message
            return self._state
        row = result.first()
        if row is not None:
            with self._lock:
                self._set(state_from_row(row))
        return self._state

    def active_session_id(self) -> str | None:
        """Id of the active session row, if one is known or can be found."""
        if self._state.session_id:
            return self._state.session_id
        if not self._state.is_active or not self._connectivity.is_online():
            return None
        try:
            result = self._select_active(columns="id")
        except TRANSPORT_EXCEPTIONS:
            return None
        row = result.first() if result.ok else None
        return row["id"] if row else None

    def start(self, duration_hours: float, day: int, start_time: int | None = None) -> WriteOutcome:
        """Start a fast now (or at ``start_time``).

        Raises:
            ValueError: If a fast is already running.
            ValidationError: The store rejected the session.
        """
        start_time = now_ms() if start_time is None else start_time
        with self._lock:
            if self._state.is_active:
                raise ValueError("A fast is already active")

            previous = self._state
            state = FastState(
                is_active=True,
                start_time=start_time,
                target_end_time=target_end(start_time, duration_hours),
                duration_hours=duration_hours,
            )
            self._set(state)

            if not self._connectivity.is_online():
                logger.info("Offline, fast for day %d kept local only", day)
                return WriteOutcome.LOCAL_ONLY

            row = {
                "user_id": self.user_id,
                "day": day,
                "start_time": to_iso(start_time),
                "target_end_time": to_iso(state.target_end_time),
                "duration_hours": duration_hours,
                "is_active": True,
                "is_paused": False,
                "total_paused_time": 0,
            }
            try:
                result = self._store.insert(SESSIONS_TABLE, row)
            except TRANSPORT_EXCEPTIONS as e:
                logger.warning("Could not record fast, kept local only: %s", e)
                return WriteOutcome.LOCAL_ONLY

            if result.error is None:
                inserted = result.first()
                if inserted and inserted.get("id"):
                    self._set(replace(state, session_id=inserted["id"]))
                return WriteOutcome.WRITTEN
            if result.error.is_transient:
                logger.warning("Could not record fast, kept local only: %s", result.error)
                return WriteOutcome.LOCAL_ONLY

            self.last_error = result.error.message
            self._set(previous)
            raise ValidationError(result.error)

    def pause(self, now: int | None = None) -> WriteOutcome:
        """Pause the running fast."""
        now = now_ms() if now is None else now
        with self._lock:
            current = self._require_active()
            paused = pause_fast(current, now)
            if paused is current:
                return WriteOutcome.UNCHANGED
            return self._update(
                paused,
                {
                    "is_paused": True,
                    "paused_at": to_iso(now),
                    "total_paused_time": paused.total_paused_time,
                },
            )

    def resume(self, now: int | None = None) -> WriteOutcome:
        """Resume the paused fast, accumulating the pause length."""
        now = now_ms() if now is None else now
        with self._lock:
            current = self._require_active()
            resumed = resume_fast(current, now)
            if resumed is current:
                return WriteOutcome.UNCHANGED
            return self._update(
                resumed,
                {
                    "is_paused": False,
                    "paused_at": None,
                    "total_paused_time": resumed.total_paused_time,
                },
            )

    def complete(self, now: int | None = None) -> WriteOutcome:
        """End the fast as completed."""
        return self._finish("completed", now)

    def fail(self, now: int | None = None) -> WriteOutcome:
        """End the fast as failed."""
        return self._finish("failed", now)

    def _finish(self, outcome_column: str, now: int | None) -> WriteOutcome:
        now = now_ms() if now is None else now
        with self._lock:
            self._require_active()
            return self._update(
                FastState.idle(),
                {
                    "is_active": False,
                    outcome_column: True,
                    "actual_end_time": to_iso(now),
                },
            )

    def _require_active(self) -> FastState:
        if not self._state.is_active:
            raise ValueError("No active fast")
        return self._state

    def _update(self, new_state: FastState, updates: dict[str, Any]) -> WriteOutcome:
        """Apply new_state locally and write the session updates."""
        previous = self._state
        session_id = self.active_session_id()
        if session_id and new_state.is_active:
            new_state = replace(new_state, session_id=session_id)
        self._set(new_state)

        if session_id is None:
            logger.debug("No session row for this fast, change kept local only")
            return WriteOutcome.LOCAL_ONLY

        return self._write(
            OperationType.FAST_SESSION_UPDATE,
            {"session_id": session_id, "updates": updates},
            direct=lambda: self._store.update(SESSIONS_TABLE, updates, {"id": session_id}),
            rollback=lambda: self._set(previous),
        )
