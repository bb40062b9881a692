"""Challenge progress tracker."""

from __future__ import annotations

import logging
from dataclasses import fields
from typing import Any

from fastlandz.client.sync.processor import PROGRESS_TABLE
from fastlandz.client.sync.types import OperationType
from fastlandz.client.trackers.base import TRANSPORT_EXCEPTIONS, BaseTracker, WriteOutcome
from fastlandz.core.types import UserProgress

logger = logging.getLogger(__name__)

PROGRESS_KEY = "fastlandz_progress"

PROGRESS_COLUMNS = frozenset(f.name for f in fields(UserProgress))


class ProgressTracker(BaseTracker):
    """Tracks the user's progress through the challenge days."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        saved = self._read_local(PROGRESS_KEY)
        self._progress = UserProgress.from_dict(saved) if saved else UserProgress()

    @property
    def progress(self) -> UserProgress:
        return self._progress

    def load(self) -> UserProgress:
        """Refresh progress from the store when online.

        Store failures are recorded in ``last_error`` and the local copy
        is kept.
        """
        if not self._connectivity.is_online():
            return self._progress
        try:
            result = self._store.select(PROGRESS_TABLE, {"user_id": self.user_id}, limit=1)
        except TRANSPORT_EXCEPTIONS as e:
            self.last_error = str(e)
            return self._progress
        if result.error is not None:
            logger.warning("Could not load progress: %s", result.error)
            self.last_error = result.error.message
            return self._progress
        row = result.first()
        if row is not None:
            with self._lock:
                self._set(UserProgress.from_row(row))
        return self._progress

    def _set(self, progress: UserProgress) -> None:
        self._write_local(PROGRESS_KEY, progress.to_dict())
        self._progress = progress

    def update_progress(self, **changes: Any) -> WriteOutcome:
        """Apply changes locally, then write or queue them.

        Args:
            **changes: UserProgress fields to change (e.g. current_day=3).

        Raises:
            ValueError: If a field name is unknown.
            ValidationError: The store rejected the update.
            StorageError: Local storage failed.
        """
        unknown = set(changes) - PROGRESS_COLUMNS
        if unknown:
            raise ValueError(f"Unknown progress fields: {', '.join(sorted(unknown))}")

        with self._lock:
            previous = self._progress
            updated = previous.with_changes(**changes)
            self._set(updated)

            row = updated.to_row()
            updates = {column: row[column] for column in changes}

            def rollback() -> None:
                self._set(previous)

            return self._write(
                OperationType.PROGRESS_UPDATE,
                {"user_id": self.user_id, "updates": updates},
                direct=lambda: self._store.update(
                    PROGRESS_TABLE, updates, {"user_id": self.user_id}
                ),
                rollback=rollback,
            )
