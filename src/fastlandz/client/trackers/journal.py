"""Journal tracker.

Creating and editing entries follows the optimistic write path with
queue fallback. Deleting has no queued form and needs the store to be
reachable.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from fastlandz.client.sync.processor import JOURNAL_TABLE
from fastlandz.client.sync.types import OperationType
from fastlandz.client.trackers.base import (
    TRANSPORT_EXCEPTIONS,
    BaseTracker,
    OfflineError,
    ValidationError,
    WriteOutcome,
)
from fastlandz.core.types import JournalEntry

logger = logging.getLogger(__name__)

JOURNAL_KEY = "fastlandz_journal"


class JournalTracker(BaseTracker):
    """Tracks the user's journal entries, newest first."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        saved = self._read_local(JOURNAL_KEY) or []
        self._entries = [JournalEntry.from_dict(item) for item in saved]

    @property
    def entries(self) -> list[JournalEntry]:
        return list(self._entries)

    def get_entry(self, day: int) -> JournalEntry | None:
        return next((e for e in self._entries if e.day == day), None)

    def load(self) -> list[JournalEntry]:
        """Refresh entries from the store when online."""
        if not self._connectivity.is_online():
            return self.entries
        try:
            result = self._store.select(
                JOURNAL_TABLE, {"user_id": self.user_id}, order="date", descending=True
            )
        except TRANSPORT_EXCEPTIONS as e:
            self.last_error = str(e)
            return self.entries
        if result.error is not None:
            logger.warning("Could not load journal: %s", result.error)
            self.last_error = result.error.message
            return self.entries
        with self._lock:
            self._set([JournalEntry.from_row(row) for row in result.data])
        return self.entries

    def _set(self, entries: list[JournalEntry]) -> None:
        self._write_local(JOURNAL_KEY, [e.to_dict() for e in entries])
        self._entries = entries

    def add_entry(self, entry: JournalEntry) -> WriteOutcome:
        """Add an entry locally, then insert or queue it.

        Raises:
            ValidationError: The store rejected the entry.
            StorageError: Local storage failed.
        """
        with self._lock:
            previous = self._entries
            self._set([entry, *previous])
            row = entry.to_row(self.user_id)

            return self._write(
                OperationType.JOURNAL_CREATE,
                row,
                direct=lambda: self._store.insert(JOURNAL_TABLE, row),
                rollback=lambda: self._set(previous),
            )

    def update_entry(self, day: int, **changes: Any) -> WriteOutcome:
        """Edit the entry for ``day`` locally, then update or queue it.

        Args:
            day: Challenge day of the entry.
            **changes: Editable fields (mood, symptoms, pre_fast_meal,
                notes, completed).

        Raises:
            ValueError: If a field is not editable.
            ValidationError: The store rejected the update.
            StorageError: Local storage failed.
        """
        invalid = set(changes) - set(JournalEntry.EDITABLE)
        if invalid:
            raise ValueError(f"Fields not editable: {', '.join(sorted(invalid))}")

        with self._lock:
            previous = self._entries
            self._set([replace(e, **changes) if e.day == day else e for e in previous])
            updates = dict(changes)

            return self._write(
                OperationType.JOURNAL_UPDATE,
                {"user_id": self.user_id, "day": day, "updates": updates},
                direct=lambda: self._store.update(
                    JOURNAL_TABLE, updates, {"user_id": self.user_id, "day": day}
                ),
                rollback=lambda: self._set(previous),
            )

    def delete_entry(self, day: int) -> None:
        """Delete the entry for ``day`` locally and in the store.

        Raises:
            OfflineError: The store is unreachable; nothing was changed.
            ValidationError: The store rejected the delete; the entry is restored.
        """
        if not self._connectivity.is_online():
            raise OfflineError("Journal entries can only be deleted while online")

        with self._lock:
            previous = self._entries
            self._set([e for e in previous if e.day != day])

            try:
                result = self._store.delete(JOURNAL_TABLE, {"user_id": self.user_id, "day": day})
            except TRANSPORT_EXCEPTIONS as e:
                self._set(previous)
                raise OfflineError(f"Could not reach the store: {e}") from e

            if result.error is None:
                return
            self._set(previous)
            self.last_error = result.error.message
            if result.error.is_transient:
                raise OfflineError(f"Could not reach the store: {result.error}")
            raise ValidationError(result.error)
