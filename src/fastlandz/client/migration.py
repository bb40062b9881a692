"""One-time migration of locally kept challenge data to the remote store.

This module provides:
- MigrationResult: What was migrated and what failed
- LocalDataMigrator: Pushes local progress, journal and active fast

Used after a user signs in for the first time on a device that was used
without an account. Local keys are cleared only when every step
succeeded, so a failed migration can be retried.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fastlandz.client.store import APIError
from fastlandz.client.sync.processor import JOURNAL_TABLE, PROGRESS_TABLE, SESSIONS_TABLE
from fastlandz.client.trackers import FAST_STATE_KEY, JOURNAL_KEY, PROGRESS_KEY
from fastlandz.core.timer import to_iso
from fastlandz.core.types import FastState, JournalEntry, UserProgress

if TYPE_CHECKING:
    from fastlandz.client.storage import LocalStorage
    from fastlandz.client.store import RowStore

logger = logging.getLogger(__name__)

MIGRATED_KEY = "fastlandz_migrated"
LOCAL_KEYS = (PROGRESS_KEY, JOURNAL_KEY, FAST_STATE_KEY)

# Day recorded for a migrated fast; the local state does not keep it
DEFAULT_SESSION_DAY = 1


@dataclass
class MigrationResult:
    """Outcome of a migration run."""

    success: bool = True
    progress_migrated: bool = False
    journal_entries_migrated: int = 0
    fast_session_migrated: bool = False
    errors: list[str] = field(default_factory=list)


class LocalDataMigrator:
    """Copies local challenge data into the remote store for one user."""

    def __init__(self, store: RowStore, storage: LocalStorage) -> None:
        self._store = store
        self._storage = storage

    def has_been_migrated(self) -> bool:
        return self._storage.get(MIGRATED_KEY) == "true"

    def has_local_data(self) -> bool:
        return any(self._storage.get(key) for key in LOCAL_KEYS)

    def reset_migration_flag(self) -> None:
        self._storage.remove(MIGRATED_KEY)

    def _load(self, key: str) -> object | None:
        raw = self._storage.get(key)
        return json.loads(raw) if raw else None

    def migrate(self, user_id: str) -> MigrationResult:
        """Migrate all local data for ``user_id``.

        Each step is independent: a failure is recorded in
        ``errors`` and the remaining steps still run.
        """
        result = MigrationResult()

        steps = (
            ("Progress", self._migrate_progress),
            ("Journal", self._migrate_journal),
            ("Fast session", self._migrate_fast_session),
        )
        for label, step in steps:
            try:
                step(user_id, result)
            except (APIError, ValueError, KeyError, TypeError) as e:
                logger.error("%s migration failed: %s", label, e)
                result.errors.append(f"{label} migration error: {e}")

        if result.errors:
            result.success = False
            return result

        for key in LOCAL_KEYS:
            self._storage.remove(key)
        self._storage.set(MIGRATED_KEY, "true")
        logger.info(
            "Migrated local data for %s (progress=%s, journal=%d, fast=%s)",
            user_id,
            result.progress_migrated,
            result.journal_entries_migrated,
            result.fast_session_migrated,
        )
        return result

    def _migrate_progress(self, user_id: str, result: MigrationResult) -> None:
        data = self._load(PROGRESS_KEY)
        if not data:
            return
        progress = UserProgress.from_dict(data)

        existing = self._store.select(
            PROGRESS_TABLE, {"user_id": user_id}, columns="id", limit=1
        ).raise_for_error()
        if existing.first() is None:
            self._store.insert(
                PROGRESS_TABLE, {"user_id": user_id, **progress.to_row()}
            ).raise_for_error()
        else:
            self._store.update(
                PROGRESS_TABLE, progress.to_row(), {"user_id": user_id}
            ).raise_for_error()
        result.progress_migrated = True

    def _migrate_journal(self, user_id: str, result: MigrationResult) -> None:
        data = self._load(JOURNAL_KEY)
        if not data:
            return
        entries = [JournalEntry.from_dict(item) for item in data]

        existing = self._store.select(
            JOURNAL_TABLE, {"user_id": user_id}, columns="day"
        ).raise_for_error()
        existing_days = {row["day"] for row in existing.data}

        rows = [e.to_row(user_id) for e in entries if e.day not in existing_days]
        if rows:
            self._store.insert(JOURNAL_TABLE, rows).raise_for_error()
        result.journal_entries_migrated = len(rows)

    def _migrate_fast_session(self, user_id: str, result: MigrationResult) -> None:
        data = self._load(FAST_STATE_KEY)
        if not data:
            return
        state = FastState.from_dict(data)
        if not state.is_active or state.start_time is None or state.target_end_time is None:
            return

        active = self._store.select(
            SESSIONS_TABLE, {"user_id": user_id, "is_active": True}, columns="id"
        ).raise_for_error()
        if active.data:
            return

        self._store.insert(
            SESSIONS_TABLE,
            {
                "user_id": user_id,
                "day": DEFAULT_SESSION_DAY,
                "start_time": to_iso(state.start_time),
                "target_end_time": to_iso(state.target_end_time),
                "duration_hours": state.duration_hours,
                "is_active": True,
                "is_paused": state.is_paused,
                "paused_at": to_iso(state.paused_at) if state.paused_at is not None else None,
                "total_paused_time": state.total_paused_time,
            },
        ).raise_for_error()
        result.fast_session_migrated = True
