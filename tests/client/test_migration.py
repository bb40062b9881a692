"""Tests for migrating local data to the remote store."""

from __future__ import annotations

import json

import pytest
from conftest import FlakyStore

from fastlandz.client.migration import MIGRATED_KEY, LocalDataMigrator
from fastlandz.client.storage import MemoryStorage
from fastlandz.client.store import ErrorKind
from fastlandz.client.trackers import FAST_STATE_KEY, JOURNAL_KEY, PROGRESS_KEY
from fastlandz.core.timer import MS_PER_HOUR, to_iso
from fastlandz.core.types import FastState, JournalEntry, UserProgress

START = 1735689600000


@pytest.fixture
def local_storage() -> MemoryStorage:
    """Storage holding progress, two journal entries and a running fast."""
    fast = FastState(
        is_active=True,
        start_time=START,
        target_end_time=START + 16 * MS_PER_HOUR,
        duration_hours=16,
    )
    return MemoryStorage(
        {
            PROGRESS_KEY: json.dumps(UserProgress(current_day=3, unlocked_days=3).to_dict()),
            JOURNAL_KEY: json.dumps(
                [
                    JournalEntry(day=2, date="2025-01-02", mood="tired").to_dict(),
                    JournalEntry(day=1, date="2025-01-01", mood="fine").to_dict(),
                ]
            ),
            FAST_STATE_KEY: json.dumps(fast.to_dict()),
        }
    )


class TestLocalDataMigrator:
    """Tests for LocalDataMigrator."""

    def test_has_local_data(self, store: FlakyStore, local_storage: MemoryStorage) -> None:
        """Should detect any of the local keys."""
        assert LocalDataMigrator(store, local_storage).has_local_data() is True
        assert LocalDataMigrator(store, MemoryStorage()).has_local_data() is False

    def test_migrates_everything(self, store: FlakyStore, local_storage: MemoryStorage) -> None:
        """A clean run copies all data, clears local keys and sets the flag."""
        migrator = LocalDataMigrator(store, local_storage)

        result = migrator.migrate("u1")

        assert result.success is True
        assert result.progress_migrated is True
        assert result.journal_entries_migrated == 2
        assert result.fast_session_migrated is True

        [progress] = store.rows("user_progress")
        assert (progress["user_id"], progress["current_day"]) == ("u1", 3)
        assert {r["day"] for r in store.rows("journal_entries")} == {1, 2}
        [fast] = store.rows("fast_sessions")
        assert fast["start_time"] == to_iso(START)
        assert fast["is_active"] is True

        for key in (PROGRESS_KEY, JOURNAL_KEY, FAST_STATE_KEY):
            assert key not in local_storage
        assert migrator.has_been_migrated() is True

    def test_updates_existing_progress(self, store: FlakyStore, local_storage: MemoryStorage) -> None:
        """An existing progress row is updated, not duplicated."""
        store.inner.insert("user_progress", {"user_id": "u1", "current_day": 1})

        LocalDataMigrator(store, local_storage).migrate("u1")

        [progress] = store.rows("user_progress")
        assert progress["current_day"] == 3

    def test_skips_existing_journal_days(
        self, store: FlakyStore, local_storage: MemoryStorage
    ) -> None:
        """Days already in the store are left alone."""
        store.inner.insert("journal_entries", {"user_id": "u1", "day": 1, "mood": "remote"})

        result = LocalDataMigrator(store, local_storage).migrate("u1")

        assert result.journal_entries_migrated == 1
        moods = {r["day"]: r["mood"] for r in store.rows("journal_entries")}
        assert moods == {1: "remote", 2: "tired"}

    def test_keeps_remote_active_fast(
        self, store: FlakyStore, local_storage: MemoryStorage
    ) -> None:
        """A fast already running remotely wins over the local one."""
        store.inner.insert("fast_sessions", {"id": "s1", "user_id": "u1", "is_active": True})

        result = LocalDataMigrator(store, local_storage).migrate("u1")

        assert result.fast_session_migrated is False
        assert len(store.rows("fast_sessions")) == 1

    def test_failure_keeps_local_data(
        self, store: FlakyStore, local_storage: MemoryStorage
    ) -> None:
        """Errors are collected and local data kept for a retry."""
        store.fail_next(ErrorKind.SERVER)
        migrator = LocalDataMigrator(store, local_storage)

        result = migrator.migrate("u1")

        assert result.success is False
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Progress migration error")
        # The other steps still ran
        assert result.journal_entries_migrated == 2
        assert PROGRESS_KEY in local_storage
        assert migrator.has_been_migrated() is False

    def test_nothing_to_migrate(self, store: FlakyStore) -> None:
        """An empty device migrates trivially."""
        result = LocalDataMigrator(store, MemoryStorage()).migrate("u1")

        assert result.success is True
        assert store.calls == []

    def test_reset_migration_flag(self, store: FlakyStore) -> None:
        """The flag can be cleared to migrate again."""
        storage = MemoryStorage({MIGRATED_KEY: "true"})
        migrator = LocalDataMigrator(store, storage)
        assert migrator.has_been_migrated() is True

        migrator.reset_migration_flag()

        assert migrator.has_been_migrated() is False
