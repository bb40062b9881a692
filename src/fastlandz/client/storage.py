"""Durable local key-value storage.

This module provides:
- LocalStorage: Protocol for synchronous string get/set by key
- SQLiteStorage: SQLite-backed storage that survives restarts
- MemoryStorage: Dict-backed storage for tests and throwaway sessions

Each ``set`` is a single ``INSERT OR REPLACE`` committed in its own
transaction, so a reader sees either the previous value or the new one,
never a partial write. Failures raise StorageError.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Protocol

from fastlandz.client.sync.types import StorageError

logger = logging.getLogger(__name__)


class LocalStorage(Protocol):
    """Key-value string store available while the remote is unreachable."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class SQLiteStorage:
    """SQLite-backed key-value storage.

    Attributes:
        db_path: Path of the SQLite database file.
    """

    def __init__(self, db_path: Path) -> None:
        """Open (or create) the storage database.

        Args:
            db_path: Path to SQLite database file.

        Raises:
            StorageError: If the database cannot be opened.
        """
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                isolation_level=None,  # Autocommit mode, one statement per write
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS local_storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open local storage at {self.db_path}: {e}") from e
        logger.debug("Opened local storage at %s", self.db_path)

    def get(self, key: str) -> str | None:
        with self._lock:
            try:
                row = self._conn.execute(
                    "SELECT value FROM local_storage WHERE key = ?", (key,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to read {key!r}: {e}") from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            try:
                self._conn.execute(
                    "INSERT OR REPLACE INTO local_storage (key, value) VALUES (?, ?)",
                    (key, value),
                )
            except sqlite3.Error as e:
                raise StorageError(f"Failed to write {key!r}: {e}") from e

    def remove(self, key: str) -> None:
        with self._lock:
            try:
                self._conn.execute("DELETE FROM local_storage WHERE key = ?", (key,))
            except sqlite3.Error as e:
                raise StorageError(f"Failed to remove {key!r}: {e}") from e

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    def __enter__(self) -> SQLiteStorage:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class MemoryStorage:
    """Dict-backed storage with the same contract as SQLiteStorage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._data
