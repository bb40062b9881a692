"""Core module - Shared config, domain types and timer math."""

from fastlandz.core.config import (
    HEALTH_CHECK_INTERVAL,
    MAX_RETRIES,
    SYNC_INTERVAL,
    StoreConfig,
    SyncSettings,
)
from fastlandz.core.timer import pause_fast, remaining_ms, resume_fast
from fastlandz.core.types import FastState, JournalEntry, UserProgress

__all__ = [
    # Config
    "HEALTH_CHECK_INTERVAL",
    "MAX_RETRIES",
    "SYNC_INTERVAL",
    "StoreConfig",
    "SyncSettings",
    # Domain types
    "FastState",
    "JournalEntry",
    "UserProgress",
    # Timer
    "pause_fast",
    "remaining_ms",
    "resume_fast",
]
