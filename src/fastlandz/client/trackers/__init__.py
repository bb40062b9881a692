"""Domain trackers: optimistic local writes with offline queue fallback."""

from fastlandz.client.trackers.base import (
    BaseTracker,
    OfflineError,
    TrackerError,
    ValidationError,
    WriteOutcome,
)
from fastlandz.client.trackers.journal import JOURNAL_KEY, JournalTracker
from fastlandz.client.trackers.progress import PROGRESS_KEY, ProgressTracker
from fastlandz.client.trackers.session import FAST_STATE_KEY, FastSessionTracker

__all__ = [
    "FAST_STATE_KEY",
    "JOURNAL_KEY",
    "PROGRESS_KEY",
    "BaseTracker",
    "FastSessionTracker",
    "JournalTracker",
    "OfflineError",
    "ProgressTracker",
    "TrackerError",
    "ValidationError",
    "WriteOutcome",
]
