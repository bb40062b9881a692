"""Shared domain types for fastlandz.

This module defines the challenge state held by the client:
- UserProgress: Which days are unlocked, completed or failed
- JournalEntry: One journal page per challenge day
- FastState: The running (or idle) fast timer

Each type converts to the camelCase dict kept in local storage and to
the snake_case row written to the remote store.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

CHALLENGE_DAYS = 7


@dataclass
class UserProgress:
    """Progress through the 7-day challenge."""

    current_day: int = 1
    unlocked_days: int = 1
    completed_days: list[int] = field(default_factory=list)
    failed_days: list[int] = field(default_factory=list)

    # Local storage key -> attribute
    _FIELDS = {
        "currentDay": "current_day",
        "unlockedDays": "unlocked_days",
        "completedDays": "completed_days",
        "failedDays": "failed_days",
    }

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for key, attr in self._FIELDS.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserProgress:
        return cls(
            current_day=data.get("currentDay", 1),
            unlocked_days=data.get("unlockedDays", 1),
            completed_days=list(data.get("completedDays", [])),
            failed_days=list(data.get("failedDays", [])),
        )

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> UserProgress:
        """Create from a user_progress row."""
        return cls(
            current_day=row["current_day"],
            unlocked_days=row["unlocked_days"],
            completed_days=list(row.get("completed_days") or []),
            failed_days=list(row.get("failed_days") or []),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "current_day": self.current_day,
            "unlocked_days": self.unlocked_days,
            "completed_days": list(self.completed_days),
            "failed_days": list(self.failed_days),
        }

    def with_changes(self, **changes: Any) -> UserProgress:
        return replace(self, **changes)


@dataclass
class JournalEntry:
    """A journal page for one day of the challenge."""

    day: int
    date: str
    mood: str = ""
    symptoms: str = ""
    pre_fast_meal: str = ""
    notes: str = ""
    completed: bool = False

    # Columns the client may change after the entry exists
    EDITABLE = ("mood", "symptoms", "pre_fast_meal", "notes", "completed")

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "date": self.date,
            "mood": self.mood,
            "symptoms": self.symptoms,
            "preFastMeal": self.pre_fast_meal,
            "notes": self.notes,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JournalEntry:
        return cls(
            day=data["day"],
            date=data["date"],
            mood=data.get("mood", ""),
            symptoms=data.get("symptoms", ""),
            pre_fast_meal=data.get("preFastMeal", ""),
            notes=data.get("notes", ""),
            completed=data.get("completed", False),
        )

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> JournalEntry:
        """Create from a journal_entries row (nullable text columns)."""
        return cls(
            day=row["day"],
            date=row["date"],
            mood=row.get("mood") or "",
            symptoms=row.get("symptoms") or "",
            pre_fast_meal=row.get("pre_fast_meal") or "",
            notes=row.get("notes") or "",
            completed=bool(row.get("completed")),
        )

    def to_row(self, user_id: str) -> dict[str, Any]:
        return {
            "user_id": user_id,
            "day": self.day,
            "date": self.date,
            "mood": self.mood,
            "symptoms": self.symptoms,
            "pre_fast_meal": self.pre_fast_meal,
            "notes": self.notes,
            "completed": self.completed,
        }


@dataclass
class FastState:
    """State of the fast timer.

    Timestamps are epoch milliseconds. ``total_paused_time`` accumulates
    the length of every finished pause.
    """

    is_active: bool = False
    start_time: int | None = None
    target_end_time: int | None = None
    duration_hours: float = 0
    is_paused: bool = False
    paused_at: int | None = None
    total_paused_time: int = 0
    session_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "isActive": self.is_active,
            "startTime": self.start_time,
            "targetEndTime": self.target_end_time,
            "durationHours": self.duration_hours,
            "isPaused": self.is_paused,
            "pausedAt": self.paused_at,
            "totalPausedTime": self.total_paused_time,
            "sessionId": self.session_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FastState:
        return cls(
            is_active=data.get("isActive", False),
            start_time=data.get("startTime"),
            target_end_time=data.get("targetEndTime"),
            duration_hours=data.get("durationHours", 0),
            is_paused=data.get("isPaused", False),
            paused_at=data.get("pausedAt"),
            total_paused_time=data.get("totalPausedTime", 0),
            session_id=data.get("sessionId"),
        )

    @classmethod
    def idle(cls) -> FastState:
        """State with no fast running."""
        return cls()
