"""Fast timer arithmetic.

All timestamps are epoch milliseconds. Functions return new FastState
values and never mutate their input.
"""

from __future__ import annotations

import time
from dataclasses import replace
from datetime import UTC, datetime

from fastlandz.core.types import FastState

MS_PER_HOUR = 3600 * 1000


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def to_iso(timestamp_ms: int) -> str:
    """Format epoch milliseconds as an ISO-8601 UTC string."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC).isoformat()


def from_iso(value: str) -> int:
    """Parse an ISO-8601 string into epoch milliseconds."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp() * 1000)


def target_end(start_time: int, duration_hours: float) -> int:
    return start_time + int(duration_hours * MS_PER_HOUR)


def remaining_ms(fast: FastState, now: int | None = None) -> int:
    """Milliseconds left in the fast, taking pauses into account.

    Returns 0 when no fast is configured.
    """
    if fast.start_time is None or not fast.duration_hours:
        return 0
    now = now_ms() if now is None else now
    if fast.is_paused and fast.paused_at is not None:
        # Time stands still while paused
        now = min(now, fast.paused_at)
    duration = int(fast.duration_hours * MS_PER_HOUR)
    elapsed = max(0, now - fast.start_time - (fast.total_paused_time or 0))
    return max(0, duration - elapsed)


def pause_fast(fast: FastState, now: int | None = None) -> FastState:
    """Mark the fast paused at ``now``. No-op if already paused."""
    if fast.is_paused:
        return fast
    return replace(fast, is_paused=True, paused_at=now_ms() if now is None else now)


def resume_fast(fast: FastState, now: int | None = None) -> FastState:
    """Resume a paused fast, adding the pause length to total_paused_time."""
    if not fast.is_paused or fast.paused_at is None:
        return fast
    now = now_ms() if now is None else now
    return replace(
        fast,
        is_paused=False,
        paused_at=None,
        total_paused_time=(fast.total_paused_time or 0) + (now - fast.paused_at),
    )
