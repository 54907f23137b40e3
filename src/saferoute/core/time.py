"""
Time helpers: aggregation windows and per-request deadlines.

All stored timestamps are UTC. SQLite hands back naive datetimes, so readers pass
them through `ensure_utc` before comparing or formatting.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def window_start(days: int, *, now: datetime | None = None) -> datetime:
    """Start of the trailing `days` window ending at `now`."""
    return ensure_utc(now or utc_now()) - timedelta(days=int(days))


@dataclass
class Deadline:
    """A monotonic time budget shared by every attempt within one request."""

    budget_seconds: float
    _started: float = field(default_factory=lambda: time.monotonic(), init=False, repr=False)

    def remaining(self) -> float:
        return max(0.0, float(self.budget_seconds) - (time.monotonic() - self._started))

    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def cap(self, timeout_seconds: float) -> float:
        """Clamp a per-attempt timeout to what is left of the budget."""
        return min(float(timeout_seconds), self.remaining())
