from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

"""
Small in-process TTL cache.

This cache is intentionally lightweight:
- Values live in a dict guarded by a single lock (safe under FastAPI's threadpool).
- TTL is enforced lazily on read; there is no background sweeper.
- Capacity is bounded: expired entries are swept first, then the oldest insert is evicted.

The engine owns one instance for heatmap aggregations (`HeatmapCache`) and injects it;
nothing in the package keeps a module-level cache.
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached value plus the monotonic time it was inserted."""

    key: str
    value: Any
    inserted_at: float


@dataclass
class CacheStats:
    """Cumulative cache usage counters (best-effort, read without the lock)."""

    hits: int = 0
    misses: int = 0
    expired: int = 0
    sets: int = 0
    evictions: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "hits": int(self.hits),
            "misses": int(self.misses),
            "expired": int(self.expired),
            "sets": int(self.sets),
            "evictions": int(self.evictions),
        }


class TTLCache:
    """A thread-safe TTL cache keyed by strings."""

    def __init__(self, ttl_seconds: float, max_entries: int = 512, *, name: str = "cache"):
        if float(ttl_seconds) <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if int(max_entries) < 1:
            raise ValueError("max_entries must be >= 1")
        self._ttl_seconds = float(ttl_seconds)
        self._max_entries = int(max_entries)
        self._name = name
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.stats = CacheStats()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at < self._ttl_seconds

    def get(self, key: str) -> Any | None:
        """Return the cached value if present and not expired; otherwise None."""
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.stats.misses += 1
                return None
            if not self._is_fresh(entry, now):
                del self._entries[key]
                self.stats.misses += 1
                self.stats.expired += 1
                return None
            self.stats.hits += 1
            return entry.value

    def set(self, key: str, value: Any) -> None:
        """Insert or overwrite `key`, evicting if the cache is full."""
        now = time.monotonic()
        with self._lock:
            self._entries.pop(key, None)
            if len(self._entries) >= self._max_entries:
                self._sweep_locked(now)
            while len(self._entries) >= self._max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                self.stats.evictions += 1
            self._entries[key] = CacheEntry(key=key, value=value, inserted_at=now)
            self.stats.sets += 1

    def _sweep_locked(self, now: float) -> None:
        stale = [k for k, e in self._entries.items() if not self._is_fresh(e, now)]
        for k in stale:
            del self._entries[k]
        if stale:
            self.stats.expired += len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_or_set(self, key: str, builder: Callable[[], Any]) -> Any:
        """Return the cached value, or compute and store it via `builder`.

        `builder()` runs outside the lock; two concurrent misses for the same key may both
        compute, and the later write wins. Exceptions from `builder` propagate and nothing
        is stored.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("%s hit key=%s", self._name, key)
            return cached
        logger.debug("%s miss key=%s", self._name, key)
        value = builder()
        self.set(key, value)
        return value
