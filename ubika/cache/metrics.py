"""
Cache metrics.

Tracks hit/miss/stale/invalidation counts and a rolling sample of cached
entry ages. Exposed through GET /api/v1/debug/cache-metrics.

Metrics are process-local and advisory: they are not persisted and reset
on restart.
"""

import threading
import time
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any

AGE_SAMPLE_SIZE = 1000
ERROR_KINDS = ("get", "set", "delete", "pattern")


@dataclass(frozen=True)
class CacheErrorCounts:
    get_errors: int
    set_errors: int
    delete_errors: int
    pattern_errors: int


@dataclass(frozen=True)
class CacheMetricsSnapshot:
    """Point-in-time view of the cache counters."""

    timestamp: int  # epoch milliseconds
    hits: int
    misses: int
    stale: int
    sets: int
    deletes: int
    pattern_invalidations: int
    hit_rate: float  # percentage
    average_age: float  # seconds
    total_requests: int
    uptime_seconds: float
    errors: CacheErrorCounts

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class CacheMetrics:
    """
    Counters for cache activity.

    Usage:
        from ubika.cache.metrics import cache_metrics

        cache_metrics.record_hit(age_seconds=12)
        snapshot = cache_metrics.get_snapshot()
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._reset_state()

    def _reset_state(self) -> None:
        self._hits = 0
        self._misses = 0
        self._stale = 0
        self._sets = 0
        self._deletes = 0
        self._pattern_invalidations = 0
        self._errors = dict.fromkeys(ERROR_KINDS, 0)
        self._ages: deque[float] = deque(maxlen=AGE_SAMPLE_SIZE)
        self._started_at = time.time()

    def _record_age(self, age_seconds: float) -> None:
        if age_seconds > 0:
            self._ages.append(age_seconds)

    def record_hit(self, age_seconds: float = 0) -> None:
        with self._lock:
            self._hits += 1
            self._record_age(age_seconds)

    def record_miss(self) -> None:
        with self._lock:
            self._misses += 1

    def record_stale(self, age_seconds: float = 0) -> None:
        """Record a stale entry served while it is being refreshed."""
        with self._lock:
            self._stale += 1
            self._record_age(age_seconds)

    def record_set(self) -> None:
        with self._lock:
            self._sets += 1

    def record_delete(self) -> None:
        with self._lock:
            self._deletes += 1

    def record_pattern_invalidation(self) -> None:
        with self._lock:
            self._pattern_invalidations += 1

    def record_error(self, kind: str) -> None:
        """Record a failed operation; kind is one of get, set, delete, pattern."""
        with self._lock:
            if kind in self._errors:
                self._errors[kind] += 1

    def get_snapshot(self) -> CacheMetricsSnapshot:
        with self._lock:
            total = self._hits + self._misses + self._stale
            hit_rate = (self._hits / total) * 100 if total > 0 else 0
            average_age = sum(self._ages) / len(self._ages) if self._ages else 0
            now = time.time()

            return CacheMetricsSnapshot(
                timestamp=int(now * 1000),
                hits=self._hits,
                misses=self._misses,
                stale=self._stale,
                sets=self._sets,
                deletes=self._deletes,
                pattern_invalidations=self._pattern_invalidations,
                hit_rate=round(hit_rate, 2),
                average_age=round(average_age, 2),
                total_requests=total,
                uptime_seconds=round(now - self._started_at, 2),
                errors=CacheErrorCounts(
                    get_errors=self._errors["get"],
                    set_errors=self._errors["set"],
                    delete_errors=self._errors["delete"],
                    pattern_errors=self._errors["pattern"],
                ),
            )

    def reset(self) -> None:
        """Zero all counters. Test isolation only."""
        with self._lock:
            self._reset_state()


# Global singleton instance
cache_metrics = CacheMetrics()


__all__ = [
    "AGE_SAMPLE_SIZE",
    "CacheErrorCounts",
    "CacheMetrics",
    "CacheMetricsSnapshot",
    "cache_metrics",
]
