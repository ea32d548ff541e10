"""
Fixed-window rate limiter.

Provides:
- Redis INCR + EXPIRE counters shared by every instance
- In-memory fallback when Redis is not configured or errors
- Usable from HTTP dependencies and scripts alike

Bursts at window boundaries are an accepted limitation of fixed windows.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Dict, Optional

from redis.exceptions import RedisError

from ubika.cache.backends import KeyValueBackend
from ubika.logging import get_logger

logger = get_logger("security.rate_limiter")


@dataclass
class _WindowEntry:
    count: int
    expires_at: float


class InMemoryRateLimiter:
    """
    Per-process fixed-window counters.

    Used when Redis is unavailable. Counts reset on restart and are not
    shared between instances.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._windows: Dict[str, _WindowEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._last_cleanup = clock()
        self._cleanup_interval = 60  # Drop expired windows every 60 seconds

    def _cleanup_expired(self, now: float) -> None:
        if now - self._last_cleanup < self._cleanup_interval:
            return
        self._last_cleanup = now
        for key in [k for k, entry in self._windows.items() if entry.expires_at <= now]:
            del self._windows[key]

    def hit(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """
        Count a request and check it against the limit.

        Args:
            key: Identifier (e.g., "sync:203.0.113.7")
            max_requests: Maximum requests allowed per window
            window_seconds: Window length in seconds

        Returns:
            True if the request is allowed
        """
        now = self._clock()
        with self._lock:
            self._cleanup_expired(now)
            entry = self._windows.get(key)
            if entry is None or entry.expires_at <= now:
                self._windows[key] = _WindowEntry(count=1, expires_at=now + window_seconds)
                return 1 <= max_requests
            entry.count += 1
            return entry.count <= max_requests

    def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)


class FixedWindowRateLimiter:
    """
    Rate limiter over the shared key-value backend.

    Usage:
        limiter = FixedWindowRateLimiter(backend)

        if not await limiter.hit(f"sync:{client_ip}", 30, 60):
            raise HTTPException(status_code=429)
    """

    def __init__(
        self,
        backend: Optional[KeyValueBackend] = None,
        fallback: Optional[InMemoryRateLimiter] = None,
    ):
        self.backend = backend
        self.fallback = fallback or InMemoryRateLimiter()

    @property
    def is_distributed(self) -> bool:
        """True when counters live in the shared backend."""
        return self.backend is not None

    async def hit(self, key: str, max_requests: int = 60, window_seconds: int = 60) -> bool:
        """
        Count a request and check it against the limit.

        The first request of a window sets the key's expiry. That expiry is
        best-effort: if it fails, the counter can outlive its window.

        Returns:
            True if the request is allowed, False if the limit is exceeded
        """
        if self.backend is not None:
            try:
                count = await self.backend.incr(key)
                if count == 1:
                    try:
                        await self.backend.expire(key, window_seconds)
                    except (RedisError, OSError) as e:
                        logger.warning("rate_limit_expire_error", key=key, error=str(e))
                allowed = count <= max_requests
                if not allowed:
                    logger.warning("rate_limit_exceeded", key=key, count=count, limit=max_requests)
                return allowed
            except (RedisError, OSError, ValueError) as e:
                logger.warning("rate_limit_backend_error", key=key, error=str(e))

        allowed = self.fallback.hit(key, max_requests, window_seconds)
        if not allowed:
            logger.warning("rate_limit_exceeded_fallback", key=key, limit=max_requests)
        return allowed

    async def reset(self, key: str) -> None:
        """Clear the counter for a key."""
        self.fallback.reset(key)
        if self.backend is not None:
            try:
                await self.backend.delete(key)
            except (RedisError, OSError) as e:
                logger.warning("rate_limit_reset_error", key=key, error=str(e))


# Global singleton
_rate_limiter: Optional[FixedWindowRateLimiter] = None
_rate_limiter_lock = threading.Lock()


def get_rate_limiter() -> FixedWindowRateLimiter:
    """Get the process-wide limiter, sharing the cache's Redis backend when there is one."""
    global _rate_limiter
    if _rate_limiter is None:
        with _rate_limiter_lock:
            if _rate_limiter is None:
                from ubika.cache.client import get_cache

                cache = get_cache()
                _rate_limiter = FixedWindowRateLimiter(cache.backend if cache.is_remote else None)
    return _rate_limiter


def set_rate_limiter(limiter: Optional[FixedWindowRateLimiter]) -> None:
    """Replace the process-wide limiter (composition root and tests)."""
    global _rate_limiter
    with _rate_limiter_lock:
        _rate_limiter = limiter


async def rate_limit(key: str, max_requests: int = 60, window_seconds: int = 60) -> bool:
    """Check a request against the process-wide limiter."""
    return await get_rate_limiter().hit(key, max_requests, window_seconds)


__all__ = [
    "FixedWindowRateLimiter",
    "InMemoryRateLimiter",
    "get_rate_limiter",
    "rate_limit",
    "set_rate_limiter",
]
