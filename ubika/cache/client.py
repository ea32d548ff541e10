"""
Cache client with pattern invalidation.

Thin TTL-based pass-through cache in front of the relational store and the
read-model. Every operation is best-effort: backend failures are logged,
counted in the metrics, and reported to the caller as a miss or a no-op.
Callers always have the source of truth to fall back to.

Usage:
    from ubika.cache import CACHE_KEYS, get_cache

    cache = get_cache()
    await cache.set(CACHE_KEYS.property("42"), payload, ttl=120)
    payload = await cache.get(CACHE_KEYS.property("42"))
    await cache.invalidate_pattern(CACHE_KEYS.properties.list_pattern())
"""

import json
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

from redis.exceptions import RedisError

from ubika.cache.backends import InMemoryBackend, KeyValueBackend, create_backend
from ubika.cache.metrics import CacheMetrics, cache_metrics
from ubika.config import get_settings
from ubika.logging import get_logger

logger = get_logger("cache")

T = TypeVar("T")

SCAN_PAGE_SIZE = 100

# Errors that mean "the backend is unavailable right now"
BACKEND_ERRORS = (RedisError, OSError)


@dataclass(frozen=True)
class Parsed(Generic[T]):
    """Cached value decoded from JSON."""

    value: T


@dataclass(frozen=True)
class Raw:
    """Cached value that is not valid JSON, returned as stored."""

    value: str


CacheResult = Union[Parsed[Any], Raw]


def decode(raw: str) -> CacheResult:
    """Decode a stored string, keeping it raw when it is not JSON."""
    try:
        return Parsed(json.loads(raw))
    except ValueError:
        return Raw(raw)


def encode(value: Any) -> str:
    """Strings are stored as-is; everything else as JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


class CacheClient:
    """
    Read-through cache over a key-value backend.

    The backend is injected so one client (and one connection) is created
    by the composition root and shared by every caller in the process.
    """

    def __init__(self, backend: KeyValueBackend, metrics: CacheMetrics | None = None):
        self.backend = backend
        self.metrics = metrics or cache_metrics

    @property
    def is_remote(self) -> bool:
        """True when backed by a shared store rather than the in-memory fallback."""
        return not isinstance(self.backend, InMemoryBackend)

    async def get_result(self, key: str, age_hint: Optional[float] = None) -> Optional[CacheResult]:
        """
        Get a tagged cache entry.

        Args:
            key: Cache key
            age_hint: Age of the entry in seconds, when the caller knows it

        Returns:
            Parsed or Raw result, or None on miss or backend error
        """
        try:
            raw = await self.backend.get(key)
        except BACKEND_ERRORS as e:
            self.metrics.record_error("get")
            logger.warning("cache_get_error", key=key, error=str(e))
            return None

        if raw is None:
            self.metrics.record_miss()
            logger.debug("cache_miss", key=key)
            return None

        self.metrics.record_hit(age_hint or 0)
        logger.debug("cache_hit", key=key)
        return decode(raw)

    async def get(self, key: str, age_hint: Optional[float] = None) -> Any | None:
        """
        Get a cached value; undecodable entries come back as the raw string.

        Strings that are valid JSON come back decoded, so a stored ``"null"``
        reads as None just like a miss. Use :meth:`get_result` to tell the
        two apart.
        """
        result = await self.get_result(key, age_hint)
        return result.value if result is not None else None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Store a value, replacing any previous entry.

        Args:
            key: Cache key
            value: String or JSON-serializable value
            ttl: Time-to-live in seconds; None keeps the entry until invalidated
        """
        try:
            serialized = encode(value)
            await self.backend.set(key, serialized, ttl)
        except (TypeError, ValueError, *BACKEND_ERRORS) as e:
            self.metrics.record_error("set")
            logger.warning("cache_set_error", key=key, error=str(e))
            return

        self.metrics.record_set()
        logger.debug("cache_set", key=key, ttl=ttl)

    async def delete(self, key: str, raise_errors: bool = False) -> None:
        """
        Delete one key. Deleting a missing key is not an error.

        Backend errors are logged and counted; with ``raise_errors`` they
        are re-raised as well, for callers that must report the failure.
        """
        try:
            deleted = await self.backend.delete(key)
        except BACKEND_ERRORS as e:
            self.metrics.record_error("delete")
            logger.warning("cache_delete_error", key=key, error=str(e))
            if raise_errors:
                raise
            return

        self.metrics.record_delete()
        logger.debug("cache_delete", key=key, deleted=deleted)

    async def invalidate_pattern(self, pattern: str, raise_errors: bool = False) -> int:
        """
        Delete every key matching a ``*`` glob.

        Keys are collected with SCAN in pages of 100 until the cursor returns
        to zero, then deleted in one call. O(total keys); meant for writes,
        never for reads.

        Args:
            pattern: Glob with ``*`` wildcards
            raise_errors: Re-raise backend errors after logging them

        Returns:
            Number of keys matched (0 on backend error)
        """
        try:
            keys: list[str] = []
            cursor = 0
            while True:
                cursor, page = await self.backend.scan(cursor, pattern, SCAN_PAGE_SIZE)
                keys.extend(page)
                if cursor == 0:
                    break

            if keys:
                await self.backend.delete(*keys)
        except BACKEND_ERRORS as e:
            self.metrics.record_error("pattern")
            logger.warning("cache_pattern_error", pattern=pattern, error=str(e))
            if raise_errors:
                raise
            return 0

        self.metrics.record_pattern_invalidation()
        logger.debug("cache_pattern_invalidated", pattern=pattern, matched=len(keys))
        return len(keys)

    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[T]],
        ttl: Optional[int] = None,
    ) -> T:
        """
        Read-through helper: return the cached value or load and cache it.

        Misses and backend errors are treated the same way. None results
        from the loader are not cached.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        result = await loader()
        if result is not None:
            await self.set(key, result, ttl)
        return result

    async def health_check(self) -> dict[str, Any]:
        """Get cache health status."""
        status: dict[str, Any] = {"backend": self.backend.name, "shared": self.is_remote}
        try:
            status["available"] = await self.backend.ping()
        except BACKEND_ERRORS as e:
            logger.warning("cache_ping_error", error=str(e))
            status["available"] = False
        return status

    async def close(self) -> None:
        try:
            await self.backend.close()
        except BACKEND_ERRORS as e:
            logger.warning("cache_close_error", error=str(e))


# =============================================================================
# Process default client
# =============================================================================

_default_cache: Optional[CacheClient] = None
_default_cache_lock = threading.Lock()


def get_cache() -> CacheClient:
    """Get the process-wide cache client, built from settings on first use."""
    global _default_cache
    if _default_cache is None:
        with _default_cache_lock:
            if _default_cache is None:
                settings = get_settings()
                _default_cache = CacheClient(create_backend(settings.redis_url))
    return _default_cache


def set_cache(client: Optional[CacheClient]) -> None:
    """Replace the process-wide client (composition root and tests)."""
    global _default_cache
    with _default_cache_lock:
        _default_cache = client


async def cache_get(key: str, age_hint: Optional[float] = None) -> Any | None:
    return await get_cache().get(key, age_hint)


async def cache_set(key: str, value: Any, ttl: Optional[int] = None) -> None:
    await get_cache().set(key, value, ttl)


async def cache_del(key: str) -> None:
    await get_cache().delete(key)


async def cache_invalidate_pattern(pattern: str) -> int:
    return await get_cache().invalidate_pattern(pattern)


__all__ = [
    "BACKEND_ERRORS",
    "CacheClient",
    "CacheResult",
    "Parsed",
    "Raw",
    "cache_del",
    "cache_get",
    "cache_invalidate_pattern",
    "cache_set",
    "get_cache",
    "set_cache",
]
