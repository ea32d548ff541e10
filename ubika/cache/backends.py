"""
Key-value backends for the cache.

Provides:
- RedisBackend: async Redis client, lazily connected, reused for the process
- InMemoryBackend: process-local fallback for environments without Redis
- create_backend(): picks one from the configured Redis URL

Both implement the KeyValueBackend protocol so the cache client, the rate
limiter and the maintenance CLI never branch on which one is in use.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

import redis.asyncio as redis

from ubika.cache.patterns import matches_glob
from ubika.logging import get_logger

logger = get_logger("cache.backend")


@runtime_checkable
class KeyValueBackend(Protocol):
    """Operations the cache core needs from a key-value store."""

    name: str

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None: ...

    async def delete(self, *keys: str) -> int: ...

    async def scan(self, cursor: int, match: str, count: int) -> tuple[int, list[str]]: ...

    async def incr(self, key: str) -> int: ...

    async def expire(self, key: str, seconds: int) -> bool: ...

    async def keys(self, pattern: str) -> list[str]: ...

    async def dbsize(self) -> int: ...

    async def flushdb(self) -> None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class RedisBackend:
    """
    Redis backend over ``redis.asyncio``.

    The client is created on first use and kept for the lifetime of the
    backend; connection pooling is whatever redis-py provides. Errors from
    Redis propagate to the caller, which decides how to degrade.
    """

    name = "redis"

    def __init__(
        self,
        url: Optional[str] = None,
        client: Optional["redis.Redis"] = None,
        socket_timeout: float = 5,
        socket_connect_timeout: float = 5,
    ):
        if url is None and client is None:
            raise ValueError("RedisBackend needs a url or a client")
        self.url = url
        self._client = client
        self._socket_timeout = socket_timeout
        self._socket_connect_timeout = socket_connect_timeout
        self._lock = threading.Lock()

    @property
    def client(self) -> "redis.Redis":
        """Get the Redis client, creating it on first access."""
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = redis.Redis.from_url(
                        self.url,
                        decode_responses=True,
                        socket_timeout=self._socket_timeout,
                        socket_connect_timeout=self._socket_connect_timeout,
                    )
                    logger.info("redis_client_created")
        return self._client

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        if ttl:
            await self.client.set(key, value, ex=ttl)
        else:
            await self.client.set(key, value)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self.client.delete(*keys))

    async def scan(self, cursor: int, match: str, count: int) -> tuple[int, list[str]]:
        next_cursor, keys = await self.client.scan(cursor=cursor, match=match, count=count)
        return int(next_cursor), list(keys)

    async def incr(self, key: str) -> int:
        return int(await self.client.incr(key))

    async def expire(self, key: str, seconds: int) -> bool:
        return bool(await self.client.expire(key, seconds))

    async def keys(self, pattern: str) -> list[str]:
        return list(await self.client.keys(pattern))

    async def dbsize(self) -> int:
        return int(await self.client.dbsize())

    async def flushdb(self) -> None:
        await self.client.flushdb()

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


@dataclass
class _Entry:
    value: str
    expires_at: Optional[float] = None


class InMemoryBackend:
    """
    Process-local fallback used when no Redis URL is configured.

    Expiry is an explicit deadline checked lazily whenever a key is read or
    enumerated. State is not shared between processes, so instances of a
    multi-process deployment diverge; this backend is meant for local
    development and tests.
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._store: dict[str, _Entry] = {}
        self._clock = clock
        self._lock = threading.Lock()

    def _live_entry(self, key: str) -> Optional[_Entry]:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._store[key]
            logger.debug("cache_expired", key=key)
            return None
        return entry

    def _live_keys(self) -> list[str]:
        return [key for key in list(self._store) if self._live_entry(key) is not None]

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._live_entry(key)
            return entry.value if entry else None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl if ttl else None
        with self._lock:
            self._store[key] = _Entry(value=value, expires_at=expires_at)

    async def delete(self, *keys: str) -> int:
        deleted = 0
        with self._lock:
            for key in keys:
                if self._live_entry(key) is not None:
                    del self._store[key]
                    deleted += 1
        return deleted

    async def scan(self, cursor: int, match: str, count: int) -> tuple[int, list[str]]:
        with self._lock:
            matching = sorted(key for key in self._live_keys() if matches_glob(key, match))
        page = matching[cursor : cursor + count]
        next_cursor = cursor + count
        if next_cursor >= len(matching):
            next_cursor = 0
        return next_cursor, page

    async def incr(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self._store[key] = _Entry(value="1")
                return 1
            try:
                value = int(entry.value) + 1
            except ValueError:
                raise ValueError(f"value at {key!r} is not an integer") from None
            entry.value = str(value)
            return value

    async def expire(self, key: str, seconds: int) -> bool:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return False
            entry.expires_at = self._clock() + seconds
            return True

    async def keys(self, pattern: str) -> list[str]:
        with self._lock:
            return [key for key in self._live_keys() if matches_glob(key, pattern)]

    async def dbsize(self) -> int:
        with self._lock:
            return len(self._live_keys())

    async def flushdb(self) -> None:
        with self._lock:
            self._store.clear()

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


def create_backend(redis_url: Optional[str]) -> KeyValueBackend:
    """Create the Redis backend when a URL is configured, else the in-memory fallback."""
    if redis_url:
        return RedisBackend(url=redis_url)
    logger.warning(
        "redis_url_not_set",
        message="Cache will use the in-memory fallback (not persistent, not shared)",
    )
    return InMemoryBackend()


__all__ = ["KeyValueBackend", "RedisBackend", "InMemoryBackend", "create_backend"]
