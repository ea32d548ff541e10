"""Session caching keyed by user subject or email."""

from typing import Any, Optional

from ubika.cache.cache_keys import CACHE_KEYS
from ubika.cache.client import CacheClient
from ubika.config import get_settings


async def cache_session(
    cache: CacheClient, user_id: str, session: Any, ttl: Optional[int] = None
) -> None:
    """Store a session; TTL defaults to SESSION_CACHE_TTL (one day)."""
    ttl = ttl or get_settings().session_cache_ttl
    await cache.set(CACHE_KEYS.session(user_id), session, ttl)


async def get_cached_session(cache: CacheClient, user_id: str) -> Any | None:
    return await cache.get(CACHE_KEYS.session(user_id))


async def delete_cached_session(cache: CacheClient, user_id: str) -> None:
    await cache.delete(CACHE_KEYS.session(user_id))


__all__ = ["cache_session", "delete_cached_session", "get_cached_session"]
