"""Cached read-model search."""

from typing import Any, Optional

from ubika.cache.cache_keys import CACHE_KEYS, CacheKeyBuilder
from ubika.cache.client import CacheClient
from ubika.read_model.store import DocumentStore, SearchFilters


async def search_cached(
    store: DocumentStore,
    cache: CacheClient,
    filters: Optional[SearchFilters] = None,
    page: int = 1,
    page_size: int = 20,
    keys: CacheKeyBuilder = CACHE_KEYS,
) -> dict[str, Any]:
    """
    Search the read-model through a short-lived cache entry.

    Keys live under the global listing namespace, so any property
    invalidation drops cached search pages along with listings.
    """
    filters = filters or {}
    key = keys.search(
        q=filters.get("q"),
        city=filters.get("city"),
        price_min=filters.get("price_min"),
        price_max=filters.get("price_max"),
        page=page,
        page_size=page_size,
    )

    cached = await cache.get(key)
    if cached:
        return cached

    result = (await store.search_property_documents(filters, page, page_size)).to_dict()
    await cache.set(key, result, keys.TTL_SEARCH)
    return result


__all__ = ["search_cached"]
