"""
Caching Layer.

Key-pattern based read-through cache shared by the web server and the
maintenance CLI:
- Redis backend with an in-memory fallback for local development
- Versioned, hierarchical keys with wildcard invalidation
- Process-wide hit/miss/error metrics

Usage:
    from ubika.cache import CACHE_KEYS, get_cache

    cache = get_cache()
    data = await cache.get(CACHE_KEYS.property(property_id))
    if data is None:
        data = load_from_db(property_id)
        await cache.set(CACHE_KEYS.property(property_id), data, ttl=120)

    for pattern in CACHE_KEYS.property_invalidation_patterns(property):
        await cache.invalidate_pattern(pattern)
"""

from ubika.cache.backends import InMemoryBackend, KeyValueBackend, RedisBackend, create_backend
from ubika.cache.cache_keys import (
    CACHE_KEYS,
    CACHE_VERSION,
    CacheKeyBuilder,
    get_cache_version,
    get_property_invalidation_patterns,
)
from ubika.cache.client import (
    CacheClient,
    Parsed,
    Raw,
    cache_del,
    cache_get,
    cache_invalidate_pattern,
    cache_set,
    get_cache,
    set_cache,
)
from ubika.cache.metrics import CacheMetrics, CacheMetricsSnapshot, cache_metrics
from ubika.cache.optimization import (
    build_semantic_cache_key,
    get_affected_cache_patterns,
    normalize_filters,
)
from ubika.cache.patterns import escape_glob, glob_to_regex, matches_glob

__all__ = [
    "CACHE_KEYS",
    "CACHE_VERSION",
    "CacheClient",
    "CacheKeyBuilder",
    "CacheMetrics",
    "CacheMetricsSnapshot",
    "InMemoryBackend",
    "KeyValueBackend",
    "Parsed",
    "Raw",
    "RedisBackend",
    "build_semantic_cache_key",
    "cache_del",
    "cache_get",
    "cache_invalidate_pattern",
    "cache_metrics",
    "cache_set",
    "create_backend",
    "escape_glob",
    "get_affected_cache_patterns",
    "get_cache",
    "get_cache_version",
    "get_property_invalidation_patterns",
    "glob_to_regex",
    "matches_glob",
    "normalize_filters",
    "set_cache",
]
