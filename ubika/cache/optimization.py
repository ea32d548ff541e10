"""
Semantic cache keys for filtered listings.

Listing keys carry a readable prefix of the most selective filters (zone,
operation, bedrooms, price bounds) so attribute-scoped patterns such as
``*zone=lima*`` can find them, followed by a short hash of the full filter
set so every combination gets its own key.
"""

import hashlib
import re
from collections.abc import Mapping
from typing import Any, Optional, TypedDict

from ubika.cache.cache_keys import CACHE_KEYS, CacheKeyBuilder, operation_name
from ubika.cache.patterns import escape_glob


class NormalizedFilters(TypedDict, total=False):
    min_price: int
    max_price: int
    bedrooms: int
    bathrooms: int
    property_type: str
    operation: str
    zone: str
    min_area: int
    max_area: int


# normalized name -> accepted query parameter names
_INT_FILTERS = {
    "min_price": ("min_price", "minPrice"),
    "max_price": ("max_price", "maxPrice"),
    "bedrooms": ("bedrooms",),
    "bathrooms": ("bathrooms",),
    "min_area": ("min_area", "minArea"),
    "max_area": ("max_area", "maxArea"),
}
_TEXT_FILTERS = {
    "property_type": ("property_type", "propertyType"),
    "operation": ("operation",),
    "zone": ("zone",),
}

# (normalized name, readable token) in prefix order
_READABLE_FILTERS = (
    ("zone", "zone"),
    ("operation", "op"),
    ("bedrooms", "beds"),
    ("min_price", "pmin"),
    ("max_price", "pmax"),
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _parse_int(value: Any) -> Optional[int]:
    """Parse the leading integer of a value; "12.5" -> 12, "abc" -> None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def _first(filters: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        value = filters.get(name)
        if value:
            return value
    return None


def normalize_filters(filters: Optional[Mapping[str, Any]]) -> NormalizedFilters:
    """
    Normalize listing filters for key building.

    Numeric filters are parsed to integers, text filters lower-cased and
    stripped. Empty and unparseable values are dropped.
    """
    normalized: NormalizedFilters = {}
    if not filters:
        return normalized

    for name, aliases in _INT_FILTERS.items():
        raw = _first(filters, aliases)
        if raw:
            parsed = _parse_int(raw)
            if parsed is not None:
                normalized[name] = parsed  # type: ignore[literal-required]

    for name, aliases in _TEXT_FILTERS.items():
        raw = _first(filters, aliases)
        if raw:
            text = str(raw).lower().strip()
            if text:
                normalized[name] = text  # type: ignore[literal-required]

    return normalized


def build_semantic_cache_key(
    seller_id: Optional[Any] = None,
    filters: Optional[Mapping[str, Any]] = None,
    keys: CacheKeyBuilder = CACHE_KEYS,
) -> str:
    """
    Build the cache key for a listing query.

    Examples:
        build_semantic_cache_key() -> "v1:properties:list"
        build_semantic_cache_key("s1", {"zone": "lima", "min_price": 100})
            -> "v1:seller:s1:list:zone=lima:pmin=100:<8 hex chars>"
    """
    base = keys.seller(seller_id).list() if seller_id else keys.properties.list()

    entries = sorted(
        (name, value)
        for name, value in (filters or {}).items()
        if value is not None and value != ""
    )
    if not entries:
        return base

    values = {name: str(value) for name, value in entries}
    parts = [base]

    readable = [f"{token}={values[name]}" for name, token in _READABLE_FILTERS if values.get(name)]
    if readable:
        parts.append(":".join(readable))

    filter_string = "|".join(f"{name}={value}" for name, value in entries)
    parts.append(hashlib.md5(filter_string.encode()).hexdigest()[:8])
    return ":".join(parts)


def get_affected_cache_patterns(
    property: Optional[Mapping[str, Any]],
    keys: CacheKeyBuilder = CACHE_KEYS,
) -> list[str]:
    """
    Coarse invalidation patterns for image mutations.

    Image changes do not carry the full filter context of the listings that
    show them, so every listing namespace is dropped wholesale, along with
    attribute-scoped globs for the property's zone, operation, price
    and bedrooms. Property type only reaches the key hash, so it gets no
    glob of its own.
    """
    property = property or {}
    global_lists = keys.properties.list_pattern()
    seller_lists = f"{keys.prefix}:seller:*:list:*"
    patterns: dict[str, None] = {
        f"{keys.prefix}:properties:*": None,
        f"{keys.prefix}:seller:*": None,
    }

    city = property.get("city")
    if city:
        city = escape_glob(str(city).lower().strip())
        patterns[f"{global_lists}zone={city}*"] = None
        patterns[f"{seller_lists}zone={city}*"] = None

    op = operation_name(property.get("operation_status_id"))
    if op:
        patterns[f"{global_lists}op={op}*"] = None
        patterns[f"{seller_lists}op={op}*"] = None

    if property.get("price"):
        patterns[f"{global_lists}pmin=*"] = None
        patterns[f"{global_lists}pmax=*"] = None

    if property.get("rooms") or property.get("bedrooms"):
        patterns[f"{global_lists}beds=*"] = None

    return list(patterns)


__all__ = [
    "NormalizedFilters",
    "build_semantic_cache_key",
    "get_affected_cache_patterns",
    "normalize_filters",
]
