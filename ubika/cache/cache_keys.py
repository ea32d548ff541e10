"""
Cache key management.

Centralized cache key definitions to:
- Prevent key collisions
- Enable pattern-based invalidation
- Allow key-shape migrations by bumping the version prefix
"""

from collections.abc import Mapping
from typing import Any, Optional

from ubika.cache.patterns import escape_glob

CACHE_VERSION = "1"

OPERATION_NAMES = {1: "sale", 2: "rent"}


def operation_name(operation_status_id: Any) -> Optional[str]:
    """Map an operation status id to its key token ("sale", "rent")."""
    try:
        return OPERATION_NAMES.get(int(operation_status_id))
    except (TypeError, ValueError):
        return None


class _ListKeys:
    """Listing keys and patterns under one base (global or per seller)."""

    def __init__(self, base: str):
        self._base = base
        self._pattern_base = escape_glob(base)

    def list(self) -> str:
        return f"{self._base}:list"

    def list_pattern(self) -> str:
        return f"{self._pattern_base}:list:*"

    def list_by_zone(self, zone: str) -> str:
        return f"{self._pattern_base}:list:*zone={escape_glob(zone.lower())}*"

    def list_by_operation(self, op: str) -> str:
        return f"{self._pattern_base}:list:*op={escape_glob(op.lower())}*"


class _ReferenceKeys:
    """Static reference data that rarely changes."""

    def __init__(self, prefix: str):
        self._prefix = prefix

    def property_types(self) -> str:
        return f"{self._prefix}:property-types:list"

    def property_statuses(self) -> str:
        return f"{self._prefix}:property-statuses:list"

    def property_operation_statuses(self) -> str:
        return f"{self._prefix}:property-operation-statuses:list"

    def property_features(self) -> str:
        return f"{self._prefix}:property-features:list"

    def neighborhoods(self, filter_hash: str) -> str:
        return f"{self._prefix}:neighborhoods:{filter_hash}"


class CacheKeyBuilder:
    """
    Builds versioned cache keys.

    Naming convention: v{version}:{namespace}:{identifiers}[:{filters}]

    Examples:
        - v1:property:123 -> Property detail
        - v1:properties:list:zone=lima:op=sale:1a2b3c4d -> Filtered listing
        - v1:seller:abc:list -> Seller dashboard listing
        - v1:session:user-1 -> Cached session
    """

    # TTLs (in seconds)
    TTL_SEARCH = 30
    TTL_PROPERTY_DETAIL = 120
    TTL_PROPERTY_LIST = 300
    TTL_REFERENCE = 60 * 60
    TTL_SESSION = 60 * 60 * 24

    def __init__(self, version: str = CACHE_VERSION):
        self.version = version
        self.prefix = f"v{version}"
        self.properties = _ListKeys(f"{self.prefix}:properties")
        self.references = _ReferenceKeys(self.prefix)

    def property(self, property_id: Any) -> str:
        """Cache key for a single property detail."""
        return f"{self.prefix}:property:{property_id}"

    def seller(self, seller_id: Any) -> _ListKeys:
        """Listing keys scoped to one seller."""
        return _ListKeys(f"{self.prefix}:seller:{seller_id}")

    def session(self, user_id: Any) -> str:
        """Cache key for a user's session."""
        return f"{self.prefix}:session:{user_id}"

    def search(
        self,
        q: Optional[str] = None,
        city: Optional[str] = None,
        price_min: Optional[float] = None,
        price_max: Optional[float] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> str:
        """
        Cache key for a read-model search.

        Lives under the global list namespace so listing invalidation also
        drops cached search pages.
        """
        parts = [
            self.properties.list(),
            f"q={q or ''}",
            f"city={(city or '').lower()}",
            f"pmin={'' if price_min is None else price_min}",
            f"pmax={'' if price_max is None else price_max}",
            f"page={page}",
            f"ps={page_size}",
        ]
        return ":".join(parts)

    # Pattern keys for bulk invalidation

    def namespace_pattern(self) -> str:
        """Pattern matching every key of this version."""
        return f"{self.prefix}:*"

    def property_invalidation_patterns(
        self,
        property: Optional[Mapping[str, Any]],
        include_global: bool = True,
        include_seller: bool = True,
    ) -> list[str]:
        """
        Patterns to invalidate when a property is created, updated or deleted.

        Covers every listing that can contain the property: the global and
        seller listings, narrowed variants for its zone and operation type.
        Over-invalidation is acceptable; missing a listing is not.

        Args:
            property: Property attributes (seller_id, city, operation_status_id)
            include_global: Include the global listing patterns
            include_seller: Include the seller listing patterns

        Returns:
            De-duplicated patterns in insertion order
        """
        property = property or {}
        patterns: dict[str, None] = {}

        seller_id = property.get("seller_id")
        city = property.get("city")
        op = operation_name(property.get("operation_status_id"))
        seller_keys = self.seller(seller_id) if include_seller and seller_id else None

        if include_global:
            patterns[self.properties.list_pattern()] = None
        if seller_keys:
            patterns[seller_keys.list_pattern()] = None

        if city:
            if include_global:
                patterns[self.properties.list_by_zone(str(city))] = None
            if seller_keys:
                patterns[seller_keys.list_by_zone(str(city))] = None

        if op:
            if include_global:
                patterns[self.properties.list_by_operation(op)] = None
            if seller_keys:
                patterns[seller_keys.list_by_operation(op)] = None

        return list(patterns)


# Default builder for the current key version
CACHE_KEYS = CacheKeyBuilder(CACHE_VERSION)


def get_property_invalidation_patterns(
    property: Optional[Mapping[str, Any]],
    include_global: bool = True,
    include_seller: bool = True,
) -> list[str]:
    """Invalidation patterns for a property under the current key version."""
    return CACHE_KEYS.property_invalidation_patterns(
        property, include_global=include_global, include_seller=include_seller
    )


def get_cache_version() -> str:
    """Current key version. Bumping it orphans every previously cached key."""
    return CACHE_VERSION


__all__ = [
    "CACHE_KEYS",
    "CACHE_VERSION",
    "CacheKeyBuilder",
    "get_cache_version",
    "get_property_invalidation_patterns",
    "operation_name",
]
