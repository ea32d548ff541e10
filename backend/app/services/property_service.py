"""
Property service - relational reads/writes and the cache invalidation that
must follow every write.

Database functions are synchronous and open their own session, so a write is
committed before the caller invalidates the cache. Endpoints run them in the
threadpool.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Optional

from ubika.cache import CACHE_KEYS, CacheClient, CacheKeyBuilder, get_affected_cache_patterns
from ubika.db import DatabaseManager
from ubika.logging import get_logger
from ubika.models import Property
from ubika.repositories import PropertyRepository

logger = get_logger("api.property_service")


def _serialize(prop: Property, features: Iterable[Any] = ()) -> dict[str, Any]:
    data = prop.to_dict()
    data["images"] = [image.to_dict() for image in prop.images]
    data["features"] = [feature.name for feature in features]
    return data


def get_property_detail(database: DatabaseManager, property_id: str) -> Optional[dict[str, Any]]:
    """Property with its images and feature names, or None."""
    with database.session() as session:
        repo = PropertyRepository(session)
        prop = repo.get_with_relations(property_id)
        if prop is None:
            return None
        return _serialize(prop, repo.features_for(property_id))


def list_properties(
    database: DatabaseManager,
    filters: Mapping[str, Any],
    seller_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> list[dict[str, Any]]:
    with database.session() as session:
        repo = PropertyRepository(session)
        return [
            _serialize(prop)
            for prop in repo.list_properties(filters, seller_id=seller_id, limit=limit, offset=offset)
        ]


def update_property(
    database: DatabaseManager, property_id: str, fields: Mapping[str, Any]
) -> Optional[tuple[dict[str, Any], dict[str, Any]]]:
    """
    Apply a partial update.

    Returns:
        (before, after) snapshots, or None when the property does not exist
    """
    with database.session() as session:
        repo = PropertyRepository(session)
        prop = repo.get_by_id(property_id)
        if prop is None:
            return None
        before = prop.to_dict()
        prop = repo.update(property_id, **fields)
        return before, prop.to_dict()


def delete_property(database: DatabaseManager, property_id: str) -> Optional[dict[str, Any]]:
    """Delete a property; returns its last snapshot, or None when missing."""
    with database.session() as session:
        repo = PropertyRepository(session)
        prop = repo.get_by_id(property_id)
        if prop is None:
            return None
        snapshot = prop.to_dict()
        repo.delete(property_id)
        return snapshot


def add_image(
    database: DatabaseManager,
    property_id: str,
    image_url: str,
    is_cover: bool = False,
    display_order: int = 0,
) -> Optional[tuple[dict[str, Any], dict[str, Any]]]:
    """Attach an image. Returns (property, image) snapshots, or None when missing."""
    with database.session() as session:
        repo = PropertyRepository(session)
        image = repo.add_image(property_id, image_url, is_cover=is_cover, display_order=display_order)
        if image is None:
            return None
        return repo.get_by_id(property_id).to_dict(), image.to_dict()


def delete_image(
    database: DatabaseManager, image_id: str
) -> Optional[tuple[dict[str, Any], dict[str, Any]]]:
    """Delete an image. Returns (property, image) snapshots, or None when missing."""
    with database.session() as session:
        repo = PropertyRepository(session)
        image = repo.get_image(image_id)
        if image is None:
            return None
        prop = repo.get_by_id(image.property_id).to_dict()
        snapshot = image.to_dict()
        repo.delete_image(image_id)
        return prop, snapshot


async def invalidate_property(
    cache: CacheClient,
    snapshots: Iterable[Optional[Mapping[str, Any]]],
    keys: CacheKeyBuilder = CACHE_KEYS,
) -> None:
    """
    Drop every cache entry that can hold one of the given property versions.

    Pass the pre-write and post-write snapshots so listings under both the
    old and the new zone, operation and seller are covered. Unfiltered
    listing keys are deleted explicitly since the list patterns only match
    filtered keys.
    """
    exact: dict[str, None] = {}
    patterns: dict[str, None] = {}
    for snapshot in snapshots:
        if not snapshot:
            continue
        exact[keys.property(snapshot["id"])] = None
        exact[keys.properties.list()] = None
        if snapshot.get("seller_id"):
            exact[keys.seller(snapshot["seller_id"]).list()] = None
        for pattern in keys.property_invalidation_patterns(snapshot):
            patterns[pattern] = None

    for key in exact:
        await cache.delete(key)
    for pattern in patterns:
        await cache.invalidate_pattern(pattern)

    logger.info("property_cache_invalidated", keys=len(exact), patterns=len(patterns))


async def invalidate_after_image_change(
    cache: CacheClient,
    property: Mapping[str, Any],
    keys: CacheKeyBuilder = CACHE_KEYS,
) -> None:
    """Image mutations drop the detail key and every listing namespace."""
    await cache.delete(keys.property(property["id"]))
    for pattern in get_affected_cache_patterns(property, keys):
        await cache.invalidate_pattern(pattern)
