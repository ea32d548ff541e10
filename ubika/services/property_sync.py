"""
Property sync service.

Loads a canonical property with its images and features from the relational
store and syncs it into the read-model. Shared by the sync endpoint and the
maintenance CLI.
"""

import asyncio
from typing import Any, Optional

from ubika.cache.cache_keys import CACHE_KEYS, CacheKeyBuilder
from ubika.db import DatabaseManager
from ubika.logging import get_logger, log_timing
from ubika.read_model.synchronizer import (
    CacheInvalidator,
    DocumentSink,
    ImageResolver,
    SyncParams,
    SyncResult,
    build_and_upsert,
)
from ubika.repositories import PropertyRepository

logger = get_logger("services.property_sync")


class PropertyNotFoundError(LookupError):
    """Raised when the property to sync does not exist."""

    def __init__(self, property_id: str):
        super().__init__(f"Property {property_id} not found")
        self.property_id = property_id


def load_sync_inputs(
    database: DatabaseManager, property_id: str
) -> Optional[tuple[dict[str, Any], list[dict[str, Any]], list[dict[str, Any]]]]:
    """
    Read a property, its images (cover first, then display order) and its
    features as plain dicts. None when the property does not exist.
    """
    with database.session() as session:
        repo = PropertyRepository(session)
        prop = repo.get_with_relations(property_id)
        if prop is None:
            return None
        images = [image.to_dict() for image in prop.images]
        features = [feature.to_dict() for feature in repo.features_for(property_id)]
        return prop.to_dict(), images, features


@log_timing("property_sync")
async def sync_property(
    property_id: str,
    database: DatabaseManager,
    sink: DocumentSink,
    cache: CacheInvalidator,
    resolver: ImageResolver,
    default_currency: str = "USD",
    keys: CacheKeyBuilder = CACHE_KEYS,
) -> SyncResult:
    """
    Sync one property from the relational store into the read-model.

    Raises:
        PropertyNotFoundError: If the property does not exist
    """
    inputs = await asyncio.to_thread(load_sync_inputs, database, property_id)
    if inputs is None:
        raise PropertyNotFoundError(property_id)

    prop, images, features = inputs
    result = await build_and_upsert(
        SyncParams(
            property=prop,
            images=images,
            features=features,
            resolver=resolver,
            sink=sink,
            cache=cache,
            keys=keys,
            default_currency=default_currency,
        )
    )
    logger.info("property_synced", property_id=property_id, images=len(images))
    return result


__all__ = ["PropertyNotFoundError", "load_sync_inputs", "sync_property"]
