"""
Read-model synchronizer.

Projects a canonical property (plus its images and features) into the
denormalized document served by search, writes it to the document store and
invalidates every cache entry that could hold the old version.

The synchronizer depends only on small capabilities, so the HTTP handler,
the CLI and tests each plug in their own store, cache and image resolver.
Authentication and rate limiting are the caller's job.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from ubika.cache.cache_keys import CACHE_KEYS, CacheKeyBuilder
from ubika.logging import get_logger

logger = get_logger("read_model.sync")

SUMMARY_LENGTH = 240


class ImageResolver(Protocol):
    async def resolve(self, url: str) -> str: ...


class DocumentSink(Protocol):
    async def upsert_property_document(self, property_id: str, doc: dict[str, Any]) -> None: ...


class CacheInvalidator(Protocol):
    async def delete(self, key: str) -> None: ...

    async def invalidate_pattern(self, pattern: str) -> int: ...


@dataclass
class SyncParams:
    """Everything one sync needs. Rows are plain mappings (e.g. ``Model.to_dict()``)."""

    property: Mapping[str, Any]
    images: Sequence[Mapping[str, Any]]
    features: Sequence[Mapping[str, Any]]
    resolver: ImageResolver
    sink: DocumentSink
    cache: CacheInvalidator
    keys: CacheKeyBuilder = CACHE_KEYS
    default_currency: str = "USD"


@dataclass
class SyncResult:
    ok: bool
    doc: dict[str, Any] = field(default_factory=dict)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def build_document(
    property: Mapping[str, Any],
    images: Sequence[Mapping[str, Any]] = (),
    features: Sequence[Mapping[str, Any]] = (),
    default_currency: str = "USD",
) -> dict[str, Any]:
    """
    Build the denormalized search document for a property.

    Image and feature order is preserved. ``price_per_m2`` is only set when
    both price and square meters are non-zero.
    """
    description = property.get("description")
    price = property.get("price")
    square_meters = property.get("square_meters")
    city = property.get("city")

    return {
        "id": property.get("id"),
        "title": property.get("title"),
        "description": description,
        "summary": description[:SUMMARY_LENGTH] if description else None,
        "features": [f.get("name") for f in features],
        "images": [i.get("image_url") for i in images],
        "neighborhood": {"name": city, "city": city},
        "price": price,
        "price_per_m2": _round_half_up(price / square_meters) if price and square_meters else None,
        "currency": default_currency,
    }


async def _resolve_images(
    images: Sequence[Mapping[str, Any]], resolver: ImageResolver
) -> list[dict[str, Any]]:
    resolved = []
    for image in images:
        original = image.get("image_url")
        url: Optional[str] = original
        try:
            url = await resolver.resolve(original) or original
        except Exception as e:
            logger.warning(
                "image_resolve_failed", image_id=image.get("id"), url=original, error=str(e)
            )
        resolved.append({**image, "image_url": url})
    return resolved


async def build_and_upsert(params: SyncParams) -> SyncResult:
    """
    Sync one property into the read-model.

    Steps run in order: resolve images (keeping the original URL when a
    resolution fails), build the document, upsert it, delete the detail key,
    then invalidate each listing pattern. A failed invalidation is logged and
    the remaining patterns still run. A failed upsert propagates.
    """
    property_id = str(params.property.get("id"))

    images = await _resolve_images(params.images, params.resolver)
    doc = build_document(params.property, images, params.features, params.default_currency)

    await params.sink.upsert_property_document(property_id, doc)
    logger.info("property_document_upserted", property_id=property_id)

    detail_key = params.keys.property(property_id)
    try:
        await params.cache.delete(detail_key)
    except Exception as e:
        logger.warning("sync_cache_delete_failed", key=detail_key, error=str(e))

    for pattern in params.keys.property_invalidation_patterns(params.property):
        try:
            await params.cache.invalidate_pattern(pattern)
        except Exception as e:
            logger.warning("sync_cache_invalidate_failed", pattern=pattern, error=str(e))

    return SyncResult(ok=True, doc=doc)


__all__ = [
    "CacheInvalidator",
    "DocumentSink",
    "ImageResolver",
    "SyncParams",
    "SyncResult",
    "build_and_upsert",
    "build_document",
]
