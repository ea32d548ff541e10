"""
Property endpoints.

Reads go through the cache; writes commit first, then invalidate every key
and listing pattern that can hold the old or the new version before the
response is sent.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.concurrency import run_in_threadpool

from ubika.cache import CACHE_KEYS, CacheClient, build_semantic_cache_key, normalize_filters
from ubika.config import Settings, get_settings
from ubika.db import DatabaseManager
from ubika.logging import get_logger

from ..dependencies import get_cache_client, get_database, require_admin_secret
from ..schemas import ImageCreateRequest, PropertyUpdateRequest
from ..services import property_service

logger = get_logger("api.properties")

router = APIRouter(prefix="/properties", tags=["properties"])

DEFAULT_PAGE_SIZE = 50


@router.get("")
async def list_properties(
    seller_id: str | None = Query(default=None),
    min_price: str | None = Query(default=None, alias="minPrice"),
    max_price: str | None = Query(default=None, alias="maxPrice"),
    bedrooms: str | None = Query(default=None),
    bathrooms: str | None = Query(default=None),
    property_type: str | None = Query(default=None, alias="propertyType"),
    operation: str | None = Query(default=None),
    zone: str | None = Query(default=None),
    min_area: str | None = Query(default=None, alias="minArea"),
    max_area: str | None = Query(default=None, alias="maxArea"),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    cache: CacheClient = Depends(get_cache_client),
    database: DatabaseManager = Depends(get_database),
):
    """List properties, cached per filter combination."""
    filters = normalize_filters(
        {
            "min_price": min_price,
            "max_price": max_price,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "property_type": property_type,
            "operation": operation,
            "zone": zone,
            "min_area": min_area,
            "max_area": max_area,
        }
    )
    key_filters: dict = dict(filters)
    if limit != DEFAULT_PAGE_SIZE or offset:
        key_filters.update(limit=limit, offset=offset)
    key = build_semantic_cache_key(seller_id, key_filters)

    cached = await cache.get(key)
    if cached is not None:
        return cached

    properties = await run_in_threadpool(
        property_service.list_properties, database, filters, seller_id, limit, offset
    )
    await cache.set(key, properties, CACHE_KEYS.TTL_PROPERTY_LIST)
    return properties


@router.get("/{property_id}")
async def get_property(
    property_id: str,
    response: Response,
    cache: CacheClient = Depends(get_cache_client),
    database: DatabaseManager = Depends(get_database),
    settings: Settings = Depends(get_settings),
):
    """Property detail, read through the cache."""
    ttl = settings.property_detail_cache_ttl
    key = CACHE_KEYS.property(property_id)
    response.headers["Cache-Control"] = f"private, max-age={ttl}"

    cached = await cache.get(key)
    if cached is not None:
        return cached

    data = await run_in_threadpool(property_service.get_property_detail, database, property_id)
    if data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")

    await cache.set(key, data, ttl)
    return data


@router.patch("/{property_id}", dependencies=[Depends(require_admin_secret)])
async def update_property(
    property_id: str,
    payload: PropertyUpdateRequest,
    cache: CacheClient = Depends(get_cache_client),
    database: DatabaseManager = Depends(get_database),
):
    fields = payload.model_dump(exclude_unset=True)
    result = await run_in_threadpool(property_service.update_property, database, property_id, fields)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")

    before, after = result
    await property_service.invalidate_property(cache, [before, after])
    logger.info("property_updated", property_id=property_id, fields=sorted(fields))
    return after


@router.delete("/{property_id}", dependencies=[Depends(require_admin_secret)])
async def delete_property(
    property_id: str,
    cache: CacheClient = Depends(get_cache_client),
    database: DatabaseManager = Depends(get_database),
):
    snapshot = await run_in_threadpool(property_service.delete_property, database, property_id)
    if snapshot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")

    await property_service.invalidate_property(cache, [snapshot])
    logger.info("property_deleted", property_id=property_id)
    return {"success": True}


@router.post(
    "/{property_id}/images",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin_secret)],
)
async def add_property_image(
    property_id: str,
    payload: ImageCreateRequest,
    cache: CacheClient = Depends(get_cache_client),
    database: DatabaseManager = Depends(get_database),
):
    result = await run_in_threadpool(
        property_service.add_image,
        database,
        property_id,
        payload.image_url,
        payload.is_cover,
        payload.display_order,
    )
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")

    prop, image = result
    await property_service.invalidate_after_image_change(cache, prop)
    return image


@router.delete("/images/{image_id}", dependencies=[Depends(require_admin_secret)])
async def delete_property_image(
    image_id: str,
    cache: CacheClient = Depends(get_cache_client),
    database: DatabaseManager = Depends(get_database),
):
    result = await run_in_threadpool(property_service.delete_image, database, image_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")

    prop, _ = result
    await property_service.invalidate_after_image_change(cache, prop)
    return {"success": True}
