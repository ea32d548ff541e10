"""
Cache maintenance and debug endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from ubika.cache import CACHE_KEYS, CacheClient, CacheMetrics, cache_metrics
from ubika.cache.client import BACKEND_ERRORS
from ubika.config import Settings, get_settings
from ubika.logging import get_logger

from ..dependencies import get_cache_client, require_admin_secret
from ..schemas import CacheRefreshRequest, CacheRefreshResponse

logger = get_logger("api.cache")

router = APIRouter(tags=["cache"])


def get_cache_metrics() -> CacheMetrics:
    return cache_metrics


@router.post(
    "/cache/refresh",
    response_model=CacheRefreshResponse,
    dependencies=[Depends(require_admin_secret)],
)
async def refresh_cache(
    payload: CacheRefreshRequest | None = None,
    cache: CacheClient = Depends(get_cache_client),
):
    """
    Force-refresh listing caches.

    scope "user" clears one seller's listings (sellerId), "all" also clears
    the global listings. propertyId additionally drops that detail entry.
    A backend failure at any step answers success=false.
    """
    payload = payload or CacheRefreshRequest()
    matched = 0

    try:
        if payload.seller_id:
            seller_keys = CACHE_KEYS.seller(payload.seller_id)
            await cache.delete(seller_keys.list(), raise_errors=True)
            matched += await cache.invalidate_pattern(
                seller_keys.list_pattern(), raise_errors=True
            )

        if payload.scope == "all":
            await cache.delete(CACHE_KEYS.properties.list(), raise_errors=True)
            matched += await cache.invalidate_pattern(
                CACHE_KEYS.properties.list_pattern(), raise_errors=True
            )

        if payload.property_id:
            await cache.delete(CACHE_KEYS.property(payload.property_id), raise_errors=True)
    except BACKEND_ERRORS as e:
        logger.error("cache_refresh_failed", scope=payload.scope, error=str(e))
        return CacheRefreshResponse(success=False, message="Partial cache refresh")

    logger.info(
        "cache_refreshed",
        scope=payload.scope,
        seller_id=payload.seller_id,
        property_id=payload.property_id,
        matched=matched,
    )
    return CacheRefreshResponse(success=True, message="Cache refreshed")


@router.get("/debug/cache-metrics")
def get_cache_metrics_snapshot(
    settings: Settings = Depends(get_settings),
    metrics: CacheMetrics = Depends(get_cache_metrics),
):
    """Current cache counters. Hidden in production unless ENABLE_DEBUG_ENDPOINTS is set."""
    if not settings.debug_endpoints_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return metrics.get_snapshot().to_dict()
