"""
Read-model sync endpoint.

Protected by the admin secret and rate limited per client address.
"""

from fastapi import APIRouter, Body, Depends, HTTPException, status

from ubika.cache import CacheClient
from ubika.config import Settings, get_settings
from ubika.db import DatabaseManager
from ubika.logging import get_logger
from ubika.read_model import DocumentStore, ImageResolver
from ubika.services import PropertyNotFoundError, sync_property

from ..dependencies import (
    get_cache_client,
    get_database,
    get_document_store,
    get_image_resolver,
    require_admin_secret,
)
from ..dependencies.rate_limit import enforce_sync_rate_limit
from ..schemas import SyncPropertyRequest, SyncPropertyResponse

logger = get_logger("api.sync")

router = APIRouter(tags=["sync"])


@router.post(
    "/sync-property",
    response_model=SyncPropertyResponse,
    dependencies=[Depends(require_admin_secret), Depends(enforce_sync_rate_limit)],
)
async def sync_property_endpoint(
    payload: SyncPropertyRequest | None = Body(default=None),
    database: DatabaseManager = Depends(get_database),
    store: DocumentStore = Depends(get_document_store),
    cache: CacheClient = Depends(get_cache_client),
    resolver: ImageResolver = Depends(get_image_resolver),
    settings: Settings = Depends(get_settings),
):
    """Rebuild one property's read-model document and invalidate its cache entries."""
    property_id = payload.resolved_id() if payload else None
    if not property_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="propertyId is required")

    try:
        await sync_property(
            property_id,
            database=database,
            sink=store,
            cache=cache,
            resolver=resolver,
            default_currency=settings.default_currency,
        )
    except PropertyNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")
    except Exception as e:
        logger.error("property_sync_failed", property_id=property_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upsert read-model",
        ) from e

    return SyncPropertyResponse(ok=True)
