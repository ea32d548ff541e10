"""
Read-model search endpoint.
"""

from fastapi import APIRouter, Depends, Query

from ubika.cache import CacheClient
from ubika.read_model import DocumentStore, search_cached

from ..dependencies import get_cache_client, get_document_store

router = APIRouter(tags=["search"])


@router.get("/search")
async def search(
    q: str | None = Query(default=None),
    city: str | None = Query(default=None),
    price_min: float | None = Query(default=None, alias="priceMin"),
    price_max: float | None = Query(default=None, alias="priceMax"),
    page: int = Query(default=1),
    page_size: int = Query(default=20, alias="pageSize"),
    store: DocumentStore = Depends(get_document_store),
    cache: CacheClient = Depends(get_cache_client),
):
    """Search denormalized documents. page is at least 1, pageSize at most 100."""
    filters = {
        key: value
        for key, value in {"q": q, "city": city, "price_min": price_min, "price_max": price_max}.items()
        if value is not None and value != ""
    }
    page = max(1, page)
    page_size = max(1, min(100, page_size))
    return await search_cached(store, cache, filters, page, page_size)
