"""
Read-model: denormalized property documents for search.

Usage:
    from ubika.read_model import SyncParams, build_and_upsert, create_document_store

    store = create_document_store()
    result = await build_and_upsert(SyncParams(property=..., images=..., ...))
"""

from ubika.read_model.images import BaseUrlImageResolver, IdentityImageResolver
from ubika.read_model.search import search_cached
from ubika.read_model.store import (
    DocumentStore,
    PropertyDocumentRecord,
    ReadModelBase,
    SearchFilters,
    SearchResult,
    create_document_store,
    read_model_db,
)
from ubika.read_model.synchronizer import (
    CacheInvalidator,
    DocumentSink,
    ImageResolver,
    SyncParams,
    SyncResult,
    build_and_upsert,
    build_document,
)

__all__ = [
    "BaseUrlImageResolver",
    "CacheInvalidator",
    "DocumentSink",
    "DocumentStore",
    "IdentityImageResolver",
    "ImageResolver",
    "PropertyDocumentRecord",
    "ReadModelBase",
    "SearchFilters",
    "SearchResult",
    "SyncParams",
    "SyncResult",
    "build_and_upsert",
    "build_document",
    "create_document_store",
    "read_model_db",
    "search_cached",
]
