"""
Read-model document store.

Denormalized property documents live in the ``property_documents`` table,
one row per property, replaced wholesale on every sync. The searchable
fields are copied out of the document into columns so search works on any
SQL backend. The store has its own engine (READ_MODEL_DATABASE_URL) and its
own declarative base, so it can sit on a different server than the
relational store.

Calls are async and run the blocking session work in a worker thread.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, TypedDict

from sqlalchemy import JSON, DateTime, Float, String, Text, func, select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ubika.config import get_settings
from ubika.db import DatabaseManager
from ubika.logging import get_logger

logger = get_logger("read_model.store")


class ReadModelBase(DeclarativeBase):
    """Declarative base for read-model tables."""

    pass


class PropertyDocumentRecord(ReadModelBase):
    __tablename__ = "property_documents"

    property_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    doc: Mapped[dict[str, Any]] = mapped_column(JSON)
    title: Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    city: Mapped[Optional[str]] = mapped_column(String(120), index=True)
    price: Mapped[Optional[float]] = mapped_column(Float, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "property_id": self.property_id,
            "doc": self.doc,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class SearchFilters(TypedDict, total=False):
    q: str
    city: str
    price_min: float
    price_max: float


@dataclass
class SearchResult:
    results: list[dict[str, Any]] = field(default_factory=list)
    page: int = 1
    page_size: int = 20
    total: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": self.results,
            "page": self.page,
            "pageSize": self.page_size,
            "total": self.total,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentStore:
    """
    Property documents keyed by property id.

    Usage:
        store = DocumentStore(read_model_db)
        await store.upsert_property_document(property_id, doc)
        result = await store.search_property_documents({"city": "Lima"}, page=1)
    """

    def __init__(self, manager: DatabaseManager, clock: Callable[[], datetime] = _utcnow):
        self.manager = manager
        self._clock = clock

    def create_tables(self) -> None:
        self.manager.create_all_tables()

    async def upsert_property_document(self, property_id: str, doc: dict[str, Any]) -> None:
        """Insert or fully replace the document for a property."""
        await asyncio.to_thread(self._upsert, str(property_id), doc)

    def _upsert(self, property_id: str, doc: dict[str, Any]) -> None:
        price = doc.get("price")
        with self.manager.session() as session:
            session.merge(
                PropertyDocumentRecord(
                    property_id=property_id,
                    doc=doc,
                    title=doc.get("title"),
                    description=doc.get("description"),
                    city=(doc.get("neighborhood") or {}).get("city"),
                    price=float(price) if price is not None else None,
                    updated_at=self._clock(),
                )
            )

    async def get_property_document(self, property_id: str) -> Optional[dict[str, Any]]:
        return await asyncio.to_thread(self._get, str(property_id))

    def _get(self, property_id: str) -> Optional[dict[str, Any]]:
        with self.manager.session() as session:
            record = session.get(PropertyDocumentRecord, property_id)
            return record.to_dict() if record else None

    async def search_property_documents(
        self,
        filters: Optional[SearchFilters] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> SearchResult:
        """
        Search documents, most recently synced first.

        Args:
            filters: ``q`` (case-insensitive substring of title or
                description), ``city`` (whole value, any case),
                ``price_min``, ``price_max``
            page: 1-based page number
            page_size: Results per page
        """
        return await asyncio.to_thread(self._search, filters or {}, page, page_size)

    def _search(self, filters: SearchFilters, page: int, page_size: int) -> SearchResult:
        conditions = []
        q = filters.get("q")
        if q:
            conditions.append(
                PropertyDocumentRecord.title.icontains(q, autoescape=True)
                | PropertyDocumentRecord.description.icontains(q, autoescape=True)
            )
        if filters.get("city"):
            conditions.append(func.lower(PropertyDocumentRecord.city) == filters["city"].lower())
        if filters.get("price_min") is not None:
            conditions.append(PropertyDocumentRecord.price >= filters["price_min"])
        if filters.get("price_max") is not None:
            conditions.append(PropertyDocumentRecord.price <= filters["price_max"])

        with self.manager.session() as session:
            total = session.scalar(
                select(func.count()).select_from(PropertyDocumentRecord).where(*conditions)
            )
            records = session.scalars(
                select(PropertyDocumentRecord)
                .where(*conditions)
                .order_by(
                    PropertyDocumentRecord.updated_at.desc(),
                    PropertyDocumentRecord.property_id,
                )
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            results = [record.to_dict() for record in records]

        return SearchResult(results=results, page=page, page_size=page_size, total=total or 0)

    def health_check(self) -> dict:
        return self.manager.health_check()


# Read-model store (denormalized documents)
read_model_db = DatabaseManager(metadata_base=ReadModelBase)


def create_document_store(manager: Optional[DatabaseManager] = None) -> DocumentStore:
    """
    Initialize the read-model database from settings and wrap it in a store.

    Raises:
        ConfigurationError: If the read-model URL names no database
    """
    manager = manager or read_model_db
    url = get_settings().resolve_read_model_url()
    manager.initialize(url)
    manager.create_all_tables()
    logger.info("read_model_store_ready", backend=url.get_backend_name())
    return DocumentStore(manager)


__all__ = [
    "DocumentStore",
    "PropertyDocumentRecord",
    "ReadModelBase",
    "SearchFilters",
    "SearchResult",
    "create_document_store",
    "read_model_db",
]
