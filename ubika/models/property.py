"""
Property SQLAlchemy models.

Canonical relational rows for listings: the property itself, its images and
its feature assignments. The read-model is built from these.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Property(Base):
    """A listed property. operation_status_id: 1 = sale, 2 = rent."""

    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[Optional[float]] = mapped_column(Float)
    address: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(120), index=True)
    state: Mapped[Optional[str]] = mapped_column(String(120))
    country: Mapped[Optional[str]] = mapped_column(String(120))
    zip_code: Mapped[Optional[str]] = mapped_column(String(20))
    type: Mapped[Optional[str]] = mapped_column(String(50))
    rooms: Mapped[Optional[int]] = mapped_column(Integer)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer)
    square_meters: Mapped[Optional[float]] = mapped_column(Float)
    status: Mapped[Optional[str]] = mapped_column(String(50))
    seller_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    operation_status_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    images: Mapped[List["PropertyImage"]] = relationship(
        back_populates="property",
        cascade="all, delete-orphan",
        order_by=lambda: [PropertyImage.is_cover.desc(), PropertyImage.display_order],
    )
    feature_assignments: Mapped[List["PropertyFeatureAssignment"]] = relationship(
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the row as returned by the API and cached."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "zip_code": self.zip_code,
            "type": self.type,
            "rooms": self.rooms,
            "bathrooms": self.bathrooms,
            "square_meters": self.square_meters,
            "status": self.status,
            "seller_id": self.seller_id,
            "operation_status_id": self.operation_status_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class PropertyImage(Base):
    __tablename__ = "property_images"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    property_id: Mapped[str] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), index=True
    )
    image_url: Mapped[str] = mapped_column(String(1024))
    is_cover: Mapped[bool] = mapped_column(Boolean, default=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    property: Mapped["Property"] = relationship(back_populates="images")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "property_id": self.property_id,
            "image_url": self.image_url,
            "is_cover": self.is_cover,
            "display_order": self.display_order,
        }


class PropertyFeature(Base):
    __tablename__ = "property_features"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}


class PropertyFeatureAssignment(Base):
    __tablename__ = "property_feature_assignments"

    property_id: Mapped[str] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), primary_key=True
    )
    feature_id: Mapped[int] = mapped_column(
        ForeignKey("property_features.id", ondelete="CASCADE"), primary_key=True
    )

    feature: Mapped["PropertyFeature"] = relationship()
