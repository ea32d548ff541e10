"""Property repository for listing reads and writes."""

from collections.abc import Mapping
from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import selectinload

from ubika.cache.optimization import normalize_filters
from ubika.models import Property, PropertyFeature, PropertyFeatureAssignment, PropertyImage

from .base import BaseRepository

# operation filter token -> operation_status_id
_OPERATION_IDS = {"sale": 1, "buy": 1, "rent": 2}

# Columns a PATCH may touch
UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "price",
        "address",
        "city",
        "state",
        "country",
        "zip_code",
        "type",
        "rooms",
        "bathrooms",
        "square_meters",
        "status",
        "seller_id",
        "operation_status_id",
    }
)


class PropertyRepository(BaseRepository[Property]):
    """Repository for Property operations."""

    model = Property

    def get_with_relations(self, property_id: str) -> Optional[Property]:
        """Load a property with its images and features in one round of queries."""
        stmt = (
            select(Property)
            .where(Property.id == property_id)
            .options(
                selectinload(Property.images),
                selectinload(Property.feature_assignments).selectinload(
                    PropertyFeatureAssignment.feature
                ),
            )
        )
        return self.session.scalars(stmt).first()

    def list_properties(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        seller_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Property]:
        """
        List properties matching listing filters, newest first.

        Args:
            filters: Raw query filters (normalized here)
            seller_id: Restrict to one seller's listings
            limit: Maximum rows
            offset: Rows to skip
        """
        normalized = normalize_filters(filters)
        stmt = select(Property)

        if seller_id:
            stmt = stmt.where(Property.seller_id == seller_id)
        if "zone" in normalized:
            zone = normalized["zone"]
            stmt = stmt.where(
                or_(
                    Property.city.icontains(zone, autoescape=True),
                    Property.state.icontains(zone, autoescape=True),
                    Property.address.icontains(zone, autoescape=True),
                )
            )
        if "operation" in normalized:
            op_id = _OPERATION_IDS.get(normalized["operation"])
            if op_id is None:
                return []
            stmt = stmt.where(Property.operation_status_id == op_id)
        if "property_type" in normalized:
            stmt = stmt.where(Property.type.ilike(normalized["property_type"]))
        if "min_price" in normalized:
            stmt = stmt.where(Property.price >= normalized["min_price"])
        if "max_price" in normalized:
            stmt = stmt.where(Property.price <= normalized["max_price"])
        if "bedrooms" in normalized:
            stmt = stmt.where(Property.rooms >= normalized["bedrooms"])
        if "bathrooms" in normalized:
            stmt = stmt.where(Property.bathrooms >= normalized["bathrooms"])
        if "min_area" in normalized:
            stmt = stmt.where(Property.square_meters >= normalized["min_area"])
        if "max_area" in normalized:
            stmt = stmt.where(Property.square_meters <= normalized["max_area"])

        stmt = stmt.order_by(Property.created_at.desc()).offset(offset).limit(limit)
        return list(self.session.scalars(stmt))

    def update(self, id: Any, **kwargs) -> Optional[Property]:
        """Update whitelisted columns of a property."""
        fields = {k: v for k, v in kwargs.items() if k in UPDATABLE_FIELDS}
        return super().update(id, **fields)

    def add_image(
        self,
        property_id: str,
        image_url: str,
        is_cover: bool = False,
        display_order: int = 0,
    ) -> Optional[PropertyImage]:
        """Attach an image; None when the property does not exist."""
        if self.get_by_id(property_id) is None:
            return None
        image = PropertyImage(
            property_id=property_id,
            image_url=image_url,
            is_cover=is_cover,
            display_order=display_order,
        )
        self.session.add(image)
        self.session.flush()
        return image

    def get_image(self, image_id: str) -> Optional[PropertyImage]:
        return self.session.get(PropertyImage, image_id)

    def delete_image(self, image_id: str) -> Optional[PropertyImage]:
        """Delete an image and return it (detached) so callers know its property."""
        image = self.get_image(image_id)
        if image is None:
            return None
        self.session.delete(image)
        self.session.flush()
        return image

    def features_for(self, property_id: str) -> list[PropertyFeature]:
        stmt = (
            select(PropertyFeature)
            .join(
                PropertyFeatureAssignment,
                PropertyFeatureAssignment.feature_id == PropertyFeature.id,
            )
            .where(PropertyFeatureAssignment.property_id == property_id)
            .order_by(PropertyFeature.name)
        )
        return list(self.session.scalars(stmt))

    def assign_feature(self, property_id: str, name: str) -> PropertyFeature:
        """Attach a feature by name, creating the feature row if needed."""
        feature = self.session.scalars(
            select(PropertyFeature).where(PropertyFeature.name == name)
        ).first()
        if feature is None:
            feature = PropertyFeature(name=name)
            self.session.add(feature)
            self.session.flush()
        self.session.merge(
            PropertyFeatureAssignment(property_id=property_id, feature_id=feature.id)
        )
        self.session.flush()
        return feature
