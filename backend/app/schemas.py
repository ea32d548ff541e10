"""
Pydantic schemas for request and response validation.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PropertyUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are written."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    zip_code: str | None = None
    type: str | None = None
    rooms: int | None = Field(default=None, ge=0)
    bathrooms: int | None = Field(default=None, ge=0)
    square_meters: float | None = Field(default=None, ge=0)
    status: str | None = None
    seller_id: str | None = None
    operation_status_id: int | None = None


class ImageCreateRequest(BaseModel):
    image_url: str = Field(min_length=1, max_length=1024)
    is_cover: bool = False
    display_order: int = Field(default=0, ge=0)


class SyncPropertyRequest(BaseModel):
    """Either ``propertyId`` or ``id`` names the property to sync."""

    property_id: str | int | None = Field(default=None, alias="propertyId")
    id: str | int | None = None

    def resolved_id(self) -> str | None:
        value = self.property_id or self.id
        return str(value) if value else None


class SyncPropertyResponse(BaseModel):
    ok: bool


class CacheRefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scope: Literal["user", "all"] = "all"
    property_id: str | None = Field(default=None, alias="propertyId")
    seller_id: str | None = Field(default=None, alias="sellerId")


class CacheRefreshResponse(BaseModel):
    success: bool
    message: str
