from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from listing_lifecycle.config import ADMIN_PAYMENT_PREFIX


class ListingVariant(str, Enum):
    CAR = "car"
    HOUSE = "house"


class ListingStatus(str, Enum):
    PENDING = "Pending"
    ACTIVE = "Active"
    INACTIVE = "Inactive"


# PATCH may only move a listing between these two states
SETTABLE_STATUSES = (ListingStatus.PENDING, ListingStatus.ACTIVE)


class Visibility(str, Enum):
    PRIVATE = "Private"
    PUBLIC = "Public"


class AdvertisementType(str, Enum):
    SALE = "Sale"
    RENT = "Rent"


class PaymentMethod(str, Enum):
    """Rent cadence. Vehicles and properties accept different subsets."""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    ANNUALLY = "Annually"
    ANNUAL = "Annual"


class HouseType(str, Enum):
    HOUSE = "House"
    APARTMENT = "Apartment"
    GUEST_HOUSE = "Guest House"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VehicleAttributes(_CamelModel):
    """Fields only vehicles carry."""

    mileage: float = Field(..., gt=0)
    year: Optional[int] = None
    speed: Optional[float] = None
    miles_per_gallon: Optional[float] = None
    transmission: Optional[str] = None
    fuel: Optional[str] = None
    body_type: Optional[str] = None
    condition: Optional[str] = None
    engine: Optional[str] = None
    maintenance: Optional[str] = None
    tags: Optional[str] = None


class PropertyAttributes(_CamelModel):
    """Fields only properties carry."""

    house_type: HouseType
    bedroom: int = 0
    bathroom: int = 0
    size: float = 0
    parking_space: int = 0
    condition: str = ""
    maintenance: str = ""
    essentials: list[str] = Field(default_factory=list)


class ListingDraft(BaseModel):
    """
    Validated scalar fields of a create/update request.

    Images, status, visibility and payment linkage are decided by the
    coordinator, not by the caller.
    """

    variant: ListingVariant
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    currency: str = Field(default="USD", max_length=8)
    advertisement_type: AdvertisementType = AdvertisementType.SALE
    payment_method: PaymentMethod
    attributes: dict[str, Any] = Field(default_factory=dict)
    service_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=2)


class ListingRead(_CamelModel):
    """Listing as returned to API consumers."""

    id: str
    variant: ListingVariant
    owner_id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    currency: str
    advertisement_type: str
    payment_method: Optional[str] = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    image_urls: list[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    payment_id: str
    status: str
    visibility: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_admin_created(self) -> bool:
        return self.payment_id.startswith(ADMIN_PAYMENT_PREFIX)

    def to_public(self) -> dict[str, Any]:
        """
        Serialize with camelCase keys and variant fields flattened to the top level,
        the shape older dashboard consumers read.
        """
        body = self.model_dump(mode="json", by_alias=True, exclude={"attributes"})
        body["price"] = float(self.price)
        body["userId"] = body["ownerId"]
        for key, value in self.attributes.items():
            body.setdefault(key, value)
        return body


class StatusUpdatePayload(BaseModel):
    """Body of PATCH /listings/{type}/{id}. Checked against SETTABLE_STATUSES by the coordinator."""

    status: Optional[str] = Field(None, description="Pending or Active")
