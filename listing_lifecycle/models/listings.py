import uuid

from sqlalchemy import JSON, Column, DateTime, Numeric, String, Text
from sqlalchemy.sql import func

from listing_lifecycle.models.base import Base


def _new_listing_id() -> str:
    return str(uuid.uuid4())


class Listing(Base):
    """
    ORM model for marketplace listings (vehicles and properties).

    One table holds both variants, tagged by `variant`. Columns shared by every
    listing are first-class; variant-specific fields (mileage, bedrooms, ...) live
    in the `attributes` JSON blob.

    image_urls is ordered: position 0 is the primary/display image, and image_url
    mirrors it for older consumers.
    """

    __tablename__ = "listings"

    id = Column(String(36), primary_key=True, default=_new_listing_id)
    variant = Column(String(16), nullable=False, index=True)  # car | house
    owner_id = Column(String(255), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(8), nullable=False, default="USD")
    advertisement_type = Column(String(16), nullable=False, default="Sale")
    payment_method = Column(String(16), nullable=True)
    attributes = Column(JSON, nullable=False, default=dict)

    image_urls = Column(JSON, nullable=False, default=list)
    image_url = Column(String(1024), nullable=True)

    payment_id = Column(String(255), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="Pending")
    visibility = Column(String(16), nullable=False, default="Private")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
