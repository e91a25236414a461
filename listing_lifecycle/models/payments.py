from sqlalchemy import Column, DateTime, Integer, Numeric, String
from sqlalchemy.sql import func

from listing_lifecycle.models.base import Base


class Payment(Base):
    """
    ORM model for listing-fee payment receipts.

    Linked to a listing only by value: product_id holds the listing id and
    payment_id is shared with Listing.payment_id. Neither is an enforced foreign
    key, so the listing delete path is responsible for sweeping these rows.
    """

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_id = Column(String(255), nullable=False, index=True)
    product_id = Column(String(36), nullable=False, index=True)
    product_type = Column(String(16), nullable=False)  # car | house
    user_id = Column(String(255), nullable=True)
    service_price = Column(Numeric(14, 2), nullable=True)
    receipt_url = Column(String(1024), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
