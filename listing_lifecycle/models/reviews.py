from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from listing_lifecycle.models.base import Base


class Review(Base):
    """
    ORM model for product reviews.

    The review subsystem owns writes to this table; listings only rely on
    product_id to remove a deleted listing's reviews.
    """

    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(255), nullable=True)
    rating = Column(Integer, nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
