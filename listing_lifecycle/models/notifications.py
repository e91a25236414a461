from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from listing_lifecycle.models.base import Base


class Notification(Base):
    """
    ORM model for user notifications.

    A notification may point at a listing through either target_id or entity_id,
    depending on which subsystem emitted it.
    """

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=True)
    target_id = Column(String(36), nullable=True, index=True)
    entity_id = Column(String(36), nullable=True, index=True)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
