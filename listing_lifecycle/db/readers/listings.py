from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from listing_lifecycle.models.listings import Listing

listings = Listing.__table__


def get_listing(conn: Connection, listing_id: str, variant: Optional[str] = None) -> Optional[dict[str, Any]]:
    """
    Fetch a single listing row.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        listing_id (str): Listing id.
        variant (Optional[str]): Restrict the lookup to one variant (car/house).

    Returns:
        Optional[dict[str, Any]]: Column mapping, or None if no such listing exists.
    """
    stmt = select(listings).where(listings.c.id == listing_id)
    if variant is not None:
        stmt = stmt.where(listings.c.variant == variant)
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def list_listings(
    conn: Connection,
    variant: str,
    owner_id: Optional[str] = None,
    status: Optional[str] = None,
    visibility: Optional[str] = None,
) -> list[dict[str, Any]]:
    """
    List listings of one variant, newest first.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        variant (str): car or house.
        owner_id (Optional[str]): Only listings owned by this actor.
        status (Optional[str]): Only listings in this status.
        visibility (Optional[str]): Only listings with this visibility.

    Returns:
        list[dict[str, Any]]: Column mappings.
    """
    stmt = select(listings).where(listings.c.variant == variant)
    if owner_id:
        stmt = stmt.where(listings.c.owner_id == owner_id)
    if status:
        stmt = stmt.where(listings.c.status == status)
    if visibility:
        stmt = stmt.where(listings.c.visibility == visibility)
    stmt = stmt.order_by(listings.c.created_at.desc())
    return [dict(row) for row in conn.execute(stmt).mappings().all()]
