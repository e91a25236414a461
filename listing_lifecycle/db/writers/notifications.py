from sqlalchemy import delete, or_
from sqlalchemy.engine import Connection

from listing_lifecycle.models.notifications import Notification


def delete_notifications(conn: Connection, listing_id: str) -> int:
    """
    Delete notifications that target or mention a listing.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        listing_id (str): Listing id stored in target_id or entity_id.

    Returns:
        int: Number of rows deleted.
    """
    stmt = delete(Notification).where(
        or_(Notification.target_id == listing_id, Notification.entity_id == listing_id)
    )
    return conn.execute(stmt).rowcount
