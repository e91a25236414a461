from sqlalchemy import delete
from sqlalchemy.engine import Connection

from listing_lifecycle.models.reviews import Review


def delete_reviews(conn: Connection, listing_id: str) -> int:
    """
    Delete every review of a listing.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        listing_id (str): Listing id stored in product_id.

    Returns:
        int: Number of rows deleted.
    """
    return conn.execute(delete(Review).where(Review.product_id == listing_id)).rowcount
