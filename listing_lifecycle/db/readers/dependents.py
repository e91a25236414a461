"""
Read-side checks over the collections that reference listings by copied id.

Used to verify that a listing delete left nothing behind, and by operators to
find rows orphaned by a cleanup that failed.
"""

from typing import Any, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.engine import Connection

from listing_lifecycle.models.listings import Listing
from listing_lifecycle.models.notifications import Notification
from listing_lifecycle.models.payments import Payment
from listing_lifecycle.models.reviews import Review


def count_dependent_records(
    conn: Connection, listing_id: str, payment_id: Optional[str] = None
) -> dict[str, int]:
    """
    Count dependent rows still pointing at a listing.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        listing_id (str): Listing id.
        payment_id (Optional[str]): The listing's payment id, also matched on payments.

    Returns:
        dict[str, int]: Row counts keyed by payments, reviews, notifications.
    """
    payment_match = Payment.product_id == listing_id
    if payment_id:
        payment_match = or_(payment_match, Payment.payment_id == payment_id)

    return {
        "payments": conn.execute(
            select(func.count()).select_from(Payment).where(payment_match)
        ).scalar_one(),
        "reviews": conn.execute(
            select(func.count()).select_from(Review).where(Review.product_id == listing_id)
        ).scalar_one(),
        "notifications": conn.execute(
            select(func.count())
            .select_from(Notification)
            .where(or_(Notification.target_id == listing_id, Notification.entity_id == listing_id))
        ).scalar_one(),
    }


def find_orphaned_dependents(conn: Connection) -> dict[str, list[dict[str, Any]]]:
    """
    List dependent rows whose listing no longer exists.

    A notification is orphaned when whichever of target_id/entity_id it sets
    names a missing listing. Notifications with neither set are not listing
    notifications and are skipped.

    Returns:
        dict[str, list[dict]]: Orphaned rows keyed by payments, reviews, notifications.
    """
    listing_ids = select(Listing.id)

    payments = conn.execute(
        select(Payment.id, Payment.payment_id, Payment.product_id).where(
            Payment.product_id.not_in(listing_ids)
        )
    ).mappings().all()

    reviews = conn.execute(
        select(Review.id, Review.product_id).where(Review.product_id.not_in(listing_ids))
    ).mappings().all()

    notifications = conn.execute(
        select(Notification.id, Notification.target_id, Notification.entity_id).where(
            or_(
                Notification.target_id.is_not(None) & Notification.target_id.not_in(listing_ids),
                Notification.entity_id.is_not(None) & Notification.entity_id.not_in(listing_ids),
            )
        )
    ).mappings().all()

    return {
        "payments": [dict(row) for row in payments],
        "reviews": [dict(row) for row in reviews],
        "notifications": [dict(row) for row in notifications],
    }
