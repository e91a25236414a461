from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import delete, insert, or_, update
from sqlalchemy.engine import Connection

from listing_lifecycle.models.payments import Payment
from listing_lifecycle.utils.datetime import utc_now


def insert_payment(conn: Connection, data: dict[str, Any]) -> None:
    """
    Record the listing-fee payment for a user-created listing.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        data (dict): payment_id, product_id, product_type, user_id, service_price, receipt_url.
    """
    now = utc_now()
    conn.execute(insert(Payment).values({**data, "uploaded_at": now, "updated_at": now}))


def update_payment_receipt(
    conn: Connection,
    listing_id: str,
    payment_id: str,
    receipt_url: str,
    service_price: Optional[Decimal] = None,
) -> int:
    """
    Point the listing's payment rows at a newly uploaded receipt.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        listing_id (str): Listing id stored in product_id.
        payment_id (str): Payment id shared with the listing.
        receipt_url (str): Public URL of the new receipt.
        service_price (Optional[Decimal]): New service price, if supplied.

    Returns:
        int: Number of payment rows updated.
    """
    values: dict[str, Any] = {"receipt_url": receipt_url, "updated_at": utc_now()}
    if service_price is not None:
        values["service_price"] = service_price

    stmt = (
        update(Payment)
        .where(or_(Payment.product_id == listing_id, Payment.payment_id == payment_id))
        .values(**values)
    )
    return conn.execute(stmt).rowcount


def delete_payments(conn: Connection, listing_id: str, payment_id: str) -> int:
    """
    Delete payments matching the listing id or the listing's payment id.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        listing_id (str): Listing id stored in product_id.
        payment_id (str): Payment id shared with the listing.

    Returns:
        int: Number of rows deleted.
    """
    stmt = delete(Payment).where(
        or_(Payment.product_id == listing_id, Payment.payment_id == payment_id)
    )
    return conn.execute(stmt).rowcount
