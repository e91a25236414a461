import json
import uuid
from typing import Any

import structlog
from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Connection

from listing_lifecycle.config import DEBUG
from listing_lifecycle.models.listings import Listing
from listing_lifecycle.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def insert_listing(conn: Connection, data: dict[str, Any]) -> str:
    """
    Insert a new listing row and return its generated id.

    Args:
        conn (Connection): SQLAlchemy DB connection (inside a transaction).
        data (dict): Column values; id and timestamps are assigned here.

    Returns:
        str: The new listing id.
    """
    now = utc_now()
    listing_id = str(uuid.uuid4())
    row = {**data, "id": listing_id, "created_at": now, "updated_at": now}

    if DEBUG:
        logger.debug(f"Listing to insert {json.dumps(row, default=str, indent=2)}")

    conn.execute(insert(Listing).values(row))
    return listing_id


def update_listing(conn: Connection, listing_id: str, data: dict[str, Any]) -> bool:
    """
    Overwrite listing fields. Last write wins; no row lock is taken.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        listing_id (str): Listing id.
        data (dict): Fields to set.

    Returns:
        bool: True if a row was updated, False if the listing does not exist.
    """
    stmt = (
        update(Listing)
        .where(Listing.id == listing_id)
        .values(**data, updated_at=utc_now())
    )
    return conn.execute(stmt).rowcount > 0


def update_listing_status(conn: Connection, listing_id: str, status: str) -> bool:
    """
    Set only the status of a listing.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        listing_id (str): Listing id.
        status (str): New status value (already validated).

    Returns:
        bool: True if a row was updated.
    """
    stmt = (
        update(Listing)
        .where(Listing.id == listing_id)
        .values(status=status, updated_at=utc_now())
    )
    return conn.execute(stmt).rowcount > 0


def delete_listing(conn: Connection, listing_id: str) -> bool:
    """
    Permanently delete a listing row.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        listing_id (str): Listing id.

    Returns:
        bool: True if a row was deleted.
    """
    return conn.execute(delete(Listing).where(Listing.id == listing_id)).rowcount > 0
