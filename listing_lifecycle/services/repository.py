"""
Repositories for the canonical listing document and its payment record.

Both own the engine and the transaction boundary, call the plain reader/writer
functions, and convert store failures into the listing error taxonomy. They do
no image reconciliation or ownership checks; that is the coordinator's job.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from listing_lifecycle.db.readers.listings import get_listing, list_listings
from listing_lifecycle.db.writers.listings import (
    delete_listing,
    insert_listing,
    update_listing,
    update_listing_status,
)
from listing_lifecycle.db.writers.payments import insert_payment, update_payment_receipt
from listing_lifecycle.errors import NotFoundError, StorageError, ValidationError
from listing_lifecycle.schemas.listings import SETTABLE_STATUSES, ListingRead

logger = structlog.get_logger(__name__)


def _to_read(row: dict[str, Any]) -> ListingRead:
    return ListingRead.model_validate(
        {**row, "image_urls": row.get("image_urls") or [], "attributes": row.get("attributes") or {}}
    )


class ListingRepository:
    """
    Create/read/update/delete of listing rows.

    Example:
        >>> repo = ListingRepository(engine)
        >>> listing = repo.create({"variant": "car", "name": "Corolla", ...})
        >>> repo.set_status(listing.id, "Active").status
        'Active'
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def create(self, data: dict[str, Any]) -> ListingRead:
        try:
            with self.engine.begin() as conn:
                listing_id = insert_listing(conn, data)
                row = get_listing(conn, listing_id)
        except SQLAlchemyError as e:
            logger.exception("listing_insert_failed", error=str(e))
            raise StorageError(f"insert failed: {e}")
        if row is None:
            raise StorageError("row vanished after write")
        return _to_read(row)

    def get(self, listing_id: str, variant: Optional[str] = None) -> ListingRead:
        try:
            with self.engine.connect() as conn:
                row = get_listing(conn, listing_id, variant=variant)
        except SQLAlchemyError as e:
            logger.exception("listing_read_failed", listing_id=listing_id, error=str(e))
            raise StorageError(f"read failed: {e}")
        if row is None:
            raise NotFoundError(f"Listing {listing_id} not found")
        return _to_read(row)

    def list(
        self,
        variant: str,
        owner_id: Optional[str] = None,
        status: Optional[str] = None,
        visibility: Optional[str] = None,
    ) -> list[ListingRead]:
        try:
            with self.engine.connect() as conn:
                rows = list_listings(
                    conn, variant, owner_id=owner_id, status=status, visibility=visibility
                )
        except SQLAlchemyError as e:
            logger.exception("listing_list_failed", variant=variant, error=str(e))
            raise StorageError(f"list failed: {e}")
        return [_to_read(row) for row in rows]

    def update(self, listing_id: str, fields: dict[str, Any]) -> ListingRead:
        """
        Overwrite listing fields.

        The caller must pass the final image_urls/image_url pair; nothing is
        derived here.
        """
        try:
            with self.engine.begin() as conn:
                if not update_listing(conn, listing_id, fields):
                    raise NotFoundError(f"Listing {listing_id} not found")
                row = get_listing(conn, listing_id)
        except SQLAlchemyError as e:
            logger.exception("listing_update_failed", listing_id=listing_id, error=str(e))
            raise StorageError(f"update failed: {e}")
        if row is None:
            raise StorageError("row vanished after write")
        return _to_read(row)

    def delete(self, listing_id: str) -> None:
        try:
            with self.engine.begin() as conn:
                if not delete_listing(conn, listing_id):
                    raise NotFoundError(f"Listing {listing_id} not found")
        except SQLAlchemyError as e:
            logger.exception("listing_delete_failed", listing_id=listing_id, error=str(e))
            raise StorageError(f"delete failed: {e}")

    def set_status(self, listing_id: str, status: str) -> ListingRead:
        """
        Move a listing between Pending and Active.

        Raises:
            ValidationError: For any other status value
            NotFoundError: If the listing does not exist
        """
        if status not in {s.value for s in SETTABLE_STATUSES}:
            raise ValidationError("Invalid status value")
        try:
            with self.engine.begin() as conn:
                if not update_listing_status(conn, listing_id, status):
                    raise NotFoundError(f"Listing {listing_id} not found")
                row = get_listing(conn, listing_id)
        except SQLAlchemyError as e:
            logger.exception("listing_status_failed", listing_id=listing_id, error=str(e))
            raise StorageError(f"status update failed: {e}")
        if row is None:
            raise StorageError("row vanished after write")
        return _to_read(row)


class PaymentRepository:
    """Writes to the payments collection made on behalf of listing operations."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def record(
        self,
        payment_id: str,
        listing_id: str,
        product_type: str,
        user_id: str,
        receipt_url: str = "",
        service_price: Optional[Decimal] = None,
    ) -> None:
        try:
            with self.engine.begin() as conn:
                insert_payment(
                    conn,
                    {
                        "payment_id": payment_id,
                        "product_id": listing_id,
                        "product_type": product_type,
                        "user_id": user_id,
                        "receipt_url": receipt_url,
                        "service_price": service_price,
                    },
                )
        except SQLAlchemyError as e:
            raise StorageError(f"payment insert failed: {e}")

    def attach_receipt(
        self,
        listing_id: str,
        payment_id: str,
        receipt_url: str,
        service_price: Optional[Decimal] = None,
    ) -> int:
        """Returns the number of payment rows that now point at the receipt."""
        try:
            with self.engine.begin() as conn:
                return update_payment_receipt(
                    conn, listing_id, payment_id, receipt_url, service_price=service_price
                )
        except SQLAlchemyError as e:
            raise StorageError(f"payment receipt update failed: {e}")
