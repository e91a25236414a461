"""
Listing lifecycle orchestration.

Creates, updates and deletes listings while keeping three independently failing
systems in step: the external asset host, the listings table, and the payment,
review and notification collections that reference a listing by copied id.
There is no transaction across them. The policy, encoded here and nowhere else:

- Validation and authorization run before any upload.
- An upload failure aborts create/update before anything is written. Blobs
  already stored are left behind on the host.
- Once the listing row is written, follow-up writes (payment record, receipt
  link) are best effort and come back as warnings, never as errors.
- Delete succeeds when the listing row is gone, whatever happened to its
  dependent records.
"""

from __future__ import annotations

import uuid
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional, Sequence

import structlog

from listing_lifecycle.config import ADMIN_OWNER_ID, ADMIN_PAYMENT_PREFIX
from listing_lifecycle.errors import (
    AssetUploadError,
    AuthorizationError,
    ListingError,
    PartialConsistencyWarning,
    StorageError,
    ValidationError,
)
from listing_lifecycle.metrics import listing_operations
from listing_lifecycle.normalizers.listing_form import (
    parse_flag,
    parse_listing_form,
    parse_url_list,
)
from listing_lifecycle.schemas.listings import (
    SETTABLE_STATUSES,
    ListingDraft,
    ListingRead,
    ListingStatus,
    ListingVariant,
    Visibility,
)
from listing_lifecycle.services.asset_store import AssetBlob, AssetFolder
from listing_lifecycle.services.asset_uploader import AssetBatchUploader
from listing_lifecycle.services.image_reconciler import ImageMode, primary_image, reconcile
from listing_lifecycle.services.repository import ListingRepository, PaymentRepository
from listing_lifecycle.services.sweeper import DependentRecordSweeper, SweepReport
from listing_lifecycle.utils.datetime import epoch_millis

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Actor:
    """
    Who is calling. Resolved upstream by the auth layer.

    Admin requests act as ADMIN_OWNER_ID and may touch any listing.
    """

    user_id: Optional[str] = None
    is_admin: bool = False

    @property
    def identity(self) -> Optional[str]:
        return ADMIN_OWNER_ID if self.is_admin else self.user_id


@dataclass
class ListingResult:
    listing: ListingRead
    warnings: list[PartialConsistencyWarning] = field(default_factory=list)


@dataclass
class DeleteResult:
    listing_id: str
    payment_id: str
    sweep: SweepReport


class ListingLifecycleCoordinator:
    """
    Runs the create / update / delete / status flows for listings.

    Args:
        listings: Listing document repository
        payments: Payment record repository
        uploader: Sequential asset uploader
        sweeper: Dependent record sweeper used on delete
    """

    def __init__(
        self,
        listings: ListingRepository,
        payments: PaymentRepository,
        uploader: AssetBatchUploader,
        sweeper: DependentRecordSweeper,
    ):
        self.listings = listings
        self.payments = payments
        self.uploader = uploader
        self.sweeper = sweeper

    # ------------------------------------------------------------------ helpers

    @contextmanager
    def _track(self, operation: str, variant: ListingVariant) -> Iterator[None]:
        try:
            yield
        except ListingError as e:
            listing_operations.labels(
                operation=operation, variant=variant.value, outcome=e.kind
            ).inc()
            if e.detail:
                logger.error(
                    f"listing_{operation}_failed",
                    variant=variant.value,
                    kind=e.kind,
                    detail=e.detail,
                )
            raise
        listing_operations.labels(operation=operation, variant=variant.value, outcome="success").inc()

    @staticmethod
    def _require_identity(actor: Actor) -> str:
        identity = actor.identity
        if not identity:
            raise AuthorizationError("Unauthorized")
        return identity

    @staticmethod
    def _authorize(actor: Actor, listing: ListingRead) -> None:
        """Owners may change their own listings; admins may change any."""
        if actor.is_admin:
            return
        if listing.owner_id != actor.user_id:
            logger.warning(
                "listing_ownership_denied", listing_id=listing.id, actor_id=actor.user_id
            )
            raise AuthorizationError("Unauthorized")

    def _upload_images(self, images: Sequence[AssetBlob]) -> list[str]:
        if not images:
            return []
        batch = self.uploader.upload_all(images, AssetFolder.LISTING_IMAGES)
        if not batch.success:
            raise AssetUploadError(batch.error or "image upload failed")
        return batch.urls

    def _upload_receipt(self, receipt: Optional[AssetBlob]) -> Optional[str]:
        if receipt is None:
            return None
        batch = self.uploader.upload_all([receipt], AssetFolder.RECEIPTS)
        if not batch.success or not batch.urls:
            raise AssetUploadError(f"receipt upload {batch.error}")
        return batch.urls[0]

    @staticmethod
    def _draft_fields(draft: ListingDraft) -> dict[str, Any]:
        return {
            "name": draft.name,
            "description": draft.description,
            "price": draft.price,
            "currency": draft.currency,
            "advertisement_type": draft.advertisement_type.value,
            "payment_method": draft.payment_method.value,
            "attributes": draft.attributes,
        }

    # --------------------------------------------------------------- operations

    def create(
        self,
        variant: ListingVariant,
        actor: Actor,
        form: Mapping[str, Any],
        images: Sequence[AssetBlob] = (),
        receipt: Optional[AssetBlob] = None,
    ) -> ListingResult:
        """
        Create a listing.

        Admin listings go live immediately (Active/Public) with a sentinel payment
        id and no payment record. User listings wait for approval (Pending/Private)
        and get a payment record pointing at the uploaded receipt.

        Raises:
            ValidationError: Bad form fields
            AuthorizationError: Non-admin request without an actor id
            AssetUploadError: An image or the receipt failed to upload; nothing persisted
            StorageError: The listing row could not be written
        """
        with self._track("create", variant):
            draft = parse_listing_form(variant, form)
            owner_id = self._require_identity(actor)

            image_urls = self._upload_images(images)
            receipt_url = self._upload_receipt(receipt)

            if actor.is_admin:
                payment_id = f"{ADMIN_PAYMENT_PREFIX}{epoch_millis()}"
                status, visibility = ListingStatus.ACTIVE, Visibility.PUBLIC
            else:
                payment_id = str(uuid.uuid4())
                status, visibility = ListingStatus.PENDING, Visibility.PRIVATE

            listing = self.listings.create(
                {
                    **self._draft_fields(draft),
                    "variant": variant.value,
                    "owner_id": owner_id,
                    "image_urls": image_urls,
                    "image_url": primary_image(image_urls),
                    "payment_id": payment_id,
                    "status": status.value,
                    "visibility": visibility.value,
                }
            )
            logger.info(
                "listing_created",
                listing_id=listing.id,
                variant=variant.value,
                owner_id=owner_id,
                image_count=len(image_urls),
                admin=actor.is_admin,
            )

            warnings: list[PartialConsistencyWarning] = []
            if not actor.is_admin:
                try:
                    self.payments.record(
                        payment_id=payment_id,
                        listing_id=listing.id,
                        product_type=variant.value,
                        user_id=owner_id,
                        receipt_url=receipt_url or "",
                        service_price=draft.service_price,
                    )
                except StorageError as e:
                    # Listing is kept; the payment must be reconciled by an operator
                    logger.error(
                        "payment_record_failed",
                        listing_id=listing.id,
                        payment_id=payment_id,
                        detail=e.detail,
                    )
                    warnings.append(
                        PartialConsistencyWarning(
                            code="payment_record_failed",
                            message="Listing saved but its payment record could not be stored",
                        )
                    )

            return ListingResult(listing=listing, warnings=warnings)

    def update(
        self,
        variant: ListingVariant,
        listing_id: str,
        actor: Actor,
        form: Mapping[str, Any],
        images: Sequence[AssetBlob] = (),
        receipt: Optional[AssetBlob] = None,
    ) -> ListingResult:
        """
        Replace a listing's fields and reconcile its images.

        `replaceImages=true` swaps the whole image set for the new uploads;
        otherwise `removedImageUrls` are dropped and new uploads appended.

        Raises:
            ValidationError: Bad form fields or malformed removedImageUrls
            AuthorizationError: Missing actor, or actor does not own the listing
            NotFoundError: Unknown listing id
            AssetUploadError: Upload failed; the listing is left untouched
            StorageError: The listing row could not be written
        """
        with self._track("update", variant):
            self._require_identity(actor)
            draft = parse_listing_form(variant, form)
            removed = parse_url_list(form.get("removedImageUrls"))
            mode = ImageMode.REPLACE if parse_flag(form.get("replaceImages")) else ImageMode.APPEND

            existing = self.listings.get(listing_id, variant=variant.value)
            self._authorize(actor, existing)

            uploaded = self._upload_images(images)
            receipt_url = self._upload_receipt(receipt)

            image_urls = reconcile(existing.image_urls, set(removed), uploaded, mode)
            listing = self.listings.update(
                listing_id,
                {
                    **self._draft_fields(draft),
                    "image_urls": image_urls,
                    "image_url": primary_image(image_urls),
                },
            )
            logger.info(
                "listing_updated",
                listing_id=listing_id,
                variant=variant.value,
                mode=mode.value,
                removed=len(removed),
                uploaded=len(uploaded),
                image_count=len(image_urls),
            )

            warnings: list[PartialConsistencyWarning] = []
            if receipt_url:
                warning = self._relink_receipt(existing, receipt_url, draft)
                if warning:
                    warnings.append(warning)

            return ListingResult(listing=listing, warnings=warnings)

    def _relink_receipt(
        self, listing: ListingRead, receipt_url: str, draft: ListingDraft
    ) -> Optional[PartialConsistencyWarning]:
        if listing.is_admin_created:
            logger.warning("receipt_without_payment", listing_id=listing.id)
            return PartialConsistencyWarning(
                code="receipt_not_linked",
                message="Receipt uploaded but this listing has no payment record",
            )
        try:
            updated = self.payments.attach_receipt(
                listing.id, listing.payment_id, receipt_url, service_price=draft.service_price
            )
        except StorageError as e:
            logger.error(
                "payment_receipt_update_failed",
                listing_id=listing.id,
                payment_id=listing.payment_id,
                receipt_url=receipt_url,
                detail=e.detail,
            )
            return PartialConsistencyWarning(
                code="receipt_not_linked",
                message="Listing updated but the payment receipt could not be updated",
            )
        if not updated:
            logger.warning(
                "payment_missing_for_receipt", listing_id=listing.id, payment_id=listing.payment_id
            )
            return PartialConsistencyWarning(
                code="receipt_not_linked",
                message="Receipt uploaded but no matching payment record was found",
            )
        return None

    def delete(self, variant: ListingVariant, listing_id: str, actor: Actor) -> DeleteResult:
        """
        Delete a listing and sweep its dependent records.

        The listing delete and the sweep are issued together. The result depends
        only on the listing delete; sweep failures are logged for operators.

        Raises:
            AuthorizationError: Missing actor, or actor does not own the listing
            NotFoundError: Unknown listing id
            StorageError: The listing row could not be deleted
        """
        with self._track("delete", variant):
            self._require_identity(actor)
            existing = self.listings.get(listing_id, variant=variant.value)
            self._authorize(actor, existing)

            with ThreadPoolExecutor(max_workers=1) as pool:
                listing_delete = pool.submit(self.listings.delete, listing_id)
                report = self.sweeper.sweep(listing_id, existing.payment_id)
                listing_delete.result()

            if report.ok:
                logger.info(
                    "listing_deleted",
                    listing_id=listing_id,
                    payment_id=existing.payment_id,
                    **report.as_log_fields(),
                )
            else:
                logger.error(
                    "listing_deleted_with_orphans",
                    listing_id=listing_id,
                    payment_id=existing.payment_id,
                    failed_kinds=[o.kind for o in report.failures],
                    **report.as_log_fields(),
                )

            return DeleteResult(listing_id=listing_id, payment_id=existing.payment_id, sweep=report)

    def set_status(self, variant: ListingVariant, listing_id: str, status: Any) -> ListingRead:
        """
        Move a listing between Pending and Active. No asset or dependent work.

        Raises:
            ValidationError: Status is not Pending or Active
            NotFoundError: Unknown listing id
        """
        with self._track("set_status", variant):
            if not isinstance(status, str) or status not in {s.value for s in SETTABLE_STATUSES}:
                raise ValidationError("Invalid status value")
            self.listings.get(listing_id, variant=variant.value)
            listing = self.listings.set_status(listing_id, status)
            logger.info("listing_status_changed", listing_id=listing_id, status=status)
            return listing

    def get(self, variant: ListingVariant, listing_id: str) -> ListingRead:
        return self.listings.get(listing_id, variant=variant.value)

    def list(
        self,
        variant: ListingVariant,
        owner_id: Optional[str] = None,
        status: Optional[str] = None,
        visibility: Optional[str] = None,
    ) -> list[ListingRead]:
        return self.listings.list(
            variant.value, owner_id=owner_id, status=status, visibility=visibility
        )
