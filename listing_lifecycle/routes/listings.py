"""
Listing lifecycle routes.

Handlers only read the request and shape the response. Every rule about order,
ownership and partial failure lives in ListingLifecycleCoordinator, which is
synchronous and runs in the threadpool. ListingError subclasses are turned into
JSON error bodies by the handler registered in main.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from listing_lifecycle.dependencies import get_actor_id, get_coordinator
from listing_lifecycle.errors import ListingError, PartialConsistencyWarning, ValidationError
from listing_lifecycle.normalizers.listing_form import parse_flag, parse_variant
from listing_lifecycle.schemas.listings import StatusUpdatePayload
from listing_lifecycle.services.asset_store import AssetBlob
from listing_lifecycle.services.coordinator import Actor, ListingLifecycleCoordinator

logger = structlog.get_logger(__name__)
router = APIRouter()


@dataclass
class ListingForm:
    """Scalar fields and file entries pulled off one multipart request."""

    fields: dict[str, str]
    images: list[AssetBlob]
    receipt: Optional[AssetBlob] = None


async def _to_blob(upload: UploadFile) -> AssetBlob:
    content = await upload.read()
    return AssetBlob(
        filename=upload.filename or "",
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )


async def read_listing_form(request: Request) -> ListingForm:
    """
    Split a multipart body into scalar fields, ordered images and an optional receipt.

    Images come from every key starting with "files" in form order; a single
    "file" entry is used only when there are none. Parts without a filename
    are ignored.
    """
    form = await request.form()
    fields: dict[str, str] = {}
    images: list[AssetBlob] = []
    single: Optional[AssetBlob] = None
    receipt: Optional[AssetBlob] = None

    for key, value in form.multi_items():
        if not isinstance(value, UploadFile):
            fields[key] = value
            continue
        if not value.filename:
            continue
        if key.startswith("files"):
            images.append(await _to_blob(value))
        elif key == "file" and single is None:
            single = await _to_blob(value)
        elif key == "receipt" and receipt is None:
            receipt = await _to_blob(value)

    if not images and single is not None:
        images = [single]

    return ListingForm(fields=fields, images=images, receipt=receipt)


def _with_warnings(body: dict[str, Any], warnings: list[PartialConsistencyWarning]) -> dict[str, Any]:
    if warnings:
        body["warnings"] = [w.to_dict() for w in warnings]
    return body


def _internal_error(event: str, error: Exception, **context: Any) -> ListingError:
    logger.exception(event, error=str(error), **context)
    return ListingError("Internal server error")


@router.post("/listings/{listing_type}")
async def create_listing(
    listing_type: str,
    request: Request,
    actor_id: Optional[str] = Depends(get_actor_id),
    coordinator: ListingLifecycleCoordinator = Depends(get_coordinator),
) -> dict[str, Any]:
    """
    Create a vehicle or property listing from a multipart form.

    Args:
        listing_type: car or house
        request: Incoming multipart request
        actor_id: Authenticated user id from the gateway
        coordinator: Lifecycle coordinator

    Returns:
        dict: success flag, new listing id and payment id, plus warnings if any
    """
    try:
        variant = parse_variant(listing_type)
        form = await read_listing_form(request)
        actor = Actor(user_id=actor_id, is_admin=parse_flag(form.fields.get("isAdmin")))

        result = await run_in_threadpool(
            coordinator.create, variant, actor, form.fields, form.images, form.receipt
        )

        return _with_warnings(
            {
                "success": True,
                "message": "Listing created successfully",
                "listingId": result.listing.id,
                "paymentId": result.listing.payment_id,
            },
            result.warnings,
        )

    except ListingError:
        raise
    except Exception as e:
        raise _internal_error("listing_create_crashed", e, listing_type=listing_type)


@router.get("/listings/{listing_type}")
async def list_listings(
    listing_type: str,
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    status: Optional[str] = Query(None),
    visibility: Optional[str] = Query(None),
    coordinator: ListingLifecycleCoordinator = Depends(get_coordinator),
) -> dict[str, Any]:
    """List listings of one variant, newest first."""
    variant = parse_variant(listing_type)
    listings = await run_in_threadpool(
        coordinator.list, variant, owner_id, status, visibility
    )
    return {"success": True, "listings": [listing.to_public() for listing in listings]}


@router.get("/listings/{listing_type}/{listing_id}")
async def get_listing(
    listing_type: str,
    listing_id: str,
    coordinator: ListingLifecycleCoordinator = Depends(get_coordinator),
) -> dict[str, Any]:
    variant = parse_variant(listing_type)
    listing = await run_in_threadpool(coordinator.get, variant, listing_id)
    return {"success": True, "listing": listing.to_public()}


@router.put("/listings/{listing_type}/{listing_id}")
async def update_listing(
    listing_type: str,
    listing_id: str,
    request: Request,
    actor_id: Optional[str] = Depends(get_actor_id),
    coordinator: ListingLifecycleCoordinator = Depends(get_coordinator),
) -> dict[str, Any]:
    """
    Replace a listing's fields and reconcile its images.

    Form extras: removedImageUrls (JSON array), replaceImages ("true"), receipt.

    Returns:
        dict: success flag, listing id, payment id and the updated listing
    """
    try:
        variant = parse_variant(listing_type)
        form = await read_listing_form(request)
        actor = Actor(
            user_id=actor_id,
            is_admin=parse_flag(form.fields.get("isAdmin"))
            or parse_flag(request.query_params.get("isAdmin")),
        )

        result = await run_in_threadpool(
            coordinator.update, variant, listing_id, actor, form.fields, form.images, form.receipt
        )

        return _with_warnings(
            {
                "success": True,
                "message": "Listing updated successfully",
                "listingId": result.listing.id,
                "paymentId": result.listing.payment_id,
                "listing": result.listing.to_public(),
            },
            result.warnings,
        )

    except ListingError:
        raise
    except Exception as e:
        raise _internal_error("listing_update_crashed", e, listing_id=listing_id)


@router.patch("/listings/{listing_type}/{listing_id}")
async def update_listing_status(
    listing_type: str,
    listing_id: str,
    request: Request,
    coordinator: ListingLifecycleCoordinator = Depends(get_coordinator),
) -> dict[str, Any]:
    """
    Move a listing between Pending and Active.

    Returns:
        dict: success flag and the updated listing
    """
    variant = parse_variant(listing_type)
    try:
        payload = StatusUpdatePayload.model_validate(await request.json())
    except ValueError:
        raise ValidationError("Request body must be a JSON object with a status field")

    listing = await run_in_threadpool(
        coordinator.set_status, variant, listing_id, payload.status
    )
    return {
        "success": True,
        "message": "Listing status updated successfully",
        "listing": listing.to_public(),
    }


@router.delete("/listings/{listing_type}/{listing_id}")
async def delete_listing(
    listing_type: str,
    listing_id: str,
    is_admin: Optional[str] = Query(None, alias="isAdmin"),
    actor_id: Optional[str] = Depends(get_actor_id),
    coordinator: ListingLifecycleCoordinator = Depends(get_coordinator),
) -> dict[str, Any]:
    """
    Delete a listing and sweep its payments, reviews and notifications.

    Dependent cleanup failures are logged but never change the response.

    Returns:
        dict: success flag, deleted listing id and its payment id
    """
    try:
        variant = parse_variant(listing_type)
        actor = Actor(user_id=actor_id, is_admin=parse_flag(is_admin))

        result = await run_in_threadpool(coordinator.delete, variant, listing_id, actor)

        return {
            "success": True,
            "message": "Listing and associated data deleted successfully",
            "listingId": result.listing_id,
            "paymentId": result.payment_id,
        }

    except ListingError:
        raise
    except Exception as e:
        raise _internal_error("listing_delete_crashed", e, listing_id=listing_id)
