"""
Error taxonomy for listing lifecycle operations.

Every failure that leaves a component is one of these kinds. The HTTP layer maps
them to status codes; nothing else crosses the coordinator boundary.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import status


class ListingError(Exception):
    """Base class for failures surfaced to callers of the coordinator."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "internal"

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.message = message
        # Operator-only detail, logged but never returned to the caller
        self.detail = detail


class ValidationError(ListingError):
    """Missing or malformed input. Raised before any side effect."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation"


class AuthorizationError(ListingError):
    """Actor is unknown or lacks rights over the target listing."""

    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "authorization"


class NotFoundError(ListingError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class AssetUploadError(ListingError):
    """The asset host was unreachable, rejected a file, or answered garbage."""

    kind = "asset_upload"

    def __init__(self, detail: str):
        super().__init__("Failed to upload files, please try again", detail=detail)


class StorageError(ListingError):
    """The primary document store failed a read or write."""

    kind = "storage"

    def __init__(self, detail: str):
        super().__init__("Failed to save listing, please try again", detail=detail)


class DependentCleanupError(Exception):
    """
    A dependent collection delete failed during a listing delete.

    Captured into the SweepReport by the sweeper; never propagated to callers.
    """

    def __init__(self, kind: str, reason: str):
        super().__init__(f"{kind}: {reason}")
        self.kind = kind
        self.reason = reason


@dataclass(frozen=True)
class PartialConsistencyWarning:
    """Non-fatal inconsistency returned alongside a successful response."""

    code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}
