"""
Client for the external file host (cPanel Fileman UAPI) that stores listing
images and payment receipts.

The client knows nothing about listings: it takes one blob, stores it under a
randomized name, and reports the public URL. It never raises past its boundary;
every failure comes back as an UploadResult with success=False.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import requests
import structlog

from listing_lifecycle.config import AssetHostConfig
from listing_lifecycle.metrics import asset_upload_latency, asset_uploads

logger = structlog.get_logger(__name__)

UPLOAD_ENDPOINT = "/execute/Fileman/upload_files"


class AssetFolder(str, Enum):
    """Logical destinations on the asset host."""

    LISTING_IMAGES = "listing-images"
    RECEIPTS = "receipts"


class UploadFailure(str, Enum):
    """Why an upload failed, which decides whether a retry can help."""

    CONFIGURATION = "configuration"  # fatal, do not retry
    TRANSIENT = "transient"  # network, non-2xx or non-JSON; caller may retry
    REJECTED = "rejected"  # host refused the file


@dataclass(frozen=True)
class AssetBlob:
    """A file taken off the inbound request, fully read into memory."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def extension(self) -> str:
        _, dot, ext = self.filename.rpartition(".")
        return ext.lower() if dot and ext else ""


@dataclass(frozen=True)
class UploadResult:
    success: bool
    public_url: Optional[str] = None
    error: Optional[str] = None
    failure: Optional[UploadFailure] = None

    @property
    def retryable(self) -> bool:
        return self.failure is UploadFailure.TRANSIENT


def randomized_filename(blob: AssetBlob) -> str:
    """
    Build a collision-safe stored name from a uuid4 (122 random bits).

    The original extension is kept so the host serves the right content type.
    """
    stem = str(uuid.uuid4())
    return f"{stem}.{blob.extension}" if blob.extension else stem


class AssetStoreClient:
    """
    Uploads single blobs to the asset host.

    Args:
        config: Asset host settings, injected at construction
        session: Optional requests session (tests pass a stub)

    Example:
        >>> client = AssetStoreClient(load_asset_host_config())
        >>> result = client.upload(AssetBlob("front.jpg", data), AssetFolder.LISTING_IMAGES)
        >>> result.public_url
        'https://cdn.example.com/public_images/2b1f...e9.jpg'
    """

    def __init__(self, config: AssetHostConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._http = session or requests

    def folder_path(self, folder: AssetFolder) -> str:
        """Relative folder on the host. Receipts nest under the image folder."""
        if folder is AssetFolder.RECEIPTS:
            return f"{self.config.image_folder}/receipts"
        return self.config.image_folder

    def _auth_header(self) -> str:
        return f"{self.config.auth_scheme} {self.config.username}:{self.config.token.strip()}"

    def _fail(self, folder: AssetFolder, failure: UploadFailure, error: str) -> UploadResult:
        asset_uploads.labels(folder=folder.value, outcome=failure.value).inc()
        return UploadResult(success=False, error=error, failure=failure)

    def upload(self, blob: AssetBlob, folder: AssetFolder) -> UploadResult:
        """
        Upload one blob and return its public URL.

        Exactly one multipart POST is made per call. The bearer credential is
        never included in log output.

        Args:
            blob: File contents and original name
            folder: Logical destination folder

        Returns:
            UploadResult: success with public_url, or failure with error and kind
        """
        if not self.config.has_credentials:
            logger.error("asset_host_credentials_missing", folder=folder.value)
            return self._fail(folder, UploadFailure.CONFIGURATION, "Asset host API token is not configured")

        relative_folder = self.folder_path(folder)
        stored_name = randomized_filename(blob)

        try:
            start_time = time.time()
            response = self._http.post(
                f"{self.config.api_url}{UPLOAD_ENDPOINT}",
                headers={"Authorization": self._auth_header()},
                data={"dir": f"{self.config.root_dir}/{relative_folder}/"},
                files={"file-1": (stored_name, blob.content, blob.content_type)},
                timeout=self.config.timeout_seconds,
            )
            asset_upload_latency.labels(folder=folder.value).observe(time.time() - start_time)
        except requests.RequestException as e:
            logger.warning("asset_upload_request_failed", folder=folder.value, error=str(e))
            return self._fail(folder, UploadFailure.TRANSIENT, "Failed to reach asset host")

        if not 200 <= response.status_code < 300:
            logger.warning(
                "asset_upload_bad_status", folder=folder.value, status_code=response.status_code
            )
            return self._fail(
                folder, UploadFailure.TRANSIENT, f"Asset host returned HTTP {response.status_code}"
            )

        try:
            payload: Any = response.json()
        except ValueError:
            logger.warning("asset_upload_non_json", folder=folder.value)
            return self._fail(folder, UploadFailure.TRANSIENT, "Asset host returned a non-JSON response")

        if not isinstance(payload, dict):
            return self._fail(folder, UploadFailure.TRANSIENT, "Asset host returned a malformed response")

        if payload.get("status") == 0:
            errors = payload.get("errors") or []
            reason = ", ".join(str(e) for e in errors) or "Upload failed"
            logger.warning("asset_upload_rejected", folder=folder.value, reason=reason)
            return self._fail(folder, UploadFailure.REJECTED, reason)

        uploads = (payload.get("data") or {}).get("uploads") or []
        uploaded = uploads[0] if uploads and isinstance(uploads[0], dict) else None
        if not uploaded or not uploaded.get("file"):
            return self._fail(folder, UploadFailure.REJECTED, "No uploaded file details returned")

        public_url = f"{self.config.public_base_url}/{relative_folder}/{uploaded['file']}"
        asset_uploads.labels(folder=folder.value, outcome="success").inc()
        logger.debug("asset_uploaded", folder=folder.value, public_url=public_url)
        return UploadResult(success=True, public_url=public_url)
