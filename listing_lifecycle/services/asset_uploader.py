"""Sequential multi-file upload on top of AssetStoreClient."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

import structlog

from listing_lifecycle.services.asset_store import (
    AssetBlob,
    AssetFolder,
    AssetStoreClient,
    UploadFailure,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BatchUploadResult:
    success: bool
    urls: list[str] = field(default_factory=list)
    error: Optional[str] = None
    failure: Optional[UploadFailure] = None

    @property
    def partial_urls(self) -> list[str]:
        """URLs stored before the failing item. Empty on success."""
        return [] if self.success else self.urls


class AssetBatchUploader:
    """
    Uploads blobs one at a time, in order, stopping at the first failure.

    Order matters: the returned URLs mirror the input order, and position 0
    becomes the listing's primary image. Blobs already stored when a later one
    fails are left on the host because it exposes no delete call.
    """

    def __init__(self, client: AssetStoreClient):
        self.client = client

    def upload_all(self, blobs: Sequence[AssetBlob], folder: AssetFolder) -> BatchUploadResult:
        """
        Upload every blob sequentially.

        Args:
            blobs: Files in the order they should appear on the listing
            folder: Destination folder for all of them

        Returns:
            BatchUploadResult: all URLs on success; on failure the URLs stored so far
            and an error naming the failing position
        """
        total = len(blobs)
        urls: list[str] = []

        if total:
            logger.info("asset_batch_started", folder=folder.value, count=total)

        for index, blob in enumerate(blobs, start=1):
            logger.debug(
                "asset_batch_item", position=index, total=total, filename=blob.filename,
                size=len(blob.content),
            )
            result = self.client.upload(blob, folder)

            if not result.success:
                error = f"failed at item {index}/{total}: {result.error}"
                logger.error(
                    "asset_batch_failed",
                    folder=folder.value,
                    position=index,
                    total=total,
                    uploaded=len(urls),
                    orphaned_urls=urls,
                    error=result.error,
                )
                return BatchUploadResult(
                    success=False, urls=list(urls), error=error, failure=result.failure
                )

            urls.append(result.public_url or "")

        if total:
            logger.info("asset_batch_completed", folder=folder.value, count=total)
        return BatchUploadResult(success=True, urls=urls)
