"""Pure computation of a listing's final ordered image set."""

from __future__ import annotations

from enum import Enum
from typing import AbstractSet, Optional, Sequence


class ImageMode(str, Enum):
    APPEND = "append"
    REPLACE = "replace"


def reconcile(
    existing: Sequence[str],
    removed: AbstractSet[str],
    uploaded: Sequence[str],
    mode: ImageMode,
) -> list[str]:
    """
    Compute the new ordered image URL list for a listing.

    Replace mode returns exactly the uploaded URLs, so an update in replace mode
    with no files leaves the listing without images. Append mode keeps the
    existing URLs not named in `removed`, in their original order, followed by
    the uploads. Removals that name unknown URLs are ignored.

    Args:
        existing: Current image URLs, primary first
        removed: URLs the caller asked to drop (append mode only)
        uploaded: URLs just stored, in upload order
        mode: Append or Replace

    Returns:
        list[str]: Final image URLs, primary first

    Example:
        >>> reconcile(["a", "b", "c"], {"b"}, ["d"], ImageMode.APPEND)
        ['a', 'c', 'd']
    """
    if mode is ImageMode.REPLACE:
        return list(uploaded)
    return [url for url in existing if url not in removed] + list(uploaded)


def primary_image(image_urls: Sequence[str]) -> Optional[str]:
    """The derived single-image field: first URL, or None for an empty set."""
    return image_urls[0] if image_urls else None
