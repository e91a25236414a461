"""
Unit tests for image set reconciliation.
"""

from __future__ import annotations

import pytest

from listing_lifecycle.services.image_reconciler import ImageMode, primary_image, reconcile


@pytest.mark.unit
def test_append_drops_removed_and_keeps_order() -> None:
    """Existing minus removed keeps relative order, then uploads are appended."""
    assert reconcile(["A", "B", "C"], {"B"}, ["D"], ImageMode.APPEND) == ["A", "C", "D"]


@pytest.mark.unit
def test_append_without_changes_returns_existing() -> None:
    assert reconcile(["A", "B"], set(), [], ImageMode.APPEND) == ["A", "B"]


@pytest.mark.unit
def test_removing_unknown_url_is_ignored() -> None:
    """A removal naming a URL that is not on the listing changes nothing."""
    existing = ["A", "B", "C"]

    assert reconcile(existing, {"Z"}, [], ImageMode.APPEND) == existing


@pytest.mark.unit
def test_removing_every_image_leaves_only_uploads() -> None:
    assert reconcile(["A", "B"], {"A", "B"}, ["N"], ImageMode.APPEND) == ["N"]


@pytest.mark.unit
def test_replace_returns_exactly_uploaded() -> None:
    """Replace ignores both existing and removed."""
    assert reconcile(["A", "B"], {"A"}, ["X", "Y"], ImageMode.REPLACE) == ["X", "Y"]


@pytest.mark.unit
def test_replace_with_no_uploads_clears_images() -> None:
    assert reconcile(["A", "B"], set(), [], ImageMode.REPLACE) == []


@pytest.mark.unit
def test_replace_twice_with_same_uploads_is_stable() -> None:
    first = reconcile(["A"], set(), ["X", "Y"], ImageMode.REPLACE)
    second = reconcile(first, set(), ["X", "Y"], ImageMode.REPLACE)

    assert first == second == ["X", "Y"]


@pytest.mark.unit
def test_reconcile_does_not_mutate_inputs() -> None:
    existing = ["A", "B"]
    uploaded = ["C"]

    result = reconcile(existing, {"A"}, uploaded, ImageMode.APPEND)
    result.append("D")

    assert existing == ["A", "B"]
    assert uploaded == ["C"]


@pytest.mark.unit
@pytest.mark.parametrize(
    "urls, expected",
    [
        (["A", "B"], "A"),
        (["only"], "only"),
        ([], None),
    ],
)
def test_primary_image_is_first_url(urls: list[str], expected: str | None) -> None:
    assert primary_image(urls) == expected
