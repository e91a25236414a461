"""
Integration tests for /listings endpoints.

The real coordinator runs against a temporary SQLite database; only the asset
host is faked. Requests go through the full app, middleware and error handler.
"""

from __future__ import annotations

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from listing_lifecycle.dependencies import get_coordinator
from listing_lifecycle.main import app
from listing_lifecycle.models.listings import Listing
from listing_lifecycle.models.payments import Payment
from listing_lifecycle.services.coordinator import ListingLifecycleCoordinator
from tests.factories import FakeAssetStore, car_form, house_form, image_url

OWNER_HEADERS = {"X-User-Id": "user_owner"}
STRANGER_HEADERS = {"X-User-Id": "user_stranger"}


def _image(name: str) -> tuple[str, tuple[str, bytes, str]]:
    return ("files[]", (name, b"\xff\xd8" + name.encode(), "image/jpeg"))


def _count(engine: Engine, model: type) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.fixture
def client(coordinator: ListingLifecycleCoordinator) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def created(client: TestClient, asset_store: FakeAssetStore) -> dict:
    response = client.post(
        "/listings/car",
        data=car_form(),
        files=[_image("url0.jpg"), _image("url1.jpg")],
        headers=OWNER_HEADERS,
    )
    assert response.status_code == 200
    asset_store.calls.clear()
    return response.json()


@pytest.mark.integration
def test_create_car_listing(client: TestClient, db_engine: Engine) -> None:
    response = client.post(
        "/listings/car",
        data=car_form(),
        files=[_image("front.jpg"), _image("back.jpg"), ("receipt", ("r.pdf", b"%PDF", "application/pdf"))],
        headers=OWNER_HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["listingId"]
    assert body["paymentId"]
    assert "warnings" not in body
    assert "X-Request-ID" in response.headers

    listing = client.get(f"/listings/car/{body['listingId']}").json()["listing"]
    assert listing["status"] == "Pending"
    assert listing["visibility"] == "Private"
    assert listing["imageUrls"] == [image_url("front.jpg"), image_url("back.jpg")]
    assert listing["imageUrl"] == image_url("front.jpg")
    assert listing["userId"] == "user_owner"
    assert listing["mileage"] == 82000
    assert _count(db_engine, Payment) == 1


@pytest.mark.integration
def test_single_file_field_is_used_when_no_files(client: TestClient) -> None:
    response = client.post(
        "/listings/house",
        data=house_form(),
        files=[("file", ("solo.jpg", b"\xff\xd8", "image/jpeg"))],
        headers=OWNER_HEADERS,
    )

    listing_id = response.json()["listingId"]
    listing = client.get(f"/listings/house/{listing_id}").json()["listing"]
    assert listing["imageUrls"] == [image_url("solo.jpg")]
    assert listing["houseType"] == "Guest House"


@pytest.mark.integration
def test_admin_create(client: TestClient, db_engine: Engine) -> None:
    response = client.post("/listings/house", data=house_form(isAdmin="true"))

    assert response.status_code == 200
    assert response.json()["paymentId"].startswith("admin-created-")
    assert _count(db_engine, Payment) == 0


@pytest.mark.integration
def test_create_missing_fields_is_400(client: TestClient, asset_store: FakeAssetStore) -> None:
    form = car_form()
    del form["price"]

    response = client.post("/listings/car", data=form, files=[_image("a.jpg")], headers=OWNER_HEADERS)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Missing required fields: price"
    assert body["requestId"] == response.headers["X-Request-ID"]
    assert asset_store.calls == []


@pytest.mark.integration
def test_create_without_actor_is_401(client: TestClient) -> None:
    response = client.post("/listings/car", data=car_form())

    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.integration
def test_create_unknown_type_is_400(client: TestClient) -> None:
    response = client.post("/listings/boat", data=car_form(), headers=OWNER_HEADERS)

    assert response.status_code == 400


@pytest.mark.integration
def test_create_during_asset_outage_is_500(
    client: TestClient, asset_store: FakeAssetStore, db_engine: Engine
) -> None:
    asset_store.outage = True

    response = client.post(
        "/listings/car", data=car_form(), files=[_image("a.jpg")], headers=OWNER_HEADERS
    )

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to upload files, please try again"
    assert body["requestId"]
    assert "asset host" not in body["error"]
    assert _count(db_engine, Listing) == 0
    assert _count(db_engine, Payment) == 0


@pytest.mark.integration
def test_update_append_with_removal(client: TestClient, created: dict) -> None:
    listing_id = created["listingId"]

    response = client.put(
        f"/listings/car/{listing_id}",
        data=car_form(replaceImages="false", removedImageUrls=f'["{image_url("url0.jpg")}"]'),
        files=[_image("new.jpg")],
        headers=OWNER_HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["listingId"] == listing_id
    assert body["paymentId"] == created["paymentId"]
    assert body["listing"]["imageUrls"] == [image_url("url1.jpg"), image_url("new.jpg")]
    assert body["listing"]["imageUrl"] == image_url("url1.jpg")


@pytest.mark.integration
def test_update_by_non_owner_is_401_without_upload(
    client: TestClient, created: dict, asset_store: FakeAssetStore
) -> None:
    response = client.put(
        f"/listings/car/{created['listingId']}",
        data=car_form(),
        files=[_image("evil.jpg")],
        headers=STRANGER_HEADERS,
    )

    assert response.status_code == 401
    assert asset_store.calls == []


@pytest.mark.integration
def test_update_unknown_listing_is_404(client: TestClient) -> None:
    response = client.put("/listings/car/missing", data=car_form(), headers=OWNER_HEADERS)

    assert response.status_code == 404


@pytest.mark.integration
def test_update_malformed_removal_list_is_400(client: TestClient, created: dict) -> None:
    response = client.put(
        f"/listings/car/{created['listingId']}",
        data=car_form(removedImageUrls="not-json"),
        headers=OWNER_HEADERS,
    )

    assert response.status_code == 400


@pytest.mark.integration
def test_patch_status_active(client: TestClient, created: dict) -> None:
    response = client.patch(f"/listings/car/{created['listingId']}", json={"status": "Active"})

    assert response.status_code == 200
    assert response.json()["listing"]["status"] == "Active"


@pytest.mark.integration
def test_patch_invalid_status_is_400_without_change(client: TestClient, created: dict) -> None:
    listing_id = created["listingId"]

    response = client.patch(f"/listings/car/{listing_id}", json={"status": "Archived"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid status value"
    assert client.get(f"/listings/car/{listing_id}").json()["listing"]["status"] == "Pending"


@pytest.mark.integration
def test_patch_non_json_body_is_400(client: TestClient, created: dict) -> None:
    response = client.patch(
        f"/listings/car/{created['listingId']}",
        content=b"status=Active",
        headers={"Content-Type": "text/plain"},
    )

    assert response.status_code == 400


@pytest.mark.integration
def test_patch_unknown_listing_is_404(client: TestClient) -> None:
    response = client.patch("/listings/car/missing", json={"status": "Active"})

    assert response.status_code == 404


@pytest.mark.integration
def test_admin_delete(client: TestClient, created: dict, db_engine: Engine) -> None:
    listing_id = created["listingId"]

    response = client.delete(f"/listings/car/{listing_id}?isAdmin=true")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Listing and associated data deleted successfully",
        "listingId": listing_id,
        "paymentId": created["paymentId"],
    }
    assert _count(db_engine, Listing) == 0
    assert _count(db_engine, Payment) == 0
    assert client.get(f"/listings/car/{listing_id}").status_code == 404


@pytest.mark.integration
def test_delete_by_non_owner_is_401(client: TestClient, created: dict, db_engine: Engine) -> None:
    response = client.delete(
        f"/listings/car/{created['listingId']}?isAdmin=false", headers=STRANGER_HEADERS
    )

    assert response.status_code == 401
    assert _count(db_engine, Listing) == 1


@pytest.mark.integration
def test_delete_unknown_listing_is_404(client: TestClient) -> None:
    response = client.delete("/listings/car/missing?isAdmin=true")

    assert response.status_code == 404


@pytest.mark.integration
def test_list_listings_filters(client: TestClient, created: dict) -> None:
    client.post("/listings/car", data=car_form(isAdmin="true"))

    mine = client.get("/listings/car", params={"ownerId": "user_owner"}).json()["listings"]
    active = client.get("/listings/car", params={"status": "Active"}).json()["listings"]

    assert [listing["id"] for listing in mine] == [created["listingId"]]
    assert [listing["ownerId"] for listing in active] == ["admin-user"]
