"""
Unit tests for listing form normalization.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from listing_lifecycle.errors import ValidationError
from listing_lifecycle.normalizers.listing_form import (
    parse_flag,
    parse_listing_form,
    parse_payment_method,
    parse_url_list,
    parse_variant,
)
from listing_lifecycle.schemas.listings import (
    AdvertisementType,
    ListingVariant,
    PaymentMethod,
)
from tests.factories import car_form, house_form


@pytest.mark.unit
def test_parse_car_form() -> None:
    draft = parse_listing_form(ListingVariant.CAR, car_form())

    assert draft.variant is ListingVariant.CAR
    assert draft.name == "Toyota Corolla"
    assert draft.price == Decimal("45")
    assert draft.currency == "USD"
    assert draft.advertisement_type is AdvertisementType.RENT
    assert draft.payment_method is PaymentMethod.DAILY
    assert draft.service_price == Decimal("10")
    assert draft.attributes["mileage"] == 82000
    assert draft.attributes["year"] == 2019
    assert draft.attributes["transmission"] == "Automatic"
    assert "bodyType" not in draft.attributes


@pytest.mark.unit
def test_parse_house_form() -> None:
    draft = parse_listing_form(ListingVariant.HOUSE, house_form())

    assert draft.payment_method is PaymentMethod.QUARTERLY
    assert draft.attributes["houseType"] == "Guest House"
    assert draft.attributes["bedroom"] == 2
    assert draft.attributes["parkingSpace"] == 0
    assert draft.attributes["essentials"] == ["wifi", "parking"]


@pytest.mark.unit
def test_missing_required_fields_are_listed() -> None:
    form = car_form()
    del form["name"]
    form["mileage"] = "   "

    with pytest.raises(ValidationError) as exc_info:
        parse_listing_form(ListingVariant.CAR, form)

    assert exc_info.value.message == "Missing required fields: name, mileage"
    assert exc_info.value.status_code == 400


@pytest.mark.unit
def test_house_requires_description_and_house_type() -> None:
    form = house_form()
    del form["description"]
    del form["houseType"]

    with pytest.raises(ValidationError, match="description, houseType"):
        parse_listing_form(ListingVariant.HOUSE, form)


@pytest.mark.unit
@pytest.mark.parametrize("price", ["0", "-5", "abc", "NaN"])
def test_price_must_be_positive_number(price: str) -> None:
    with pytest.raises(ValidationError):
        parse_listing_form(ListingVariant.CAR, car_form(price=price))


@pytest.mark.unit
@pytest.mark.parametrize("price", ["1e15", "100000000000000", "45.999"])
def test_price_must_fit_storage_precision(price: str) -> None:
    with pytest.raises(ValidationError, match="price"):
        parse_listing_form(ListingVariant.CAR, car_form(price=price))


@pytest.mark.unit
@pytest.mark.parametrize("service_price", ["-50", "-0.01", "abc", "Infinity"])
def test_service_price_must_be_non_negative_number(service_price: str) -> None:
    with pytest.raises(ValidationError, match="servicePrice"):
        parse_listing_form(ListingVariant.CAR, car_form(servicePrice=service_price))


@pytest.mark.unit
def test_service_price_may_be_zero_or_absent() -> None:
    free = parse_listing_form(ListingVariant.CAR, car_form(servicePrice="0"))
    form = car_form()
    del form["servicePrice"]

    assert free.service_price == Decimal("0")
    assert parse_listing_form(ListingVariant.CAR, form).service_price is None


@pytest.mark.unit
def test_mileage_must_be_positive() -> None:
    with pytest.raises(ValidationError, match="mileage"):
        parse_listing_form(ListingVariant.CAR, car_form(mileage="0"))


@pytest.mark.unit
def test_unknown_house_type_is_rejected() -> None:
    with pytest.raises(ValidationError):
        parse_listing_form(ListingVariant.HOUSE, house_form(houseType="Castle"))


@pytest.mark.unit
def test_unknown_advertisement_type_is_rejected() -> None:
    with pytest.raises(ValidationError, match="advertisementType"):
        parse_listing_form(ListingVariant.CAR, car_form(advertisementType="Lease"))


@pytest.mark.unit
def test_malformed_essentials_is_rejected() -> None:
    with pytest.raises(ValidationError, match="essentials"):
        parse_listing_form(ListingVariant.HOUSE, house_form(essentials="wifi, parking"))


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1", PaymentMethod.DAILY),
        ("2", PaymentMethod.WEEKLY),
        ("3", PaymentMethod.MONTHLY),
        ("4", PaymentMethod.ANNUALLY),
        ("Weekly", PaymentMethod.WEEKLY),
        ("Quarterly", PaymentMethod.DAILY),
        ("9", PaymentMethod.DAILY),
        (None, PaymentMethod.DAILY),
    ],
)
def test_vehicle_payment_method(raw: str | None, expected: PaymentMethod) -> None:
    """Vehicles accept legacy numeric codes; unknown values fall back to Daily."""
    assert parse_payment_method(ListingVariant.CAR, raw) is expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Monthly", PaymentMethod.MONTHLY),
        ("Quarterly", PaymentMethod.QUARTERLY),
        ("Annual", PaymentMethod.ANNUAL),
        ("1", PaymentMethod.MONTHLY),
        ("Daily", PaymentMethod.MONTHLY),
        ("", PaymentMethod.MONTHLY),
    ],
)
def test_property_payment_method(raw: str, expected: PaymentMethod) -> None:
    """Properties never read numeric codes and default to Monthly."""
    assert parse_payment_method(ListingVariant.HOUSE, raw) is expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [("car", ListingVariant.CAR), ("Cars", ListingVariant.CAR), ("house", ListingVariant.HOUSE)],
)
def test_parse_variant_aliases(raw: str, expected: ListingVariant) -> None:
    assert parse_variant(raw) is expected


@pytest.mark.unit
def test_parse_variant_unknown() -> None:
    with pytest.raises(ValidationError, match="Unknown listing type"):
        parse_variant("boat")


@pytest.mark.unit
@pytest.mark.parametrize("raw, expected", [("true", True), ("True", False), ("1", False), (None, False)])
def test_parse_flag_only_accepts_literal_true(raw: str | None, expected: bool) -> None:
    assert parse_flag(raw) is expected


@pytest.mark.unit
def test_parse_url_list() -> None:
    assert parse_url_list('["https://a/1.jpg", "https://a/2.jpg"]') == [
        "https://a/1.jpg",
        "https://a/2.jpg",
    ]
    assert parse_url_list(None) == []
    assert parse_url_list("") == []


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["not json", '{"url": "x"}', "[1, 2]"])
def test_parse_url_list_rejects_malformed(raw: str) -> None:
    with pytest.raises(ValidationError, match="removedImageUrls"):
        parse_url_list(raw)
