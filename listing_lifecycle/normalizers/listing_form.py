"""
Input-boundary normalization for listing multipart forms.

All loosely-typed form values (legacy numeric payment codes, JSON-encoded arrays,
"true"/absent flags) are coerced here so the coordinator only ever sees typed values.
"""

from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

import pydantic
import structlog

from listing_lifecycle.errors import ValidationError
from listing_lifecycle.schemas.listings import (
    AdvertisementType,
    ListingDraft,
    ListingVariant,
    PaymentMethod,
    PropertyAttributes,
    VehicleAttributes,
)

logger = structlog.get_logger(__name__)

REQUIRED_FIELDS: dict[ListingVariant, tuple[str, ...]] = {
    ListingVariant.CAR: ("name", "price", "mileage"),
    ListingVariant.HOUSE: (
        "name",
        "description",
        "price",
        "advertisementType",
        "houseType",
        "currency",
    ),
}

# Older clients send the vehicle rent cadence as a numeric code
LEGACY_PAYMENT_CODES: dict[str, PaymentMethod] = {
    "1": PaymentMethod.DAILY,
    "2": PaymentMethod.WEEKLY,
    "3": PaymentMethod.MONTHLY,
    "4": PaymentMethod.ANNUALLY,
}

ALLOWED_PAYMENT_METHODS: dict[ListingVariant, tuple[PaymentMethod, ...]] = {
    ListingVariant.CAR: (
        PaymentMethod.DAILY,
        PaymentMethod.WEEKLY,
        PaymentMethod.MONTHLY,
        PaymentMethod.ANNUALLY,
    ),
    ListingVariant.HOUSE: (
        PaymentMethod.MONTHLY,
        PaymentMethod.QUARTERLY,
        PaymentMethod.ANNUAL,
    ),
}

DEFAULT_PAYMENT_METHOD: dict[ListingVariant, PaymentMethod] = {
    ListingVariant.CAR: PaymentMethod.DAILY,
    ListingVariant.HOUSE: PaymentMethod.MONTHLY,
}

VEHICLE_FIELDS = (
    "mileage",
    "year",
    "speed",
    "milesPerGallon",
    "transmission",
    "fuel",
    "bodyType",
    "condition",
    "engine",
    "maintenance",
    "tags",
)

PROPERTY_FIELDS = (
    "houseType",
    "bedroom",
    "bathroom",
    "size",
    "parkingSpace",
    "condition",
    "maintenance",
)


def parse_variant(raw: str) -> ListingVariant:
    """Map the `{type}` path segment to a listing variant."""
    aliases = {
        "car": ListingVariant.CAR,
        "cars": ListingVariant.CAR,
        "vehicle": ListingVariant.CAR,
        "house": ListingVariant.HOUSE,
        "houses": ListingVariant.HOUSE,
        "property": ListingVariant.HOUSE,
    }
    variant = aliases.get(raw.lower())
    if variant is None:
        raise ValidationError(f"Unknown listing type: {raw}")
    return variant


def parse_payment_method(variant: ListingVariant, raw: Optional[str]) -> PaymentMethod:
    """
    Resolve the rent cadence, accepting legacy numeric codes for vehicles.

    Unknown or absent values fall back to the variant's default cadence.
    """
    value = (raw or "").strip()
    if variant is ListingVariant.CAR and value in LEGACY_PAYMENT_CODES:
        return LEGACY_PAYMENT_CODES[value]

    for method in ALLOWED_PAYMENT_METHODS[variant]:
        if method.value == value:
            return method

    if value:
        logger.debug("payment_method_defaulted", variant=variant.value, raw=value)
    return DEFAULT_PAYMENT_METHOD[variant]


def parse_flag(raw: Any) -> bool:
    """Form booleans are true only for the literal string "true"."""
    return raw == "true"


def parse_url_list(raw: Optional[str], field: str = "removedImageUrls") -> list[str]:
    """
    Decode a JSON-encoded array of URL strings.

    Args:
        raw: Form value, may be None or empty
        field: Field name used in the error message

    Returns:
        list[str]: Decoded URLs (empty when the field is absent)

    Raises:
        ValidationError: If the value is not a JSON array of strings
    """
    if raw is None or raw == "":
        return []
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a JSON array of strings")
    if not isinstance(decoded, list) or not all(isinstance(url, str) for url in decoded):
        raise ValidationError(f"{field} must be a JSON array of strings")
    return decoded


def _text(form: Mapping[str, Any], key: str) -> Optional[str]:
    value = form.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _decimal(form: Mapping[str, Any], key: str) -> Optional[Decimal]:
    value = _text(form, key)
    if value is None:
        return None
    try:
        number = Decimal(value)
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    if not number.is_finite():
        raise ValidationError(f"{key} must be a number")
    return number


def _positive_decimal(form: Mapping[str, Any], key: str) -> Optional[Decimal]:
    number = _decimal(form, key)
    if number is not None and number <= 0:
        raise ValidationError(f"{key} must be greater than zero")
    return number


def _non_negative_decimal(form: Mapping[str, Any], key: str) -> Optional[Decimal]:
    number = _decimal(form, key)
    if number is not None and number < 0:
        raise ValidationError(f"{key} must not be negative")
    return number


def _first_error(exc: pydantic.ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"Invalid {location}: {error.get('msg')}" if location else str(error.get("msg"))


def _vehicle_attributes(form: Mapping[str, Any]) -> dict[str, Any]:
    raw = {key: _text(form, key) for key in VEHICLE_FIELDS}
    attributes = VehicleAttributes.model_validate({k: v for k, v in raw.items() if v is not None})
    return attributes.model_dump(by_alias=True, exclude_none=True)


def _property_attributes(form: Mapping[str, Any]) -> dict[str, Any]:
    raw: dict[str, Any] = {key: _text(form, key) for key in PROPERTY_FIELDS}
    raw["essentials"] = parse_url_list(_text(form, "essentials"), field="essentials")
    attributes = PropertyAttributes.model_validate({k: v for k, v in raw.items() if v is not None})
    return attributes.model_dump(mode="json", by_alias=True)


def parse_listing_form(variant: ListingVariant, form: Mapping[str, Any]) -> ListingDraft:
    """
    Validate and coerce the scalar fields of a listing create/update form.

    Args:
        variant: Listing variant the form targets
        form: Scalar form fields (file entries already removed)

    Returns:
        ListingDraft: Typed draft ready for the coordinator

    Raises:
        ValidationError: If a required field is missing or a value is malformed
    """
    missing = [key for key in REQUIRED_FIELDS[variant] if _text(form, key) is None]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    price = _positive_decimal(form, "price")
    service_price = _non_negative_decimal(form, "servicePrice")

    advertisement_type = _text(form, "advertisementType") or AdvertisementType.SALE.value

    try:
        attributes = (
            _vehicle_attributes(form)
            if variant is ListingVariant.CAR
            else _property_attributes(form)
        )
        return ListingDraft(
            variant=variant,
            name=_text(form, "name") or "",
            description=_text(form, "description"),
            price=price,
            currency=_text(form, "currency") or "USD",
            advertisement_type=AdvertisementType(advertisement_type),
            payment_method=parse_payment_method(variant, _text(form, "paymentMethod")),
            attributes=attributes,
            service_price=service_price,
        )
    except pydantic.ValidationError as exc:
        raise ValidationError(_first_error(exc))
    except ValueError:
        raise ValidationError(f"Invalid advertisementType: {advertisement_type}")
