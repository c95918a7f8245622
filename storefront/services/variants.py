"""Listing and variant model plus the operations on a listing's variant list.

A Listing owns 1..N variants (one per purchasable SKU). Quantity only moves
down through decrement_quantity (purchase path); edits replace the whole
variant list through replace_all.

Status rules:
- A variant becomes SOLD_OUT exactly when a purchase takes it to 0
- Nothing flips it back to AVAILABLE except an edit supplying it explicitly
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import uuid4

from storefront.errors import InsufficientStockError, InvalidQuantityError, ValidationError
from storefront.services.discount import calculate_discount, to_decimal, to_money
from storefront.services.families import ProductFamily


# Column limits of listing_variants
MAX_VARIANT_ID_LENGTH = 64
MAX_AMOUNT = Decimal("9999999999.99")  # NUMERIC(12, 2)
MAX_QUANTITY = 2_147_483_647  # INTEGER


class VariantStatus(Enum):
    """Per-variant stock status."""

    AVAILABLE = "available"
    SOLD_OUT = "soldout"


class ListingStatus(Enum):
    """Whether the listing is offered at all (operator toggle)."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


def generate_id() -> str:
    """Generate unique listing/variant ID."""
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Variant:
    """One purchasable SKU of a listing."""

    id: str
    price: Decimal
    quantity: int
    attributes: dict[str, Any] = field(default_factory=dict)  # color, storage, ...
    original_price: Decimal | None = None
    price_off: str | None = None  # derived, e.g. "20%"
    status: VariantStatus = VariantStatus.AVAILABLE


@dataclass
class Listing:
    """Catalog entry for one product family instance.

    Owns its variants: they have no lifecycle outside the listing.
    """

    id: str
    family: str
    attributes: dict[str, Any]
    variants: list[Variant]
    status: ListingStatus = ListingStatus.ACTIVE
    created_on: datetime = field(default_factory=utcnow)
    updated_on: datetime = field(default_factory=utcnow)

    def touch(self, now: datetime) -> None:
        self.updated_on = now


# ============================================================
# Lookup and stock mutation
# ============================================================


def find_variant(listing: Listing, variant_id: str) -> Variant | None:
    """Find a variant by ID; None is a normal outcome."""
    for variant in listing.variants:
        if variant.id == variant_id:
            return variant
    return None


def validate_purchase_quantity(amount: object) -> int:
    """Return amount as int if it is a positive integer.

    Raises:
        InvalidQuantityError: For zero, negatives, bools and non-integers.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidQuantityError(
            "Valid quantity to purchase is required",
            detail={"quantityToPurchase": amount},
        )
    return amount


def decrement_quantity(variant: Variant, amount: object) -> None:
    """Take `amount` units out of stock.

    All checks run before mutating, so a failure leaves the variant untouched.
    Status is set to SOLD_OUT only when quantity lands on exactly 0.
    """
    amount = validate_purchase_quantity(amount)
    if amount > variant.quantity:
        raise InsufficientStockError(
            "Not enough stock available",
            detail={"variantId": variant.id, "requested": amount, "available": variant.quantity},
        )

    variant.quantity -= amount
    if variant.quantity == 0:
        variant.status = VariantStatus.SOLD_OUT


# ============================================================
# Validation / parsing of raw variant payloads
# ============================================================


def is_missing(value: object) -> bool:
    """True for absent, None, blank strings and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


def check_required(
    payload: dict[str, Any],
    fields: tuple[str, ...],
    skip: frozenset[str] = frozenset(),
) -> None:
    """Raise for the first missing field, in the given order."""
    for name in fields:
        if name in skip:
            continue
        if is_missing(payload.get(name)):
            raise ValidationError(f"{name} is required", detail={"field": name})


def _parse_amount(raw: dict[str, Any], name: str) -> Decimal:
    amount = to_decimal(raw.get(name))
    if amount is None or amount < 0:
        raise ValidationError(
            f"{name} must be a non-negative amount",
            detail={"field": name, "value": raw.get(name)},
        )
    if amount > MAX_AMOUNT:
        raise ValidationError(
            f"{name} must not exceed {MAX_AMOUNT}",
            detail={"field": name, "value": raw.get(name)},
        )
    return to_money(amount)


def _parse_quantity(value: object) -> int:
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_QUANTITY:
        raise ValidationError(
            "quantity must be a non-negative integer",
            detail={"field": "quantity", "value": value},
        )
    return value


def _parse_status(value: object) -> VariantStatus:
    for status in VariantStatus:
        if isinstance(value, str) and value.strip().lower() == status.value:
            return status
    raise ValidationError(
        f"status must be one of {[s.value for s in VariantStatus]}",
        detail={"field": "status", "value": value},
    )


def parse_variant(
    raw: object,
    family: ProductFamily,
    *,
    variant_id: str | None = None,
    previous: Variant | None = None,
) -> Variant:
    """Validate a raw variant payload and build a Variant.

    Args:
        raw: Variant dict as received (camelCase keys).
        family: Family whose required fields apply.
        variant_id: ID to keep; a fresh one is generated when None.
        previous: Stored variant to fall back on for omitted quantity/status.

    Returns:
        Variant with priceOff computed when both prices are present.
    """
    if not isinstance(raw, dict):
        raise ValidationError("Invalid variants format")

    skip = frozenset({"quantity"}) if previous is not None else frozenset()
    check_required(raw, family.required_variant_fields, skip)

    price = _parse_amount(raw, "price")
    original_price = None if is_missing(raw.get("originalPrice")) else _parse_amount(raw, "originalPrice")

    if is_missing(raw.get("quantity")) and previous is not None:
        quantity = previous.quantity
    else:
        quantity = _parse_quantity(raw.get("quantity"))

    if not is_missing(raw.get("status")):
        status = _parse_status(raw.get("status"))
    elif previous is not None:
        status = previous.status
    else:
        status = VariantStatus.AVAILABLE

    return Variant(
        id=variant_id or generate_id(),
        price=price,
        quantity=quantity,
        attributes={
            key: raw[key] for key in family.variant_attribute_keys if not is_missing(raw.get(key))
        },
        original_price=original_price,
        price_off=calculate_discount(original_price, price) if original_price is not None else None,
        status=status,
    )


def parse_variants(raw_variants: object, family: ProductFamily) -> list[Variant]:
    """Build a fresh variant list for a new listing (all IDs newly assigned)."""
    _require_non_empty(raw_variants)
    return [parse_variant(raw, family) for raw in raw_variants]  # type: ignore[union-attr]


def replace_all(
    listing: Listing,
    raw_variants: object,
    family: ProductFamily,
    *,
    merge: bool = False,
) -> None:
    """Replace the listing's variants wholesale.

    Variant IDs supplied by the caller are kept, others get a fresh ID.
    Without `merge`, stored quantities and statuses are discarded. With
    `merge`, a variant whose ID matches a stored one falls back on the stored
    quantity/status when the payload omits them.
    """
    _require_non_empty(raw_variants)

    stored = {variant.id: variant for variant in listing.variants}
    replaced: list[Variant] = []
    seen: set[str] = set()

    for raw in raw_variants:  # type: ignore[union-attr]
        if not isinstance(raw, dict):
            raise ValidationError("Invalid variants format")

        variant_id = None if is_missing(raw.get("id")) else str(raw["id"])
        if variant_id is not None and len(variant_id) > MAX_VARIANT_ID_LENGTH:
            raise ValidationError(
                f"Variant id must be at most {MAX_VARIANT_ID_LENGTH} characters",
                detail={"variantId": variant_id},
            )
        if variant_id is not None and variant_id in seen:
            raise ValidationError(
                f"Duplicate variant id: {variant_id}", detail={"variantId": variant_id}
            )

        previous = stored.get(variant_id) if merge and variant_id else None
        variant = parse_variant(raw, family, variant_id=variant_id, previous=previous)
        seen.add(variant.id)
        replaced.append(variant)

    listing.variants = replaced


def _require_non_empty(raw_variants: object) -> None:
    if not isinstance(raw_variants, list) or not raw_variants:
        raise ValidationError("At least one variant is required")
