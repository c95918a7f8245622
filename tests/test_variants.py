from decimal import Decimal

import pytest

from storefront.errors import InsufficientStockError, InvalidQuantityError, ValidationError
from storefront.services.families import ACCESSORY, IPHONE, PRODUCT, get_family
from storefront.services.variants import (
    Variant,
    VariantStatus,
    decrement_quantity,
    find_variant,
    parse_variant,
    parse_variants,
    replace_all,
    validate_purchase_quantity,
)
from tests.fakes import make_listing


def _variant(quantity: int = 5) -> Variant:
    return Variant(id="v1", price=Decimal("10.00"), quantity=quantity)


# ============================================================
# Purchase quantity / decrement
# ============================================================


@pytest.mark.parametrize("amount", [0, -1, 1.5, "2", None, True])
def test_validate_purchase_quantity_rejects(amount):
    with pytest.raises(InvalidQuantityError) as exc_info:
        validate_purchase_quantity(amount)
    assert exc_info.value.code == "INVALID_QUANTITY"


def test_decrement_takes_stock():
    variant = _variant(5)
    decrement_quantity(variant, 2)
    assert variant.quantity == 3
    assert variant.status is VariantStatus.AVAILABLE


def test_decrement_to_zero_marks_sold_out():
    variant = _variant(2)
    decrement_quantity(variant, 2)
    assert variant.quantity == 0
    assert variant.status is VariantStatus.SOLD_OUT


def test_decrement_more_than_stock_leaves_variant_untouched():
    variant = _variant(1)
    with pytest.raises(InsufficientStockError) as exc_info:
        decrement_quantity(variant, 2)
    assert exc_info.value.detail == {"variantId": "v1", "requested": 2, "available": 1}
    assert variant.quantity == 1
    assert variant.status is VariantStatus.AVAILABLE


def test_decrement_sold_out_variant_is_insufficient():
    variant = _variant(0)
    with pytest.raises(InsufficientStockError):
        decrement_quantity(variant, 1)


def test_find_variant_returns_none_when_absent():
    listing = make_listing()
    assert find_variant(listing, "v1") is listing.variants[0]
    assert find_variant(listing, "missing") is None


# ============================================================
# Parsing
# ============================================================


def test_parse_variant_derives_price_off_and_attributes():
    variant = parse_variant(
        {
            "color": "Black",
            "storage": "256GB",
            "price": "800",
            "originalPrice": "1000",
            "quantity": "3",
            "batteryHealth": "92%",
            "ignored": "x",
        },
        IPHONE,
    )
    assert variant.price == Decimal("800.00")
    assert variant.original_price == Decimal("1000.00")
    assert variant.price_off == "20%"
    assert variant.quantity == 3
    assert variant.status is VariantStatus.AVAILABLE
    assert variant.attributes == {"color": "Black", "storage": "256GB", "batteryHealth": "92%"}
    assert variant.id


def test_parse_variant_without_original_price_has_no_price_off():
    variant = parse_variant({"price": "10", "quantity": 1}, PRODUCT)
    assert variant.original_price is None
    assert variant.price_off is None


def test_parse_variant_reports_first_missing_field_in_order():
    with pytest.raises(ValidationError) as exc_info:
        parse_variant({"color": "Red", "price": "10"}, IPHONE)
    assert exc_info.value.message == "storage is required"


def test_parse_variant_accessory_requires_material():
    with pytest.raises(ValidationError) as exc_info:
        parse_variant({"color": "Red", "price": "10", "quantity": 1}, ACCESSORY)
    assert exc_info.value.message == "material is required"


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ({"price": "-1", "quantity": 1}, "price must be a non-negative amount"),
        ({"price": "abc", "quantity": 1}, "price must be a non-negative amount"),
        ({"price": "1", "quantity": -2}, "quantity must be a non-negative integer"),
        ({"price": "1", "quantity": 1.5}, "quantity must be a non-negative integer"),
        ({"price": "1", "quantity": 2**31}, "quantity must be a non-negative integer"),
        ({"price": "10000000000", "quantity": 1}, "price must not exceed 9999999999.99"),
        (
            {"price": "1", "originalPrice": "1e12", "quantity": 1},
            "originalPrice must not exceed 9999999999.99",
        ),
        ({"price": "1", "quantity": 1, "status": "gone"}, "status must be one of ['available', 'soldout']"),
    ],
)
def test_parse_variant_rejects_bad_values(raw, message):
    with pytest.raises(ValidationError) as exc_info:
        parse_variant(raw, PRODUCT)
    assert exc_info.value.message == message


@pytest.mark.parametrize("raw_variants", [None, [], "x", {"price": 1}])
def test_parse_variants_requires_non_empty_list(raw_variants):
    with pytest.raises(ValidationError) as exc_info:
        parse_variants(raw_variants, PRODUCT)
    assert exc_info.value.message == "At least one variant is required"


def test_parse_variants_rejects_non_object_entries():
    with pytest.raises(ValidationError) as exc_info:
        parse_variants(["nope"], PRODUCT)
    assert exc_info.value.message == "Invalid variants format"


def test_parse_variants_assigns_distinct_ids():
    variants = parse_variants([{"price": 1, "quantity": 1}, {"price": 2, "quantity": 1}], PRODUCT)
    assert len({variant.id for variant in variants}) == 2


# ============================================================
# replace_all
# ============================================================


def _raw(**overrides):
    raw = {"color": "Black", "storage": "256GB", "price": "850", "quantity": 7, "batteryHealth": "90%"}
    raw.update(overrides)
    return raw


def test_replace_all_keeps_supplied_ids_and_discards_stored_state():
    listing = make_listing(quantity=0)
    listing.variants[0].status = VariantStatus.SOLD_OUT

    replace_all(listing, [_raw(id="v1"), _raw(color="Blue")], IPHONE)

    assert [variant.id for variant in listing.variants][0] == "v1"
    assert listing.variants[0].quantity == 7
    assert listing.variants[0].status is VariantStatus.AVAILABLE
    assert listing.variants[1].id != "v1"


def test_replace_all_merge_falls_back_on_stored_quantity_and_status():
    listing = make_listing(quantity=0)
    listing.variants[0].status = VariantStatus.SOLD_OUT

    raw = _raw(id="v1")
    del raw["quantity"]
    replace_all(listing, [raw], IPHONE, merge=True)

    assert listing.variants[0].quantity == 0
    assert listing.variants[0].status is VariantStatus.SOLD_OUT
    assert listing.variants[0].price == Decimal("850.00")


def test_replace_all_without_merge_requires_quantity():
    listing = make_listing()
    raw = _raw(id="v1")
    del raw["quantity"]
    with pytest.raises(ValidationError) as exc_info:
        replace_all(listing, [raw], IPHONE)
    assert exc_info.value.message == "quantity is required"


def test_replace_all_rejects_duplicate_ids():
    listing = make_listing()
    with pytest.raises(ValidationError) as exc_info:
        replace_all(listing, [_raw(id="v1"), _raw(id="v1")], IPHONE)
    assert exc_info.value.message == "Duplicate variant id: v1"
    # Untouched on failure
    assert listing.variants[0].quantity == 5


def test_replace_all_rejects_overlong_ids():
    listing = make_listing()
    with pytest.raises(ValidationError) as exc_info:
        replace_all(listing, [_raw(id="x" * 65)], IPHONE)
    assert exc_info.value.message == "Variant id must be at most 64 characters"
    assert listing.variants[0].id == "v1"


def test_replace_all_accepts_id_at_column_width():
    listing = make_listing()
    replace_all(listing, [_raw(id="x" * 64)], IPHONE)
    assert listing.variants[0].id == "x" * 64


def test_get_family_is_case_insensitive():
    assert get_family(" iPhone ") is IPHONE
    with pytest.raises(KeyError):
        get_family("tablet")
