"""Tests for purchases in each purchase mode, including concurrent ones."""

import asyncio

import pytest

from storefront.errors import InsufficientStockError, InvalidQuantityError, NotFoundError
from storefront.services.families import ANDROID, IPHONE
from storefront.services.inventory import InventoryService, PurchaseMode
from storefront.services.variants import VariantStatus
from storefront.stores.locks import KeyedLocks
from tests.fakes import FIXED_NOW, FakeListingStore, fixed_clock, make_listing

ALL_MODES = [PurchaseMode.READ_MODIFY_WRITE, PurchaseMode.ATOMIC, PurchaseMode.LOCKED]


def _service(store: FakeListingStore, mode: PurchaseMode, family=IPHONE) -> InventoryService:
    locks = KeyedLocks(wait_seconds=1.0) if mode is PurchaseMode.LOCKED else None
    return InventoryService(store, family, mode=mode, locks=locks, clock=fixed_clock)


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", ALL_MODES)
async def test_purchase_decrements_and_stamps_listing(mode):
    store = FakeListingStore([make_listing(quantity=5)])

    listing = await _service(store, mode).purchase("listing-1", "v1", 2)

    assert listing.variants[0].quantity == 3
    assert listing.variants[0].status is VariantStatus.AVAILABLE
    assert listing.updated_on == FIXED_NOW
    assert store.peek("listing-1").variants[0].quantity == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", ALL_MODES)
async def test_purchase_of_last_units_marks_sold_out(mode):
    store = FakeListingStore([make_listing(quantity=2)])

    listing = await _service(store, mode).purchase("listing-1", "v1", 2)

    assert listing.variants[0].quantity == 0
    assert listing.variants[0].status is VariantStatus.SOLD_OUT


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", ALL_MODES)
async def test_insufficient_stock_leaves_store_unchanged(mode):
    store = FakeListingStore([make_listing(quantity=1)])

    with pytest.raises(InsufficientStockError) as exc_info:
        await _service(store, mode).purchase("listing-1", "v1", 2)

    assert exc_info.value.detail == {"variantId": "v1", "requested": 2, "available": 1}
    assert store.peek("listing-1").variants[0].quantity == 1
    assert store.save_calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", ALL_MODES)
async def test_sold_out_variant_cannot_be_purchased(mode):
    listing = make_listing(quantity=0)
    listing.variants[0].status = VariantStatus.SOLD_OUT
    store = FakeListingStore([listing])

    with pytest.raises(InsufficientStockError):
        await _service(store, mode).purchase("listing-1", "v1", 1)


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", ALL_MODES)
@pytest.mark.parametrize("quantity", [0, -3, 1.5, None, "1"])
async def test_invalid_quantity(mode, quantity):
    store = FakeListingStore([make_listing(quantity=5)])

    with pytest.raises(InvalidQuantityError):
        await _service(store, mode).purchase("listing-1", "v1", quantity)
    assert store.peek("listing-1").variants[0].quantity == 5


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", ALL_MODES)
async def test_not_found_checks_run_before_quantity(mode):
    store = FakeListingStore([make_listing(quantity=5)])
    service = _service(store, mode)

    with pytest.raises(NotFoundError) as exc_info:
        await service.purchase("missing", "v1", 0)
    assert exc_info.value.message == "iPhone not found"

    with pytest.raises(NotFoundError) as exc_info:
        await service.purchase("listing-1", "nope", 0)
    assert exc_info.value.message == "Variant not found"


@pytest.mark.asyncio
async def test_listing_of_other_family_is_not_found():
    store = FakeListingStore([make_listing(family="iphone")])

    with pytest.raises(NotFoundError):
        await _service(store, PurchaseMode.ATOMIC, family=ANDROID).purchase("listing-1", "v1", 1)


def test_locked_mode_requires_lock_provider():
    with pytest.raises(ValueError):
        InventoryService(FakeListingStore(), IPHONE, mode=PurchaseMode.LOCKED)


# ============================================================
# Concurrency
# ============================================================


async def _race(service: InventoryService, count: int) -> list:
    return await asyncio.gather(
        *(service.purchase("listing-1", "v1", 1) for _ in range(count)),
        return_exceptions=True,
    )


@pytest.mark.asyncio
async def test_read_modify_write_loses_concurrent_updates():
    store = FakeListingStore([make_listing(quantity=1)])

    results = await _race(_service(store, PurchaseMode.READ_MODIFY_WRITE), 2)

    # Both requests read quantity 1, so both "succeed" and stock ends at 0 once
    assert not any(isinstance(result, Exception) for result in results)
    assert store.peek("listing-1").variants[0].quantity == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", [PurchaseMode.ATOMIC, PurchaseMode.LOCKED])
async def test_concurrent_purchases_of_last_unit_succeed_once(mode):
    store = FakeListingStore([make_listing(quantity=1)])

    results = await _race(_service(store, mode), 2)

    successes = [result for result in results if not isinstance(result, Exception)]
    failures = [result for result in results if isinstance(result, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], InsufficientStockError)

    stored = store.peek("listing-1").variants[0]
    assert stored.quantity == 0
    assert stored.status is VariantStatus.SOLD_OUT


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", [PurchaseMode.ATOMIC, PurchaseMode.LOCKED])
async def test_concurrent_purchases_never_oversell(mode):
    store = FakeListingStore([make_listing(quantity=5)])

    results = await _race(_service(store, mode), 8)

    failures = [result for result in results if isinstance(result, Exception)]
    assert len(failures) == 3
    assert all(isinstance(failure, InsufficientStockError) for failure in failures)
    assert store.peek("listing-1").variants[0].quantity == 0
