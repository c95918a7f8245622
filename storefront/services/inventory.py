"""Inventory service: purchase a quantity of one variant.

Flow (per request, nothing cached between requests):
1. Load listing (NotFoundError if absent or of another family)
2. Locate variant (NotFoundError)
3. Validate quantity (InvalidQuantityError)
4. Decrement stock (InsufficientStockError), SOLD_OUT at exactly 0
5. Persist the whole listing and return it

Purchase modes:
- READ_MODIFY_WRITE: steps 1-5 as is. Two concurrent purchases can both read
  the same quantity and the second save overwrites the first (lost update).
  Default, kept for compatibility.
- ATOMIC: step 4+5 become one conditional UPDATE at the store
  (quantity >= k), so concurrent purchases can never oversell.
- LOCKED: steps 1-5 run under a per-listing lock.
"""

from collections.abc import Callable
from datetime import datetime
from enum import Enum

from storefront.errors import InsufficientStockError, NotFoundError
from storefront.services.families import ProductFamily
from storefront.services.variants import (
    MAX_QUANTITY,
    Listing,
    Variant,
    decrement_quantity,
    find_variant,
    utcnow,
    validate_purchase_quantity,
)
from storefront.stores.base import ListingStore
from storefront.stores.locks import LockProvider


class PurchaseMode(Enum):
    READ_MODIFY_WRITE = "read_modify_write"
    ATOMIC = "atomic"
    LOCKED = "locked"


class InventoryService:
    """Stock decrement for the listings of one family."""

    def __init__(
        self,
        store: ListingStore,
        family: ProductFamily,
        *,
        mode: PurchaseMode = PurchaseMode.READ_MODIFY_WRITE,
        locks: LockProvider | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if mode is PurchaseMode.LOCKED and locks is None:
            raise ValueError("Locked purchase mode requires a lock provider")
        self._store = store
        self._family = family
        self._mode = mode
        self._locks = locks
        self._clock = clock

    @property
    def mode(self) -> PurchaseMode:
        return self._mode

    async def purchase(self, listing_id: str, variant_id: str, quantity: object) -> Listing:
        """Buy `quantity` units of a variant.

        Args:
            listing_id: Listing ID.
            variant_id: Variant ID within the listing.
            quantity: Units to take; must be a positive integer.

        Returns:
            The listing as stored after the purchase.
        """
        if self._mode is PurchaseMode.ATOMIC:
            return await self._purchase_atomic(listing_id, variant_id, quantity)

        if self._mode is PurchaseMode.LOCKED:
            assert self._locks is not None
            async with self._locks.hold(listing_id):
                return await self._purchase_read_modify_write(listing_id, variant_id, quantity)

        return await self._purchase_read_modify_write(listing_id, variant_id, quantity)

    async def _purchase_read_modify_write(
        self, listing_id: str, variant_id: str, quantity: object
    ) -> Listing:
        listing = await self._load(listing_id)
        variant = self._locate(listing, variant_id)
        amount = validate_purchase_quantity(quantity)

        decrement_quantity(variant, amount)
        listing.touch(self._clock())
        return await self._store.save_listing(listing)

    async def _purchase_atomic(self, listing_id: str, variant_id: str, quantity: object) -> Listing:
        listing = await self._load(listing_id)
        self._locate(listing, variant_id)
        amount = validate_purchase_quantity(quantity)

        # No stored quantity can exceed MAX_QUANTITY
        if amount <= MAX_QUANTITY:
            updated = await self._store.decrement_variant_quantity(
                listing_id, variant_id, amount, self._clock()
            )
            if updated is not None:
                return updated

        # Condition did not hold: re-read to report why
        current = await self._load(listing_id)
        variant = self._locate(current, variant_id)
        raise InsufficientStockError(
            "Not enough stock available",
            detail={"variantId": variant_id, "requested": amount, "available": variant.quantity},
        )

    async def _load(self, listing_id: str) -> Listing:
        listing = await self._store.load_listing(listing_id)
        if listing is None or listing.family != self._family.key:
            raise NotFoundError(f"{self._family.label} not found", detail={"id": listing_id})
        return listing

    @staticmethod
    def _locate(listing: Listing, variant_id: str) -> Variant:
        variant = find_variant(listing, variant_id)
        if variant is None:
            raise NotFoundError(
                "Variant not found",
                detail={"id": listing.id, "variantId": variant_id},
            )
        return variant
