"""Listing lifecycle: create, update, status toggle, lookup, delete, listing.

One instance per product family. Validation of required fields and discount
derivation happen here (create/update time), never on the purchase path.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any

from storefront.errors import NotFoundError, ValidationError
from storefront.services.discount import to_money
from storefront.services.families import ProductFamily
from storefront.services.variants import (
    Listing,
    ListingStatus,
    Variant,
    check_required,
    generate_id,
    is_missing,
    parse_variants,
    replace_all,
    utcnow,
)
from storefront.stores.base import ListingFilter, ListingStore

MAX_PAGE_SIZE = 100


@dataclass
class ListingPage:
    """One page of listings plus paging totals."""

    items: list[Listing]
    page: int
    limit: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.total_count else 0


@dataclass(frozen=True)
class VariantFilter:
    """Per-variant filters for listing queries."""

    color: str | None = None
    storage: str | None = None
    max_price: Decimal | None = None
    battery_health: str | None = None

    @property
    def active(self) -> bool:
        return any(
            value is not None
            for value in (self.color, self.storage, self.max_price, self.battery_health)
        )

    def matches(self, variant: Variant) -> bool:
        for key, wanted in (
            ("color", self.color),
            ("storage", self.storage),
            ("batteryHealth", self.battery_health),
        ):
            if wanted and wanted.lower() not in str(variant.attributes.get(key, "")).lower():
                return False
        # Decimal comparison (never string comparison of prices)
        if self.max_price is not None and variant.price > self.max_price:
            return False
        return True


class ListingLifecycle:
    """Create/update/toggle/delete listings of one family."""

    def __init__(
        self,
        store: ListingStore,
        family: ProductFamily,
        *,
        merge_variants: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._family = family
        self._merge_variants = merge_variants
        self._clock = clock

    @property
    def family(self) -> ProductFamily:
        return self._family

    async def create(
        self,
        attributes: dict[str, Any],
        raw_variants: object,
        listing_status: str | None = None,
    ) -> Listing:
        """Validate and persist a new listing with freshly identified variants."""
        attributes = self._validate_attributes(attributes)
        variants = parse_variants(raw_variants, self._family)

        now = self._clock()
        listing = Listing(
            id=generate_id(),
            family=self._family.key,
            attributes=attributes,
            variants=variants,
            status=_parse_listing_status(listing_status) or ListingStatus.ACTIVE,
            created_on=now,
            updated_on=now,
        )
        return await self._store.save_listing(listing)

    async def get(self, listing_id: str) -> Listing:
        """Get a listing of this family.

        Raises:
            NotFoundError: If absent or owned by another family.
        """
        listing = await self._store.load_listing(listing_id)
        if listing is None or listing.family != self._family.key:
            raise NotFoundError(f"{self._family.label} not found", detail={"id": listing_id})
        return listing

    async def update(
        self,
        listing_id: str,
        attributes: dict[str, Any],
        raw_variants: object,
        listing_status: str | None = None,
    ) -> Listing:
        """Replace attributes and the whole variant list.

        In replace mode (default) stored quantities/sold-out states are lost
        unless the caller sends them back.
        """
        attributes = self._validate_attributes(attributes)
        status = _parse_listing_status(listing_status)
        listing = await self.get(listing_id)

        replace_all(listing, raw_variants, self._family, merge=self._merge_variants)
        listing.attributes = attributes
        if status is not None:
            listing.status = status
        listing.touch(self._clock())
        return await self._store.save_listing(listing)

    async def toggle_status(self, listing_id: str) -> Listing:
        """Flip Active <-> Inactive. Variant stock status is left alone."""
        listing = await self.get(listing_id)
        listing.status = (
            ListingStatus.INACTIVE if listing.status is ListingStatus.ACTIVE else ListingStatus.ACTIVE
        )
        listing.touch(self._clock())
        return await self._store.save_listing(listing)

    async def delete(self, listing_id: str) -> Listing:
        """Delete a listing and its variants, returning the deleted listing."""
        await self.get(listing_id)
        deleted = await self._store.delete_listing(listing_id)
        if deleted is None:
            raise NotFoundError(f"{self._family.label} not found", detail={"id": listing_id})
        return deleted

    async def count(self, *, active_only: bool = False) -> int:
        return await self._store.count_listings(self._family.key, active_only=active_only)

    async def list(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        active_only: bool = False,
        color: str | None = None,
        storage: str | None = None,
        max_price: object = None,
        battery_health: str | None = None,
        model: str | None = None,
        age: str | None = None,
        repaired: bool | None = None,
    ) -> ListingPage:
        """Get one page of listings, keeping only the variants that match.

        model/age/repaired select listings in the store; color, storage,
        max_price and battery_health then narrow each listing's variants.
        Listings left without matching variants are dropped from the page.
        total_count counts listings before variant filtering.
        """
        if page < 1:
            raise ValidationError("page must be >= 1", detail={"page": page})
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}", detail={"limit": limit})

        variant_filter = VariantFilter(
            color=color or None,
            storage=storage or None,
            max_price=_parse_max_price(max_price),
            battery_health=battery_health or None,
        )
        listing_filter = _listing_filter(model=model, age=age, repaired=repaired)

        listings = await self._store.list_listings(
            self._family.key,
            skip=(page - 1) * limit,
            limit=limit,
            active_only=active_only,
            filters=listing_filter,
        )
        total_count = await self._store.count_listings(
            self._family.key, active_only=active_only, filters=listing_filter
        )

        items: list[Listing] = []
        for listing in listings:
            if not variant_filter.active:
                items.append(listing)
                continue
            matching = [variant for variant in listing.variants if variant_filter.matches(variant)]
            if matching:
                items.append(replace(listing, variants=matching))

        return ListingPage(items=items, page=page, limit=limit, total_count=total_count)

    def _validate_attributes(self, attributes: object) -> dict[str, Any]:
        if not isinstance(attributes, dict):
            raise ValidationError("Invalid listing format")
        check_required(attributes, self._family.required_attributes)
        return dict(attributes)


def _parse_listing_status(value: str | None) -> ListingStatus | None:
    if is_missing(value):
        return None
    for status in ListingStatus:
        if str(value).strip().lower() == status.value.lower():
            return status
    raise ValidationError(
        f"listingStatus must be one of {[s.value for s in ListingStatus]}",
        detail={"listingStatus": value},
    )


def _parse_max_price(value: object) -> Decimal | None:
    if is_missing(value):
        return None
    amount = to_money(value)
    if amount is None:
        raise ValidationError("price filter must be a decimal amount", detail={"price": value})
    return amount


def _listing_filter(
    *, model: str | None, age: str | None, repaired: bool | None
) -> ListingFilter | None:
    contains = {key: value for key, value in (("model", model), ("age", age)) if value}
    equals = {} if repaired is None else {"repaired": "Yes" if repaired else "No"}
    if not contains and not equals:
        return None
    return ListingFilter(contains=contains, equals=equals)
