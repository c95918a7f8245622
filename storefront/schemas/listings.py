"""Schemas for the catalog listing endpoints (/v1/add{Family}, /v1/purchase{Family}/...).

Listings travel flat: family attributes sit next to id/variants/listingStatus,
and variant attributes (color, storage, ...) sit next to price/quantity.
Prices are serialized as decimal strings.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from storefront.services.lifecycle import ListingPage
from storefront.services.variants import Listing, Variant

# Keys a client cannot set as listing attributes (field names and aliases)
RESERVED_LISTING_KEYS = frozenset(
    {
        "id",
        "family",
        "variants",
        "status",
        "listingStatus",
        "listing_status",
        "createdOn",
        "created_on",
        "updatedOn",
        "updated_on",
    }
)


def _money(value: Decimal | None) -> str | None:
    return None if value is None else f"{value:.2f}"


class ListingIn(BaseModel):
    """Create/update payload: family attributes plus variants.

    Variants are kept raw and validated by the lifecycle service so that
    missing/invalid fields map onto the catalog error codes.
    """

    variants: Any = None
    listing_status: str | None = Field(default=None, alias="listingStatus")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @property
    def attributes(self) -> dict[str, Any]:
        extra = self.model_extra or {}
        return {key: value for key, value in extra.items() if key not in RESERVED_LISTING_KEYS}


class PurchaseIn(BaseModel):
    """Purchase payload."""

    variant_id: str | None = Field(default=None, alias="variantId")
    quantity_to_purchase: Any = Field(default=None, alias="quantityToPurchase")

    model_config = ConfigDict(populate_by_name=True)


class VariantOut(BaseModel):
    """A purchasable variant; distinguishing attributes are extra fields."""

    id: str
    price: str
    original_price: str | None = Field(default=None, alias="originalPrice")
    price_off: str | None = Field(default=None, alias="priceOff")
    quantity: int
    status: str

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @classmethod
    def from_variant(cls, variant: Variant) -> "VariantOut":
        return cls(
            **variant.attributes,
            id=variant.id,
            price=_money(variant.price),
            original_price=_money(variant.original_price),
            price_off=variant.price_off,
            quantity=variant.quantity,
            status=variant.status.value,
        )


class ListingOut(BaseModel):
    """A listing document; family attributes are extra fields."""

    id: str
    family: str
    variants: list[VariantOut]
    listing_status: str = Field(alias="listingStatus")
    created_on: datetime = Field(alias="createdOn")
    updated_on: datetime = Field(alias="updatedOn")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingOut":
        attributes = {
            key: value for key, value in listing.attributes.items() if key not in RESERVED_LISTING_KEYS
        }
        return cls(
            **attributes,
            id=listing.id,
            family=listing.family,
            variants=[VariantOut.from_variant(variant) for variant in listing.variants],
            listing_status=listing.status.value,
            created_on=listing.created_on,
            updated_on=listing.updated_on,
        )


class ListingPageOut(BaseModel):
    """Response payload for GET /v1/getAll{Families}."""

    items: list[ListingOut]
    total_count: int = Field(alias="totalCount", ge=0)
    total_pages: int = Field(alias="totalPages", ge=0)
    current_page: int = Field(alias="currentPage", ge=1)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_page(cls, page: ListingPage) -> "ListingPageOut":
        return cls(
            items=[ListingOut.from_listing(listing) for listing in page.items],
            total_count=page.total_count,
            total_pages=page.total_pages,
            current_page=page.page,
        )


class CountOut(BaseModel):
    """Response payload for GET /v1/getNumberOf{Families}."""

    count: int = Field(ge=0)
