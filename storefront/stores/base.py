"""Abstract listing store.

Services depend on this interface only; the Postgres implementation lives in
storefront.stores.listings and tests use an in-memory fake.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from storefront.services.variants import Listing


@dataclass(frozen=True)
class ListingFilter:
    """Listing attribute filters, all case-insensitive.

    contains: attribute holds the value as a substring (model, age)
    equals: attribute equals the value (repaired)
    """

    contains: Mapping[str, str] = field(default_factory=dict)
    equals: Mapping[str, str] = field(default_factory=dict)

    def matches(self, attributes: Mapping[str, object]) -> bool:
        for key, value in self.contains.items():
            if value.lower() not in str(attributes.get(key, "")).lower():
                return False
        for key, value in self.equals.items():
            if str(attributes.get(key, "")).lower() != value.lower():
                return False
        return True


class ListingStore(ABC):
    """Persistence boundary for listings (and their owned variants)."""

    @abstractmethod
    async def load_listing(self, listing_id: str) -> Listing | None:
        """Return the listing with its variants, or None."""

    @abstractmethod
    async def save_listing(self, listing: Listing) -> Listing:
        """Upsert the full listing document and return the stored state."""

    @abstractmethod
    async def delete_listing(self, listing_id: str) -> Listing | None:
        """Delete a listing and its variants; return what was deleted, or None."""

    @abstractmethod
    async def list_listings(
        self,
        family: str,
        *,
        skip: int = 0,
        limit: int = 20,
        active_only: bool = False,
        filters: ListingFilter | None = None,
    ) -> list[Listing]:
        """Return one page of a family's listings, oldest first."""

    @abstractmethod
    async def count_listings(
        self,
        family: str,
        *,
        active_only: bool = False,
        filters: ListingFilter | None = None,
    ) -> int:
        """Count a family's listings matching the same filters as list_listings."""

    @abstractmethod
    async def decrement_variant_quantity(
        self,
        listing_id: str,
        variant_id: str,
        amount: int,
        now: datetime,
    ) -> Listing | None:
        """Atomically take `amount` units from a variant if it has that many.

        Sets the variant SOLD_OUT when it reaches 0 and stamps the listing's
        updated_on. Returns the updated listing, or None when the listing or
        variant is gone or stock was insufficient (nothing is written then).
        """
