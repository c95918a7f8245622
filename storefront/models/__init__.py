"""SQLAlchemy ORM models.

Models represent database tables:
- listings: Catalog entries per product family
- listing_variants: Purchasable SKUs owned by a listing
"""

from storefront.models.listing import ListingRow, VariantRow

__all__ = ["ListingRow", "VariantRow"]
