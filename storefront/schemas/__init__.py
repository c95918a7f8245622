"""Pydantic schemas for API request/response validation."""

from storefront.schemas.common import ErrorDetail, ErrorResponse
from storefront.schemas.listings import (
    CountOut,
    ListingIn,
    ListingOut,
    ListingPageOut,
    PurchaseIn,
    VariantOut,
)

__all__ = [
    "CountOut",
    "ErrorDetail",
    "ErrorResponse",
    "ListingIn",
    "ListingOut",
    "ListingPageOut",
    "PurchaseIn",
    "VariantOut",
]
