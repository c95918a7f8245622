"""Catalog exceptions.

Every business rule violation is a subclass of CatalogError carrying a stable
``code`` so the HTTP layer can map it uniformly to the error envelope:
{ "error": { "code": str, "message": str, "detail": object } }
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog errors."""

    code = "CATALOG_ERROR"

    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(CatalogError):
    """Malformed or missing input."""

    code = "VALIDATION_ERROR"


class InvalidQuantityError(ValidationError):
    """Purchase quantity is not a positive integer."""

    code = "INVALID_QUANTITY"


class InsufficientStockError(CatalogError):
    """Requested quantity exceeds what the variant has in stock."""

    code = "INSUFFICIENT_STOCK"


class NotFoundError(CatalogError):
    """Listing or variant does not exist."""

    code = "NOT_FOUND"


class InternalError(CatalogError):
    """Unexpected failure from a storage or lock backend."""

    code = "INTERNAL_ERROR"
