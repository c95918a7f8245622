"""Product family descriptors.

A family (iPhone, Android, Accessory, generic Product) differs from the others
only in which fields are mandatory and which variant attributes it carries.
Services take a ProductFamily instead of being duplicated per family.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProductFamily:
    """Validation and naming rules for one product family."""

    key: str  # e.g., "iphone"
    label: str  # route segment, e.g., "iPhone" -> /addiPhone
    plural: str  # e.g., "iPhones" -> /getAlliPhones

    # Listing-level attributes checked in this order on create/update
    required_attributes: tuple[str, ...]

    # Variant fields checked in this order; first missing one is reported
    required_variant_fields: tuple[str, ...]

    # Attributes that tell variants apart (not enforced unique)
    distinguishing_keys: tuple[str, ...]

    # Other per-variant descriptive attributes kept alongside
    detail_keys: tuple[str, ...] = ()

    @property
    def variant_attribute_keys(self) -> tuple[str, ...]:
        return self.distinguishing_keys + self.detail_keys


IPHONE = ProductFamily(
    key="iphone",
    label="iPhone",
    plural="iPhones",
    required_attributes=("model", "releaseYear", "features", "condition", "age", "categoryName"),
    required_variant_fields=("color", "storage", "price", "quantity", "batteryHealth"),
    distinguishing_keys=("color", "storage"),
    detail_keys=("batteryHealth",),
)

ANDROID = ProductFamily(
    key="android",
    label="Android",
    plural="Androids",
    required_attributes=("model", "releaseYear", "features", "condition", "age", "categoryName"),
    required_variant_fields=("color", "storage", "price", "quantity"),
    distinguishing_keys=("color", "storage"),
)

ACCESSORY = ProductFamily(
    key="accessory",
    label="Accessory",
    plural="Accessories",
    required_attributes=("name", "type", "condition", "categoryName", "compatibility"),
    required_variant_fields=("color", "material", "price", "quantity"),
    distinguishing_keys=("color", "material"),
)

PRODUCT = ProductFamily(
    key="product",
    label="Product",
    plural="Products",
    required_attributes=("model", "type", "releaseYear", "categoryName"),
    required_variant_fields=("price", "quantity"),
    distinguishing_keys=("color", "storage", "material"),
    detail_keys=("batteryHealth",),
)

FAMILIES: dict[str, ProductFamily] = {
    family.key: family for family in (IPHONE, ANDROID, ACCESSORY, PRODUCT)
}


def get_family(key: str) -> ProductFamily:
    """Get a family descriptor by key (case-insensitive).

    Raises:
        KeyError: If the family is unknown.
    """
    return FAMILIES[key.lower().strip()]
