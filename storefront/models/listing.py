"""Listing and variant models.

A listing row holds the family-specific attributes as JSON; its variants
live in their own table so stock can be decremented with a single
conditional UPDATE.

Example listing: iPhone 15 Pro (attributes) with variants
"black/256gb" and "natural/512gb".
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.stores.postgres import Base


class ListingRow(Base):
    """Catalog listing (one per product family instance)."""

    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    family: Mapped[str] = mapped_column(String(20), index=True)  # iphone/android/accessory/product

    # model, releaseYear, features, condition, media, ...
    attributes: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    listing_status: Mapped[str] = mapped_column(String(10), default="Active", index=True)

    created_on: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_on: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    variants: Mapped[list["VariantRow"]] = relationship(
        back_populates="listing",
        cascade="all, delete-orphan",
        order_by="VariantRow.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<ListingRow {self.family}:{self.id}>"


class VariantRow(Base):
    """Purchasable SKU of a listing."""

    __tablename__ = "listing_variants"
    __table_args__ = (
        UniqueConstraint("listing_id", "variant_id", name="uq_listing_variants_listing_variant"),
        CheckConstraint("quantity >= 0", name="ck_listing_variants_quantity_non_negative"),
    )

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    listing_id: Mapped[str] = mapped_column(
        ForeignKey("listings.id", ondelete="CASCADE"),
        index=True,
    )
    variant_id: Mapped[str] = mapped_column(String(64))
    position: Mapped[int] = mapped_column(Integer, default=0)  # insertion order

    # color, storage, material, batteryHealth
    attributes: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    # Pricing
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    original_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    price_off: Mapped[str | None] = mapped_column(String(8))  # e.g., "20%"

    # Stock
    quantity: Mapped[int] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(10), default="available")  # available/soldout

    listing: Mapped[ListingRow] = relationship(back_populates="variants")

    def __repr__(self) -> str:
        return f"<VariantRow {self.listing_id}/{self.variant_id} qty={self.quantity}>"
