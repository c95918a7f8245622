"""create_listings

Revision ID: 1f4e2b7c9a30
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "1f4e2b7c9a30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "listings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("family", sa.String(length=20), nullable=False),
        sa.Column("attributes", sa.JSON(), nullable=False),
        sa.Column("listing_status", sa.String(length=10), nullable=False),
        sa.Column("created_on", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_on", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_listings_family"), "listings", ["family"], unique=False)
    op.create_index(op.f("ix_listings_listing_status"), "listings", ["listing_status"], unique=False)

    op.create_table(
        "listing_variants",
        sa.Column("pk", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("listing_id", sa.String(length=36), nullable=False),
        sa.Column("variant_id", sa.String(length=64), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("attributes", sa.JSON(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("original_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("price_off", sa.String(length=8), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("pk"),
        sa.UniqueConstraint("listing_id", "variant_id", name="uq_listing_variants_listing_variant"),
        sa.CheckConstraint("quantity >= 0", name="ck_listing_variants_quantity_non_negative"),
    )
    op.create_index(op.f("ix_listing_variants_listing_id"), "listing_variants", ["listing_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_listing_variants_listing_id"), table_name="listing_variants")
    op.drop_table("listing_variants")
    op.drop_index(op.f("ix_listings_listing_status"), table_name="listings")
    op.drop_index(op.f("ix_listings_family"), table_name="listings")
    op.drop_table("listings")
