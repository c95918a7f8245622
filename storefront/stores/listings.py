"""Postgres-backed ListingStore.

Listings are saved as full documents (listing row + variant rows, variants
matched by variant_id and updated in place). The atomic purchase path uses
one conditional UPDATE so stock can never go below zero.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import Select, case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.errors import InternalError
from storefront.models import ListingRow, VariantRow
from storefront.services.variants import Listing, ListingStatus, Variant, VariantStatus
from storefront.stores.base import ListingFilter, ListingStore
from storefront.stores.postgres import session_scope

logger = logging.getLogger("uvicorn.error")


class PostgresListingStore(ListingStore):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # --- ListingStore interface -----------------------------------------------

    async def load_listing(self, listing_id: str) -> Listing | None:
        async with self._session(f"load listing {listing_id}") as session:
            row = await session.get(ListingRow, listing_id)
            return listing_to_domain(row) if row is not None else None

    async def save_listing(self, listing: Listing) -> Listing:
        async with self._session(f"save listing {listing.id}") as session:
            row = await session.get(ListingRow, listing.id)
            if row is None:
                row = ListingRow(id=listing.id, family=listing.family, variants=[])
                session.add(row)

            row.attributes = dict(listing.attributes)
            row.listing_status = listing.status.value
            row.created_on = listing.created_on
            row.updated_on = listing.updated_on
            _sync_variants(row, listing.variants)

            await session.flush()
            return listing_to_domain(row)

    async def delete_listing(self, listing_id: str) -> Listing | None:
        async with self._session(f"delete listing {listing_id}") as session:
            row = await session.get(ListingRow, listing_id)
            if row is None:
                return None
            deleted = listing_to_domain(row)
            await session.delete(row)
            return deleted

    async def list_listings(
        self,
        family: str,
        *,
        skip: int = 0,
        limit: int = 20,
        active_only: bool = False,
        filters: ListingFilter | None = None,
    ) -> list[Listing]:
        query = _where_listings(select(ListingRow), family, active_only, filters)
        query = query.order_by(ListingRow.created_on, ListingRow.id).offset(skip).limit(limit)

        async with self._session(f"list {family} listings") as session:
            result = await session.execute(query)
            return [listing_to_domain(row) for row in result.scalars().all()]

    async def count_listings(
        self,
        family: str,
        *,
        active_only: bool = False,
        filters: ListingFilter | None = None,
    ) -> int:
        query = select(func.count()).select_from(ListingRow)
        query = _where_listings(query, family, active_only, filters)

        async with self._session(f"count {family} listings") as session:
            result = await session.execute(query)
            return int(result.scalar_one())

    async def decrement_variant_quantity(
        self,
        listing_id: str,
        variant_id: str,
        amount: int,
        now: datetime,
    ) -> Listing | None:
        # In SET, column references are the pre-update values
        decrement = (
            update(VariantRow)
            .where(
                VariantRow.listing_id == listing_id,
                VariantRow.variant_id == variant_id,
                VariantRow.quantity >= amount,
            )
            .values(
                quantity=VariantRow.quantity - amount,
                status=case(
                    (VariantRow.quantity == amount, VariantStatus.SOLD_OUT.value),
                    else_=VariantRow.status,
                ),
            )
            .execution_options(synchronize_session=False)
        )

        async with self._session(f"decrement variant {listing_id}/{variant_id}") as session:
            result = await session.execute(decrement)
            if result.rowcount == 0:
                return None

            await session.execute(
                update(ListingRow)
                .where(ListingRow.id == listing_id)
                .values(updated_on=now)
                .execution_options(synchronize_session=False)
            )
            row = await session.get(ListingRow, listing_id, populate_existing=True)
            return listing_to_domain(row) if row is not None else None

    # --- Session helper -------------------------------------------------------

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with session_scope(self._session_factory) as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception(f"[listings] failed to {action}")
            raise InternalError(f"Storage failure: could not {action}") from exc


# --- Queries ------------------------------------------------------------------


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _where_listings(
    query: Select, family: str, active_only: bool, filters: ListingFilter | None
) -> Select:
    query = query.where(ListingRow.family == family)
    if active_only:
        query = query.where(ListingRow.listing_status == ListingStatus.ACTIVE.value)
    if filters is None:
        return query

    for key, value in filters.contains.items():
        query = query.where(
            ListingRow.attributes[key].as_string().ilike(_like_pattern(value), escape="\\")
        )
    for key, value in filters.equals.items():
        query = query.where(func.lower(ListingRow.attributes[key].as_string()) == value.lower())
    return query


# --- Mapping ------------------------------------------------------------------


def _sync_variants(row: ListingRow, variants: list[Variant]) -> None:
    """Make row.variants mirror `variants`; rows not listed are deleted."""
    existing = {variant_row.variant_id: variant_row for variant_row in row.variants}
    synced: list[VariantRow] = []

    for position, variant in enumerate(variants):
        variant_row = existing.pop(variant.id, None) or VariantRow(variant_id=variant.id)
        variant_row.position = position
        variant_row.attributes = dict(variant.attributes)
        variant_row.price = variant.price
        variant_row.original_price = variant.original_price
        variant_row.price_off = variant.price_off
        variant_row.quantity = variant.quantity
        variant_row.status = variant.status.value
        synced.append(variant_row)

    row.variants = synced


def _as_utc(value: datetime) -> datetime:
    # Drivers without timezone support hand back naive UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def variant_to_domain(row: VariantRow) -> Variant:
    return Variant(
        id=row.variant_id,
        price=row.price,
        quantity=row.quantity,
        attributes=dict(row.attributes or {}),
        original_price=row.original_price,
        price_off=row.price_off,
        status=VariantStatus(row.status),
    )


def listing_to_domain(row: ListingRow) -> Listing:
    return Listing(
        id=row.id,
        family=row.family,
        attributes=dict(row.attributes or {}),
        variants=[variant_to_domain(variant_row) for variant_row in row.variants],
        status=ListingStatus(row.listing_status),
        created_on=_as_utc(row.created_on),
        updated_on=_as_utc(row.updated_on),
    )
