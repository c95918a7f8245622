"""Catalog endpoints, one router per product family.

POST   /v1/add{Family}                 - Create listing
GET    /v1/getAll{Families}            - Paged listings (all statuses)
GET    /v1/user/getAll{Families}       - Paged listings (Active only)
GET    /v1/getNumberOf{Families}       - Listing count
GET    /v1/get{Family}/{id}            - One listing
PUT    /v1/update{Family}/{id}         - Replace attributes + variants
PUT    /v1/remove{Family}/{id}         - Toggle Active/Inactive
DELETE /v1/delete{Family}/{id}         - Delete listing
PUT    /v1/purchase{Family}/{id}       - Purchase a variant

Routers are thin: call services for business logic.
"""

import logging

from fastapi import APIRouter, Depends, Path, Query

from storefront.dependencies import FamilyServices, family_services
from storefront.errors import ValidationError
from storefront.schemas import (
    CountOut,
    ErrorResponse,
    ListingIn,
    ListingOut,
    ListingPageOut,
    PurchaseIn,
)
from storefront.services.families import ProductFamily

logger = logging.getLogger("uvicorn.error")


def build_family_router(family: ProductFamily) -> APIRouter:
    """Create the CRUD + purchase router for one family."""
    router = APIRouter(
        responses={
            400: {"model": ErrorResponse, "description": "Validation error or insufficient stock"},
            404: {"model": ErrorResponse, "description": "Listing or variant not found"},
        }
    )
    get_services = family_services(family)

    @router.post(
        f"/add{family.label}",
        status_code=201,
        response_model=ListingOut,
        name=f"add_{family.key}",
    )
    async def add_listing(
        body: ListingIn,
        services: FamilyServices = Depends(get_services),
    ) -> ListingOut:
        listing = await services.lifecycle.create(body.attributes, body.variants, body.listing_status)
        logger.info(f"[{family.key}] created listing id={listing.id} variants={len(listing.variants)}")
        return ListingOut.from_listing(listing)

    async def _list(
        services: FamilyServices,
        *,
        active_only: bool,
        page: int,
        limit: int,
        color: str | None,
        storage: str | None,
        price: str | None,
        battery_health: str | None,
        model: str | None,
        age: str | None,
        repaired: bool | None,
    ) -> ListingPageOut:
        result = await services.lifecycle.list(
            page=page,
            limit=limit,
            active_only=active_only,
            color=color,
            storage=storage,
            max_price=price,
            battery_health=battery_health,
            model=model,
            age=age,
            repaired=repaired,
        )
        return ListingPageOut.from_page(result)

    @router.get(f"/getAll{family.plural}", response_model=ListingPageOut, name=f"list_{family.key}")
    async def list_listings(
        page: int = Query(default=1, ge=1, description="Page number (1-based)"),
        limit: int = Query(default=20, ge=1, le=100, description="Page size"),
        color: str | None = Query(default=None, description="Variant color contains (case-insensitive)"),
        storage: str | None = Query(default=None, description="Variant storage contains (case-insensitive)"),
        price: str | None = Query(default=None, description="Max variant price (decimal)"),
        battery_health: str | None = Query(
            default=None, alias="batteryHealth", description="Variant battery health contains"
        ),
        model: str | None = Query(default=None, description="Model contains (case-insensitive)"),
        age: str | None = Query(default=None, description="Age contains (case-insensitive)"),
        repaired: bool | None = Query(default=None, description="true: repaired=Yes, false: repaired=No"),
        services: FamilyServices = Depends(get_services),
    ) -> ListingPageOut:
        return await _list(
            services,
            active_only=False,
            page=page,
            limit=limit,
            color=color,
            storage=storage,
            price=price,
            battery_health=battery_health,
            model=model,
            age=age,
            repaired=repaired,
        )

    @router.get(
        f"/user/getAll{family.plural}",
        response_model=ListingPageOut,
        name=f"list_active_{family.key}",
    )
    async def list_active_listings(
        page: int = Query(default=1, ge=1, description="Page number (1-based)"),
        limit: int = Query(default=20, ge=1, le=100, description="Page size"),
        color: str | None = Query(default=None, description="Variant color contains (case-insensitive)"),
        storage: str | None = Query(default=None, description="Variant storage contains (case-insensitive)"),
        price: str | None = Query(default=None, description="Max variant price (decimal)"),
        battery_health: str | None = Query(
            default=None, alias="batteryHealth", description="Variant battery health contains"
        ),
        model: str | None = Query(default=None, description="Model contains (case-insensitive)"),
        age: str | None = Query(default=None, description="Age contains (case-insensitive)"),
        repaired: bool | None = Query(default=None, description="true: repaired=Yes, false: repaired=No"),
        services: FamilyServices = Depends(get_services),
    ) -> ListingPageOut:
        return await _list(
            services,
            active_only=True,
            page=page,
            limit=limit,
            color=color,
            storage=storage,
            price=price,
            battery_health=battery_health,
            model=model,
            age=age,
            repaired=repaired,
        )

    @router.get(f"/getNumberOf{family.plural}", response_model=CountOut, name=f"count_{family.key}")
    async def count_listings(
        services: FamilyServices = Depends(get_services),
    ) -> CountOut:
        return CountOut(count=await services.lifecycle.count())

    @router.get(f"/get{family.label}/{{listing_id}}", response_model=ListingOut, name=f"get_{family.key}")
    async def get_listing(
        listing_id: str = Path(description="Listing ID", min_length=1, max_length=64),
        services: FamilyServices = Depends(get_services),
    ) -> ListingOut:
        listing = await services.lifecycle.get(listing_id)
        return ListingOut.from_listing(listing)

    @router.put(
        f"/update{family.label}/{{listing_id}}",
        response_model=ListingOut,
        name=f"update_{family.key}",
    )
    async def update_listing(
        body: ListingIn,
        listing_id: str = Path(description="Listing ID", min_length=1, max_length=64),
        services: FamilyServices = Depends(get_services),
    ) -> ListingOut:
        listing = await services.lifecycle.update(
            listing_id, body.attributes, body.variants, body.listing_status
        )
        logger.info(f"[{family.key}] updated listing id={listing.id} variants={len(listing.variants)}")
        return ListingOut.from_listing(listing)

    @router.put(
        f"/remove{family.label}/{{listing_id}}",
        response_model=ListingOut,
        name=f"toggle_{family.key}",
    )
    async def toggle_listing(
        listing_id: str = Path(description="Listing ID", min_length=1, max_length=64),
        services: FamilyServices = Depends(get_services),
    ) -> ListingOut:
        listing = await services.lifecycle.toggle_status(listing_id)
        logger.info(f"[{family.key}] listing id={listing.id} is now {listing.status.value}")
        return ListingOut.from_listing(listing)

    @router.delete(
        f"/delete{family.label}/{{listing_id}}",
        response_model=ListingOut,
        name=f"delete_{family.key}",
    )
    async def delete_listing(
        listing_id: str = Path(description="Listing ID", min_length=1, max_length=64),
        services: FamilyServices = Depends(get_services),
    ) -> ListingOut:
        listing = await services.lifecycle.delete(listing_id)
        logger.info(f"[{family.key}] deleted listing id={listing.id}")
        return ListingOut.from_listing(listing)

    @router.put(
        f"/purchase{family.label}/{{listing_id}}",
        response_model=ListingOut,
        name=f"purchase_{family.key}",
    )
    async def purchase_variant(
        body: PurchaseIn,
        listing_id: str = Path(description="Listing ID", min_length=1, max_length=64),
        services: FamilyServices = Depends(get_services),
    ) -> ListingOut:
        if not body.variant_id or not body.variant_id.strip():
            raise ValidationError("variantId is required", detail={"field": "variantId"})

        listing = await services.inventory.purchase(listing_id, body.variant_id, body.quantity_to_purchase)
        logger.info(
            f"[{family.key}] purchase listing id={listing_id} variant={body.variant_id} "
            f"quantity={body.quantity_to_purchase} mode={services.inventory.mode.value}"
        )
        return ListingOut.from_listing(listing)

    return router
