"""API routes."""

from fastapi import APIRouter

from storefront.routes.listings import build_family_router
from storefront.services.families import FAMILIES

api_router = APIRouter()

# Catalog endpoints (one router per product family)
for _family in FAMILIES.values():
    api_router.include_router(build_family_router(_family), prefix="/v1", tags=[_family.plural])
