"""Service wiring: one lifecycle + inventory service pair per product family.

The lifespan builds these once and stores them on app.state.services;
routes resolve them per request through `family_services`.
"""

from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request

from storefront.services.families import FAMILIES, ProductFamily
from storefront.services.inventory import InventoryService, PurchaseMode
from storefront.services.lifecycle import ListingLifecycle
from storefront.settings import Settings
from storefront.stores.base import ListingStore
from storefront.stores.locks import KeyedLocks, LockProvider


@dataclass
class FamilyServices:
    lifecycle: ListingLifecycle
    inventory: InventoryService


def build_services(
    store: ListingStore,
    settings: Settings,
    locks: LockProvider | None = None,
) -> dict[str, FamilyServices]:
    """Build the services of every family on top of one store.

    In locked mode without an explicit lock provider, purchases are serialized
    with in-process locks (enough for a single worker).
    """
    mode = PurchaseMode(settings.purchase_mode)
    if mode is PurchaseMode.LOCKED and locks is None:
        locks = KeyedLocks(wait_seconds=settings.purchase_lock_wait_seconds)

    merge_variants = settings.variant_update_mode == "merge"
    return {
        key: FamilyServices(
            lifecycle=ListingLifecycle(store, family, merge_variants=merge_variants),
            inventory=InventoryService(store, family, mode=mode, locks=locks),
        )
        for key, family in FAMILIES.items()
    }


def family_services(family: ProductFamily) -> Callable[[Request], FamilyServices]:
    """FastAPI dependency resolving the services of `family`."""

    def resolve(request: Request) -> FamilyServices:
        return request.app.state.services[family.key]

    return resolve
