"""Explicit state handed to every engine operation."""
from dataclasses import dataclass, field
from typing import Any, Dict

from checkout.models import Cart, Catalog
from checkout.repositories import (
    CartSnapshotRepository, UserIdentityRepository, RoleRepository,
    OfferRepository, CouponRepository, PurchaseHistoryRepository,
)


@dataclass
class ShopContext:
    """
    Everything the services need: settings, catalog, stores and the
    in-memory carts and roles loaded at startup.
    """

    config: Dict[str, Any]
    catalog: Catalog
    cart_store: CartSnapshotRepository
    user_store: UserIdentityRepository
    role_store: RoleRepository
    offer_store: OfferRepository
    coupon_store: CouponRepository
    history_store: PurchaseHistoryRepository
    carts: Dict[str, Cart] = field(default_factory=dict)
    roles: Dict[str, str] = field(default_factory=dict)
