"""Models package - exports all domain models."""
# Catalog
from checkout.models.product import Product, Catalog

# Cart
from checkout.models.cart import Cart, LineItem

# Pricing rules
from checkout.models.offer import OfferRule
from checkout.models.coupon import CouponRule, CouponEvaluation, CouponStatus

# Ledger and identities
from checkout.models.purchase_record import PurchaseRecord, UserIdentity
from checkout.models.role import Role, Capability, ROLE_CAPABILITIES, capabilities_for, has_capability

__all__ = [
    'Product', 'Catalog',
    'Cart', 'LineItem',
    'OfferRule', 'CouponRule', 'CouponEvaluation', 'CouponStatus',
    'PurchaseRecord', 'UserIdentity',
    'Role', 'Capability', 'ROLE_CAPABILITIES', 'capabilities_for', 'has_capability',
]
