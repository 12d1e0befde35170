"""Repositories package - storage interfaces and their flat-file implementations."""
from checkout.repositories.base import (
    FlatFile, sanitize_field,
    CartSnapshotRepository, UserIdentityRepository, RoleRepository,
    OfferRepository, CouponRepository, PurchaseHistoryRepository,
)
from checkout.repositories.cart_snapshot import JsonCartSnapshotRepository
from checkout.repositories.user_files import CsvUserIdentityRepository, CsvRoleRepository
from checkout.repositories.rule_files import CsvOfferRepository, CsvCouponRepository
from checkout.repositories.purchase_history import CsvPurchaseHistoryRepository, HISTORY_HEADER

__all__ = [
    'FlatFile', 'sanitize_field',
    'CartSnapshotRepository', 'UserIdentityRepository', 'RoleRepository',
    'OfferRepository', 'CouponRepository', 'PurchaseHistoryRepository',
    'JsonCartSnapshotRepository', 'CsvUserIdentityRepository', 'CsvRoleRepository',
    'CsvOfferRepository', 'CsvCouponRepository', 'CsvPurchaseHistoryRepository', 'HISTORY_HEADER',
]
