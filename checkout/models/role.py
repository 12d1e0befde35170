"""Roles and the capabilities each one unlocks."""
import enum
from typing import FrozenSet


class Role(enum.Enum):
    """Shop roles, keyed by username."""
    ADMIN = 'admin'
    EMPLOYEE = 'employee'
    USER = 'user'

    @classmethod
    def parse(cls, value: str) -> 'Role':
        """Case-insensitive lookup. Raises ValueError on unknown roles."""
        return cls((value or '').strip().lower())


class Capability(enum.Enum):
    """Actions the navigation shell can offer."""
    BROWSE = 'browse'
    SHOP = 'shop'
    CHECKOUT = 'checkout'
    VIEW_HISTORY = 'view_history'
    MANAGE_OFFERS = 'manage_offers'
    MANAGE_COUPONS = 'manage_coupons'
    MANAGE_ROLES = 'manage_roles'
    EXPORT_CARTS = 'export_carts'


_USER = frozenset({Capability.BROWSE, Capability.SHOP, Capability.CHECKOUT})
_EMPLOYEE = _USER | {Capability.VIEW_HISTORY, Capability.MANAGE_OFFERS}

ROLE_CAPABILITIES = {
    Role.USER: _USER,
    Role.EMPLOYEE: frozenset(_EMPLOYEE),
    Role.ADMIN: frozenset(Capability),
}


def capabilities_for(role: Role) -> FrozenSet[Capability]:
    return ROLE_CAPABILITIES.get(role, _USER)


def has_capability(role: Role, capability: Capability) -> bool:
    return capability in capabilities_for(role)
