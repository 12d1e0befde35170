"""
Capability checks for the navigation shell.

There is one navigation core for every role: each action names the capability
it needs, and the role's capability set decides what is offered and allowed.
"""
from functools import wraps
from typing import List, NamedTuple

import click

from checkout.exceptions import PermissionDeniedError
from checkout.models import Capability, Role, has_capability


class Action(NamedTuple):
    command: str
    label: str
    capability: Capability


NAVIGATION = [
    Action('catalog', 'View product catalog', Capability.BROWSE),
    Action('add', 'Add product to cart', Capability.SHOP),
    Action('remove', 'Remove product from cart', Capability.SHOP),
    Action('cart', 'View cart', Capability.BROWSE),
    Action('checkout', 'Checkout', Capability.CHECKOUT),
    Action('clear', 'Clear cart', Capability.SHOP),
    Action('coupons list', 'List coupons', Capability.BROWSE),
    Action('offers list', 'List offers', Capability.MANAGE_OFFERS),
    Action('offers add', 'Add offer', Capability.MANAGE_OFFERS),
    Action('offers remove', 'Remove offers for a product', Capability.MANAGE_OFFERS),
    Action('history', 'View purchase history', Capability.VIEW_HISTORY),
    Action('coupons add', 'Add coupon', Capability.MANAGE_COUPONS),
    Action('coupons remove', 'Remove coupon', Capability.MANAGE_COUPONS),
    Action('users', 'List users and roles', Capability.MANAGE_ROLES),
    Action('grant', 'Grant role to user', Capability.MANAGE_ROLES),
    Action('revoke', 'Revoke role (set to user)', Capability.MANAGE_ROLES),
    Action('export-carts', 'Record all carts to purchase history', Capability.EXPORT_CARTS),
]


def available_actions(role: Role) -> List[Action]:
    """Menu entries the role may use, in menu order."""
    return [action for action in NAVIGATION if has_capability(role, action.capability)]


def check_capability(role: Role, capability: Capability) -> None:
    if not has_capability(role, capability):
        raise PermissionDeniedError(
            f'The {role.value} role cannot {capability.value.replace("_", " ")}',
            {'role': role.value, 'capability': capability.value}
        )


def require_capability(capability: Capability):
    """
    Decorator to restrict a click command to roles holding ``capability``.

    The command's click context object must expose a ``role`` attribute.

    Usage:
        @cli.command()
        @require_capability(Capability.MANAGE_OFFERS)
        def offers_add(...):
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            session = click.get_current_context().obj
            check_capability(session.role, capability)
            return f(*args, **kwargs)

        return decorated_function
    return decorator
