"""Role service - who may do what, and session bookkeeping."""
import logging
from typing import Dict, List, Tuple

from checkout.context import ShopContext
from checkout.exceptions import StorageError, ValidationError
from checkout.models import Cart, Role
from checkout.services.cart_service import get_or_create_cart, save_carts
from checkout.services.ledger_service import list_identities

logger = logging.getLogger(__name__)


def _is_bootstrap_admin(context: ShopContext, username: str) -> bool:
    names = context.config.get('ADMIN_USERNAMES') or []
    return username.casefold() in {name.casefold() for name in names}


def save_roles(context: ShopContext) -> bool:
    try:
        context.role_store.save(context.roles)
        return True
    except StorageError as e:
        logger.error(f"[ROLES] Roles not saved: {e.message}")
        return False


def get_role_for_user(context: ShopContext, username: str) -> Role:
    """
    Stored role, else admin for a bootstrap admin name (persisted on first
    sight), else the plain user role.
    """
    stored = context.roles.get(username)
    if stored is not None:
        try:
            return Role.parse(stored)
        except ValueError:
            logger.warning(f"[ROLES] Unknown role {stored!r} for {username}, treating as user")
            return Role.USER

    if _is_bootstrap_admin(context, username):
        context.roles[username] = Role.ADMIN.value
        save_roles(context)
        logger.info(f"[ROLES] Bootstrapped {username} as admin")
        return Role.ADMIN

    return Role.USER


def grant_role(context: ShopContext, username: str, role) -> bool:
    """Set a user's role. Raises ValidationError for unknown roles or empty names."""
    if not username or not username.strip():
        raise ValidationError('Username cannot be empty')
    if not isinstance(role, Role):
        try:
            role = Role.parse(role)
        except ValueError:
            raise ValidationError(f'Invalid role: {role}. Use admin, employee or user',
                                  {'role': role})
    context.roles[username.strip()] = role.value
    logger.info(f"[ROLES] {username} is now {role.value}")
    return save_roles(context)


def revoke_role(context: ShopContext, username: str) -> bool:
    """Reset a user to the plain user role."""
    return grant_role(context, username, Role.USER)


def list_users_and_roles(context: ShopContext) -> List[Dict]:
    """Everyone who owns a cart or holds a role, sorted by username."""
    ids = {identity.username: identity.user_id for identity in list_identities(context)}
    names = sorted(set(context.carts) | set(context.roles))
    return [
        {
            'username': name,
            'role': context.roles.get(name, Role.USER.value),
            'user_id': ids.get(name),
        }
        for name in names
    ]


def switch_user(context: ShopContext, username: str) -> Tuple[Role, Cart]:
    """Make ``username`` the active shopper: resolve the role and load or create the cart."""
    username = (username or '').strip()
    if not username:
        raise ValidationError('Username cannot be empty')
    role = get_role_for_user(context, username)
    cart = get_or_create_cart(context, username)
    logger.debug(f"[SHOP] Switched to {username} ({role.value}, {len(cart)} lines)")
    return role, cart


def shutdown(context: ShopContext) -> bool:
    """Persist roles and the cart snapshot. Returns False if either write failed."""
    roles_saved = save_roles(context)
    carts_saved = save_carts(context)
    return roles_saved and carts_saved
