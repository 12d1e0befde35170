"""Cart service - persistent per-user cart operations."""
import logging
from typing import Any, Dict, Tuple

from checkout.context import ShopContext
from checkout.exceptions import StorageError, ValidationError
from checkout.models import Cart, LineItem
from checkout.utils.number_format import round_money

logger = logging.getLogger(__name__)


def get_or_create_cart(context: ShopContext, username: str) -> Cart:
    """
    Get the user's cart, creating an empty one on first access.
    One cart per username.
    """
    if not username or not username.strip():
        raise ValidationError('Username cannot be empty')
    cart = context.carts.get(username)
    if cart is None:
        cart = Cart()
        context.carts[username] = cart
    return cart


def save_carts(context: ShopContext) -> bool:
    """Write the whole cart snapshot. Returns False if the write failed."""
    try:
        context.cart_store.save(context.carts)
        return True
    except StorageError as e:
        logger.error(f"[CARTS] Snapshot not saved, keeping in-memory state: {e.message}")
        return False


def add_product_to_cart(
    context: ShopContext,
    username: str,
    product_id: int,
    quantity: int
) -> Tuple[LineItem, bool]:
    """
    Add a catalog product to the user's cart or accumulate its quantity.

    Returns the updated line and whether the snapshot was saved.
    Raises NotFoundError for unknown products and ValidationError for bad quantities.
    """
    product = context.catalog.require(product_id)
    cart = get_or_create_cart(context, username)
    line = cart.add_item(product, quantity)
    logger.debug(f"[CARTS] {username}: +{quantity} x {product.name} (now {line.quantity})")
    return line, save_carts(context)


def remove_product_from_cart(context: ShopContext, username: str, product_id: int) -> Tuple[bool, bool]:
    """
    Remove a line from the user's cart.

    Returns (removed, saved). Removing an absent product is a no-op: (False, True).
    """
    cart = get_or_create_cart(context, username)
    if not cart.remove_item(product_id):
        return False, True
    logger.debug(f"[CARTS] {username}: removed product {product_id}")
    return True, save_carts(context)


def clear_cart(context: ShopContext, username: str) -> bool:
    """Empty the user's cart. Returns whether the snapshot was saved."""
    cart = get_or_create_cart(context, username)
    cart.clear()
    logger.debug(f"[CARTS] {username}: cart cleared")
    return save_carts(context)


def calculate_cart_totals(cart: Cart) -> Dict[str, Any]:
    """Line details and the cart's own totals (no offers or coupons)."""
    lines_details = []
    for line in sorted(cart.items(), key=lambda l: l.product.id):
        lines_details.append({
            'product_id': line.product.id,
            'product_name': line.product.name,
            'qty': line.quantity,
            'unit_price': line.product.unit_price,
            'line_total': round_money(line.total),
        })

    return {
        'lines': lines_details,
        'item_count': cart.item_count(),
        'subtotal': cart.subtotal(),
        'cart_discount': cart.cart_level_discount(),
        'tax': cart.tax(),
        'total': cart.total(),
    }
