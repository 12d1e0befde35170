"""
Checkout service - composes cart pricing, offers and coupons into the final breakdown.

Stacking order:
    total = subtotal - cart discount - offers - coupon + tax
where tax is always the cart's own tax, i.e. 8% of (subtotal - cart discount).
Offers and coupons never reduce the tax base; recorded totals depend on it.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from checkout.context import ShopContext
from checkout.exceptions import ValidationError
from checkout.models import Cart, CouponEvaluation
from checkout.services.cart_service import get_or_create_cart, save_carts
from checkout.services.coupon_service import evaluate_coupon_detailed
from checkout.services.ledger_service import LedgerResult, record_checkout
from checkout.services.offer_service import load_offer_rules
from checkout.utils.number_format import round_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutBreakdown:
    """Price breakdown shown before the purchase is confirmed."""

    subtotal: Decimal
    cart_discount: Decimal
    offers_discount: Decimal
    coupon_discount: Decimal
    tax: Decimal
    total: Decimal
    coupon: Optional[CouponEvaluation] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subtotal': self.subtotal,
            'cart_discount': self.cart_discount,
            'offers_discount': self.offers_discount,
            'coupon_discount': self.coupon_discount,
            'tax': self.tax,
            'total': self.total,
        }


def compute_breakdown(
    cart: Cart,
    offers_discount: Decimal = Decimal('0.00'),
    coupon_discount: Decimal = Decimal('0.00'),
    coupon: Optional[CouponEvaluation] = None
) -> CheckoutBreakdown:
    """Pure function of the cart and the two discount amounts."""
    offers_discount = round_money(offers_discount)
    coupon_discount = round_money(coupon_discount)

    subtotal = cart.subtotal()
    cart_discount = cart.cart_level_discount()
    tax = cart.tax()
    total = round_money(subtotal - cart_discount - offers_discount - coupon_discount + tax)

    return CheckoutBreakdown(
        subtotal=subtotal,
        cart_discount=cart_discount,
        offers_discount=offers_discount,
        coupon_discount=coupon_discount,
        tax=tax,
        total=total,
        coupon=coupon,
    )


def prepare_checkout(
    context: ShopContext,
    username: str,
    coupon_code: Optional[str] = None,
    payment_method: Optional[str] = None
) -> CheckoutBreakdown:
    """
    Price the user's cart with current offers and an optional coupon.
    No side effects. Raises ValidationError for an empty cart.
    """
    cart = get_or_create_cart(context, username)
    if cart.is_empty():
        raise ValidationError('Your cart is empty')

    offers_discount = load_offer_rules(context).compute_offers_discount(cart)

    coupon = None
    coupon_discount = Decimal('0.00')
    if coupon_code and coupon_code.strip():
        coupon = evaluate_coupon_detailed(context, coupon_code.strip(), cart, payment_method)
        coupon_discount = coupon.discount

    return compute_breakdown(cart, offers_discount, coupon_discount, coupon)


def confirm_checkout(context: ShopContext, username: str, clear_cart: bool = False) -> LedgerResult:
    """
    Record the user's cart in the purchase history.

    With ``clear_cart`` the cart is emptied and the snapshot saved, but only
    once the history write succeeded. A failed snapshot save is added to the
    result's warnings.
    """
    cart = get_or_create_cart(context, username)
    result = record_checkout(context, username, cart)
    if result and clear_cart:
        cart.clear()
        if not save_carts(context):
            result.warnings.append('Cart cleared in memory but the cart snapshot was not saved')
    return result
