"""Coupon service - code-activated discounts on the cart subtotal."""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from checkout.context import ShopContext
from checkout.exceptions import StorageError, ValidationError
from checkout.models import Cart, CouponRule, CouponEvaluation, CouponStatus
from checkout.utils.number_format import percent_of

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


class CouponRules:
    """An in-memory snapshot of the coupon store, in file order."""

    def __init__(self, rules: Iterable[CouponRule] = ()):
        self.rules: List[CouponRule] = list(rules)

    def find(self, code: str) -> Optional[CouponRule]:
        """First rule whose code matches case-insensitively."""
        if not code or not code.strip():
            return None
        for rule in self.rules:
            if rule.matches(code):
                return rule
        return None

    def evaluate_detailed(self, code: str, cart: Cart, payment_method: Optional[str] = None) -> CouponEvaluation:
        rule = self.find(code)
        if rule is None:
            return CouponEvaluation(ZERO, CouponStatus.NOT_FOUND)

        subtotal = cart.subtotal()
        if subtotal < rule.minimum_subtotal:
            return CouponEvaluation(ZERO, CouponStatus.BELOW_MINIMUM, rule)
        if not rule.accepts_payment_method(payment_method):
            return CouponEvaluation(ZERO, CouponStatus.PAYMENT_METHOD_MISMATCH, rule)

        return CouponEvaluation(percent_of(subtotal, rule.discount_percent), CouponStatus.APPLIED, rule)

    def evaluate(self, code: str, cart: Cart, payment_method: Optional[str] = None) -> Decimal:
        """
        Discount for ``code``, or 0.

        Unknown codes and ineligible carts both yield 0; use
        ``evaluate_detailed`` to tell them apart.
        """
        return self.evaluate_detailed(code, cart, payment_method).discount


def load_coupon_rules(context: ShopContext) -> CouponRules:
    """Read the coupon store. An unreadable store means no coupon matches."""
    try:
        return CouponRules(context.coupon_store.load())
    except StorageError as e:
        logger.error(f"[COUPONS] Coupons unavailable: {e.message}")
        return CouponRules()


def list_coupons(context: ShopContext) -> List[CouponRule]:
    return load_coupon_rules(context).rules


def evaluate_coupon_detailed(
    context: ShopContext,
    code: str,
    cart: Cart,
    payment_method: Optional[str] = None
) -> CouponEvaluation:
    evaluation = load_coupon_rules(context).evaluate_detailed(code, cart, payment_method)
    if not evaluation.applied:
        logger.info(f"[COUPONS] Coupon {code!r} not applied: {evaluation.status.value}")
    return evaluation


def evaluate_coupon(
    context: ShopContext,
    code: str,
    cart: Cart,
    payment_method: Optional[str] = None
) -> Decimal:
    return evaluate_coupon_detailed(context, code, cart, payment_method).discount


def add_coupon(
    context: ShopContext,
    code: str,
    minimum_subtotal,
    discount_percent,
    payment_method: Optional[str] = None
) -> bool:
    """
    Append a coupon rule. Raises ValidationError on bad arguments or a duplicate
    code; returns False if the store could not be written.
    """
    rule = CouponRule(code, minimum_subtotal, discount_percent, payment_method)
    if load_coupon_rules(context).find(rule.code):
        raise ValidationError(f'Coupon {rule.code} already exists', {'code': rule.code})
    try:
        context.coupon_store.append(rule)
    except StorageError as e:
        logger.error(f"[COUPONS] Coupon not saved: {e.message}")
        return False
    logger.info(f"[COUPONS] Added coupon {rule.code}")
    return True


def remove_coupon(context: ShopContext, code: str) -> Optional[int]:
    """Remove every rule with this code. Returns the number removed, or None on a write failure."""
    try:
        removed = context.coupon_store.remove(code)
    except StorageError as e:
        logger.error(f"[COUPONS] Coupon not removed: {e.message}")
        return None
    logger.info(f"[COUPONS] Removed {removed} rules for coupon {code}")
    return removed
