"""Coupon rule model and evaluation result."""
import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from checkout.exceptions import ValidationError
from checkout.utils.number_format import parse_money, parse_percent


class CouponStatus(enum.Enum):
    """Outcome of evaluating a coupon code against a cart."""
    APPLIED = 'applied'
    NOT_FOUND = 'not_found'
    BELOW_MINIMUM = 'below_minimum'
    PAYMENT_METHOD_MISMATCH = 'payment_method_mismatch'


@dataclass(frozen=True)
class CouponRule:
    """Code-activated percent discount on the cart subtotal."""

    code: str
    minimum_subtotal: Decimal
    discount_percent: Decimal
    payment_method: Optional[str] = None

    def __post_init__(self):
        if self.code is None or not str(self.code).strip():
            raise ValidationError('Coupon code cannot be empty')
        try:
            minimum = parse_money(self.minimum_subtotal)
            pct = parse_percent(self.discount_percent)
        except ValueError as e:
            raise ValidationError(str(e))
        object.__setattr__(self, 'code', str(self.code).strip())
        object.__setattr__(self, 'minimum_subtotal', minimum)
        object.__setattr__(self, 'discount_percent', pct)
        method = (self.payment_method or '').strip()
        object.__setattr__(self, 'payment_method', method or None)

    def matches(self, code: str) -> bool:
        """Case-insensitive code comparison."""
        return code is not None and self.code.casefold() == code.strip().casefold()

    def accepts_payment_method(self, payment_method: Optional[str]) -> bool:
        # No filter on the rule, or no method supplied by the caller: not enforced
        if not self.payment_method or not payment_method:
            return True
        return self.payment_method.casefold() == payment_method.strip().casefold()


@dataclass(frozen=True)
class CouponEvaluation:
    """Discount plus the reason behind it. ``discount`` is 0 unless APPLIED."""

    discount: Decimal
    status: CouponStatus
    rule: Optional[CouponRule] = None

    @property
    def applied(self) -> bool:
        return self.status is CouponStatus.APPLIED
