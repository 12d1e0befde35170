"""Purchase history row and user identity models."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class PurchaseRecord:
    """One line item of one checkout event. Append-only; never mutated."""

    user_id: int
    username: str
    timestamp: datetime
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    cart_total: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class UserIdentity:
    """Username bound to a permanent integer id."""

    username: str
    user_id: int
