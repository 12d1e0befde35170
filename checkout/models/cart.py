"""Cart and line item models."""
from decimal import Decimal
from typing import Dict, List, Optional

from checkout.exceptions import ValidationError
from checkout.models.product import Product
from checkout.utils.number_format import round_money


class LineItem:
    """A product and a positive quantity, owned by exactly one Cart."""

    __slots__ = ('product', 'quantity')

    def __init__(self, product: Product, quantity: int):
        if product is None:
            raise ValidationError('Product cannot be null')
        _check_quantity(quantity)
        self.product = product
        self.quantity = quantity

    def add_quantity(self, amount: int) -> None:
        _check_quantity(amount, 'Amount must be positive')
        self.quantity += amount

    @property
    def total(self) -> Decimal:
        """Unrounded line total (unit price x quantity)."""
        return self.product.unit_price * self.quantity

    def __eq__(self, other):
        if not isinstance(other, LineItem):
            return NotImplemented
        return self.product == other.product and self.quantity == other.quantity

    def __repr__(self):
        return f"<LineItem(product_id={self.product.id}, quantity={self.quantity})>"


def _check_quantity(quantity, message='Quantity must be positive'):
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError(message, {'quantity': quantity})


class Cart:
    """
    Per-user shopping cart.

    Line items are keyed by product id. Pricing follows a fixed policy:
    - cart-level discount of 10% once the subtotal reaches 500.00
    - 8% tax on (subtotal - cart-level discount) only
    Offer and coupon discounts live outside the cart and never reduce the tax base.
    """

    DISCOUNT_THRESHOLD = Decimal('500.00')
    DISCOUNT_RATE = Decimal('0.10')
    TAX_RATE = Decimal('0.08')

    def __init__(self):
        self._items: Dict[int, LineItem] = {}

    # ---------------------------------------------------------------- mutation

    def add_item(self, product: Product, quantity: int) -> LineItem:
        """Add a product, accumulating quantity if it is already in the cart."""
        if product is None:
            raise ValidationError('Product cannot be null')
        _check_quantity(quantity)

        line = self._items.get(product.id)
        if line:
            line.add_quantity(quantity)
        else:
            line = LineItem(product, quantity)
            self._items[product.id] = line
        return line

    def remove_item(self, product_id: int) -> bool:
        """Remove a line. Returns False (and changes nothing) if it was absent."""
        return self._items.pop(product_id, None) is not None

    def clear(self) -> None:
        self._items.clear()

    # ----------------------------------------------------------------- queries

    def is_empty(self) -> bool:
        return not self._items

    def item_count(self) -> int:
        """Total units across all lines."""
        return sum(line.quantity for line in self._items.values())

    def items(self) -> List[LineItem]:
        return list(self._items.values())

    def get_item(self, product_id: int) -> Optional[LineItem]:
        return self._items.get(product_id)

    def quantity_of(self, product_id: int) -> int:
        line = self._items.get(product_id)
        return line.quantity if line else 0

    # ----------------------------------------------------------------- pricing

    def subtotal(self) -> Decimal:
        """Exact sum of line totals, rounded once at the end."""
        return round_money(sum((line.total for line in self._items.values()), Decimal('0')))

    def cart_level_discount(self) -> Decimal:
        subtotal = self.subtotal()
        if subtotal >= self.DISCOUNT_THRESHOLD:
            return round_money(subtotal * self.DISCOUNT_RATE)
        return Decimal('0.00')

    def tax(self) -> Decimal:
        taxable = self.subtotal() - self.cart_level_discount()
        return round_money(taxable * self.TAX_RATE)

    def total(self) -> Decimal:
        """The cart's own total: no offers or coupons applied."""
        return round_money(self.subtotal() - self.cart_level_discount() + self.tax())

    def __len__(self):
        return len(self._items)

    def __eq__(self, other):
        if not isinstance(other, Cart):
            return NotImplemented
        return self._items == other._items

    def __repr__(self):
        return f"<Cart(lines={len(self._items)}, units={self.item_count()})>"
