"""Bulk-quantity offer rule model."""
from dataclasses import dataclass
from decimal import Decimal

from checkout.exceptions import ValidationError
from checkout.utils.number_format import parse_percent


@dataclass(frozen=True)
class OfferRule:
    """
    Percent off a product's line total once its quantity reaches ``min_quantity``.

    Several rules may target the same product; only the best satisfied one applies.
    """

    product_id: int
    min_quantity: int
    discount_percent: Decimal
    description: str = ''

    def __post_init__(self):
        if isinstance(self.product_id, bool) or not isinstance(self.product_id, int) or self.product_id <= 0:
            raise ValidationError('Offer product ID must be positive')
        if isinstance(self.min_quantity, bool) or not isinstance(self.min_quantity, int) or self.min_quantity < 1:
            raise ValidationError('Offer minimum quantity must be at least 1')
        try:
            pct = parse_percent(self.discount_percent)
        except ValueError as e:
            raise ValidationError(str(e))
        object.__setattr__(self, 'discount_percent', pct)
        object.__setattr__(self, 'description', (self.description or '').strip())

    def applies_to(self, quantity: int) -> bool:
        return quantity >= self.min_quantity
