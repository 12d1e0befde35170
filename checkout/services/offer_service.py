"""Offer service - bulk-quantity discounts per product."""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from checkout.context import ShopContext
from checkout.exceptions import StorageError
from checkout.models import Cart, OfferRule
from checkout.utils.number_format import percent_of, round_money

logger = logging.getLogger(__name__)


class OfferRules:
    """An in-memory snapshot of the offer store."""

    def __init__(self, rules: Iterable[OfferRule] = ()):
        self.rules: List[OfferRule] = list(rules)

    def best_discount_for_cart(self, cart: Cart) -> Dict[int, Decimal]:
        """
        Winning percent per product present in the cart.

        A rule qualifies when the cart holds at least ``min_quantity`` of its
        product; among qualifying rules the highest percent wins. Products with
        no qualifying rule are absent from the result.
        """
        best: Dict[int, Decimal] = {}
        for rule in self.rules:
            quantity = cart.quantity_of(rule.product_id)
            if quantity and rule.applies_to(quantity):
                current = best.get(rule.product_id)
                if current is None or rule.discount_percent > current:
                    best[rule.product_id] = rule.discount_percent
        return best

    def compute_offers_discount(self, cart: Cart) -> Decimal:
        """
        Sum of per-line offer discounts.

        Each line's discount is taken on its raw line total and rounded; the sum
        is rounded again. Independent of the cart-level discount.
        """
        best = self.best_discount_for_cart(cart)
        discount = Decimal('0')
        for line in cart.items():
            pct = best.get(line.product.id)
            if pct is not None:
                discount += percent_of(line.total, pct)
        return round_money(discount)

    def for_product(self, product_id: int) -> List[OfferRule]:
        return [rule for rule in self.rules if rule.product_id == product_id]

    def __len__(self):
        return len(self.rules)


def load_offer_rules(context: ShopContext) -> OfferRules:
    """Read the offer store. An unreadable store means no offers apply."""
    try:
        return OfferRules(context.offer_store.load())
    except StorageError as e:
        logger.error(f"[OFFERS] Offers unavailable, applying none: {e.message}")
        return OfferRules()


def list_offers(context: ShopContext) -> List[OfferRule]:
    return load_offer_rules(context).rules


def add_offer(
    context: ShopContext,
    product_id: int,
    min_quantity: int,
    discount_percent,
    description: str = ''
) -> bool:
    """
    Append an offer rule. Raises ValidationError on bad arguments;
    returns False if the store could not be written.
    """
    rule = OfferRule(product_id, min_quantity, discount_percent, description)
    try:
        context.offer_store.append(rule)
    except StorageError as e:
        logger.error(f"[OFFERS] Offer not saved: {e.message}")
        return False
    logger.info(f"[OFFERS] Added offer: product {product_id}, min {min_quantity}, "
                f"{rule.discount_percent}% off")
    return True


def remove_offers_for_product(context: ShopContext, product_id: int) -> Optional[int]:
    """Drop every offer for a product. Returns the number removed, or None on a write failure."""
    try:
        removed = context.offer_store.remove_for_product(product_id)
    except StorageError as e:
        logger.error(f"[OFFERS] Offers not removed: {e.message}")
        return None
    logger.info(f"[OFFERS] Removed {removed} offers for product {product_id}")
    return removed
