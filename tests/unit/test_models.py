"""
Unit tests for the domain models.
"""

import pytest
from decimal import Decimal

from checkout.exceptions import ValidationError, NotFoundError
from checkout.models import Cart, Catalog, LineItem, Product


class TestProductModel:
    """Tests for Product."""

    def test_create_product(self):
        """Test creating a product normalizes the price to cents."""
        product = Product(7, 'Keyboard', Decimal('49.9'))

        assert product.id == 7
        assert product.name == 'Keyboard'
        assert product.unit_price == Decimal('49.90')

    def test_price_rounds_half_up(self, cheap_product):
        """Test that 0.125 rounds to 0.13, not banker's 0.12."""
        assert cheap_product.unit_price == Decimal('0.13')

    def test_float_price_is_not_drifted(self):
        product = Product(8, 'Cable', 0.1)
        assert product.unit_price == Decimal('0.10')

    @pytest.mark.parametrize('product_id', [0, -1])
    def test_non_positive_id_rejected(self, product_id):
        with pytest.raises(ValidationError, match='ID must be positive'):
            Product(product_id, 'Thing', Decimal('1.00'))

    @pytest.mark.parametrize('name', ['', '   ', None])
    def test_empty_name_rejected(self, name):
        with pytest.raises(ValidationError, match='name cannot be empty'):
            Product(1, name, Decimal('1.00'))

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError, match='negative'):
            Product(1, 'Thing', Decimal('-0.01'))

    def test_product_is_immutable(self, laptop):
        with pytest.raises(Exception):  # FrozenInstanceError
            laptop.name = 'Desktop'


class TestCatalog:
    """Tests for Catalog."""

    def test_default_catalog(self, catalog):
        products = catalog.products()

        assert [p.id for p in products] == [1, 2, 3, 4, 5, 6]
        assert catalog.require(1).name == 'Laptop'
        assert catalog.require(6).unit_price == Decimal('25.00')

    def test_get_unknown_returns_none(self, catalog):
        assert catalog.get(42) is None
        assert 42 not in catalog

    def test_require_unknown_raises(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.require(42)


class TestLineItem:
    """Tests for LineItem."""

    def test_total_is_price_times_quantity(self, headphones):
        line = LineItem(headphones, 12)
        assert line.total == Decimal('600.00')

    def test_zero_quantity_rejected(self, headphones):
        with pytest.raises(ValidationError):
            LineItem(headphones, 0)

    def test_add_non_positive_amount_rejected(self, headphones):
        line = LineItem(headphones, 1)
        with pytest.raises(ValidationError):
            line.add_quantity(0)
        assert line.quantity == 1


class TestCartItems:
    """Tests for adding, removing and clearing cart items."""

    def test_new_cart_is_empty(self, cart):
        assert cart.is_empty()
        assert cart.item_count() == 0
        assert cart.subtotal() == Decimal('0.00')

    def test_add_item_creates_line(self, cart, laptop):
        cart.add_item(laptop, 2)

        assert not cart.is_empty()
        assert cart.quantity_of(1) == 2
        assert len(cart) == 1

    def test_add_same_product_accumulates(self, cart, mouse):
        cart.add_item(mouse, 2)
        cart.add_item(mouse, 3)

        assert len(cart) == 1
        assert cart.quantity_of(6) == 5

    def test_split_adds_equal_single_add(self, mouse, headphones):
        """Adding q1 then q2 has the same effect as adding q1 + q2 once."""
        split = Cart()
        split.add_item(mouse, 4)
        split.add_item(headphones, 1)
        split.add_item(mouse, 7)

        single = Cart()
        single.add_item(headphones, 1)
        single.add_item(mouse, 11)

        assert split == single
        assert split.subtotal() == single.subtotal()

    @pytest.mark.parametrize('quantity', [0, -3, True, 1.5])
    def test_invalid_quantity_rejected(self, cart, laptop, quantity):
        with pytest.raises(ValidationError):
            cart.add_item(laptop, quantity)
        assert cart.is_empty()

    def test_none_product_rejected(self, cart):
        with pytest.raises(ValidationError):
            cart.add_item(None, 1)

    def test_remove_item(self, cart, laptop, mouse):
        cart.add_item(laptop, 1)
        cart.add_item(mouse, 1)

        assert cart.remove_item(1) is True
        assert cart.quantity_of(1) == 0
        assert cart.get_item(1) is None
        assert len(cart) == 1

    def test_remove_absent_is_noop(self, cart, mouse):
        cart.add_item(mouse, 2)

        assert cart.remove_item(99) is False
        assert cart.remove_item(99) is False
        assert cart.quantity_of(6) == 2
        assert len(cart) == 1

    def test_removing_last_item_empties_cart(self, cart, mouse):
        cart.add_item(mouse, 2)
        cart.remove_item(6)
        assert cart.is_empty()

    def test_clear(self, cart, laptop, mouse):
        cart.add_item(laptop, 1)
        cart.add_item(mouse, 4)

        cart.clear()

        assert cart.is_empty()
        assert cart.total() == Decimal('0.00')


class TestCartPricing:
    """Tests for subtotal, cart-level discount, tax and total."""

    def test_laptop_scenario(self, cart, laptop):
        cart.add_item(laptop, 1)

        assert cart.subtotal() == Decimal('1000.00')
        assert cart.cart_level_discount() == Decimal('100.00')
        assert cart.tax() == Decimal('72.00')
        assert cart.total() == Decimal('972.00')

    def test_subtotal_sums_lines(self, cart, laptop, headphones, mouse):
        cart.add_item(laptop, 1)
        cart.add_item(headphones, 3)
        cart.add_item(mouse, 2)

        assert cart.subtotal() == Decimal('1200.00')
        assert cart.item_count() == 6

    def test_no_discount_below_threshold(self, cart):
        cart.add_item(Product(50, 'Monitor', Decimal('499.99')), 1)

        assert cart.cart_level_discount() == Decimal('0.00')
        assert cart.tax() == Decimal('40.00')
        assert cart.total() == Decimal('539.99')

    def test_discount_at_threshold_is_inclusive(self, cart, phone):
        cart.add_item(phone, 1)

        assert cart.subtotal() == Decimal('500.00')
        assert cart.cart_level_discount() == Decimal('50.00')
        assert cart.tax() == Decimal('36.00')
        assert cart.total() == Decimal('486.00')

    def test_discount_rounds_half_up(self, cart):
        cart.add_item(Product(60, 'Console', Decimal('505.05')), 1)

        assert cart.cart_level_discount() == Decimal('50.51')
        assert cart.tax() == Decimal('36.36')
        assert cart.total() == Decimal('490.90')

    def test_tax_base_is_subtotal_minus_cart_discount(self, cart, headphones):
        cart.add_item(headphones, 12)

        assert cart.subtotal() == Decimal('600.00')
        assert cart.cart_level_discount() == Decimal('60.00')
        assert cart.tax() == Decimal('43.20')
        assert cart.total() == Decimal('583.20')
