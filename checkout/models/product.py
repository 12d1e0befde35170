"""Product model and the in-memory catalog."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from checkout.exceptions import ValidationError, NotFoundError
from checkout.utils.number_format import round_money, to_decimal


@dataclass(frozen=True)
class Product:
    """Catalog product. Immutable; identity is ``id``."""

    id: int
    name: str
    unit_price: Decimal

    def __post_init__(self):
        if isinstance(self.id, bool) or not isinstance(self.id, int) or self.id <= 0:
            raise ValidationError('Product ID must be positive')
        if self.name is None or not str(self.name).strip():
            raise ValidationError('Product name cannot be empty')
        try:
            price = to_decimal(self.unit_price)
        except ValueError as e:
            raise ValidationError(f'Invalid price: {e}')
        if price < 0:
            raise ValidationError('Price cannot be negative')
        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, 'unit_price', round_money(price))

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', unit_price={self.unit_price})>"


@dataclass
class Catalog:
    """Read-only mapping from product id to Product."""

    _products: Dict[int, Product] = field(default_factory=dict)

    @classmethod
    def from_products(cls, products) -> 'Catalog':
        catalog = cls()
        for product in products:
            catalog._products[product.id] = product
        return catalog

    @classmethod
    def default(cls) -> 'Catalog':
        """Stock catalog shipped with the shop."""
        return cls.from_products([
            Product(1, 'Laptop', Decimal('1000.00')),
            Product(2, 'Phone', Decimal('500.00')),
            Product(3, 'Headphones', Decimal('50.00')),
            Product(4, 'Smartwatch', Decimal('200.00')),
            Product(5, 'Tablet', Decimal('350.00')),
            Product(6, 'Wireless Mouse', Decimal('25.00')),
        ])

    def get(self, product_id: int) -> Optional[Product]:
        return self._products.get(product_id)

    def require(self, product_id: int) -> Product:
        """Get a product or raise NotFoundError."""
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError(f'Product {product_id} not found', {'product_id': product_id})
        return product

    def products(self) -> List[Product]:
        """All products sorted by id."""
        return sorted(self._products.values(), key=lambda p: p.id)

    def __contains__(self, product_id) -> bool:
        return product_id in self._products

    def __len__(self) -> int:
        return len(self._products)
