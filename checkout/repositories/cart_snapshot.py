"""
JSON snapshot of every user's cart.

The file is a single document, loaded wholesale at startup and rewritten
wholesale after each cart mutation:

    {"version": 1, "carts": {"alice": [{"product": {...}, "quantity": 2}]}}
"""
import json
import logging
from decimal import Decimal
from typing import Any, Dict

from checkout.exceptions import ValidationError
from checkout.models import Cart, Product
from checkout.repositories.base import FlatFile, SkippedRowCounter, CartSnapshotRepository

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def _serialize(value: Any) -> str:
    """Serialize to JSON keeping Decimal precision."""
    def default_handler(obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return {"__decimal__": str(obj)}
        raise TypeError(f"Object of type {type(obj)} is not JSON serializable")
    return json.dumps(value, default=default_handler, indent=2, sort_keys=True)


def _deserialize(value: str) -> Any:
    """Deserialize JSON, reconstructing Decimals."""
    def object_hook(dct: Dict[str, Any]) -> Any:
        if "__decimal__" in dct:
            return Decimal(dct["__decimal__"])
        return dct
    return json.loads(value, object_hook=object_hook)


class JsonCartSnapshotRepository(SkippedRowCounter, CartSnapshotRepository):

    def __init__(self, path):
        self.file = FlatFile(path)

    def load(self) -> Dict[str, Cart]:
        """
        Load every cart. A missing or unreadable document yields no carts;
        a malformed line item is skipped without dropping the rest of its cart.
        """
        self._reset_skipped()
        text = self.file.read_text()
        if text is None or not text.strip():
            return {}

        try:
            document = _deserialize(text)
            entries = document['carts']
            if not isinstance(entries, dict):
                raise TypeError('"carts" must be an object')
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"[CARTS] Unreadable cart snapshot {self.file.path.name}: {e}")
            return {}

        carts = {}
        for username, lines in entries.items():
            if lines is None:
                lines = []
            if not isinstance(lines, list):
                self._skip(f"{self.file.path.name}[{username}]", 0, 'cart is not a list')
                continue
            cart = Cart()
            for index, line in enumerate(lines):
                try:
                    product_data = line['product']
                    product = Product(
                        int(product_data['id']),
                        product_data['name'],
                        product_data['unit_price'],
                    )
                    cart.add_item(product, line['quantity'])
                except (KeyError, TypeError, ValueError, ValidationError) as e:
                    self._skip(f"{self.file.path.name}[{username}]", index, e)
            carts[username] = cart

        logger.info(f"[CARTS] Loaded {len(carts)} carts ({self.skipped_rows} lines skipped)")
        return carts

    def save(self, carts: Dict[str, Cart]) -> None:
        document = {
            'version': SNAPSHOT_VERSION,
            'carts': {
                username: [
                    {
                        'product': {
                            'id': line.product.id,
                            'name': line.product.name,
                            'unit_price': line.product.unit_price,
                        },
                        'quantity': line.quantity,
                    }
                    for line in cart.items()
                ]
                for username, cart in carts.items()
            },
        }
        self.file.write_text(_serialize(document))
