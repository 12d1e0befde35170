"""Append-only purchase history (user_purchase_history.csv)."""
import logging
from typing import List, Sequence

from checkout.models import PurchaseRecord
from checkout.repositories.base import (
    FlatFile, SkippedRowCounter, PurchaseHistoryRepository, sanitize_field
)
from checkout.utils.formatters import plain_amount, timestamp, parse_timestamp
from checkout.utils.number_format import parse_int, to_decimal

logger = logging.getLogger(__name__)

HISTORY_HEADER = (
    'user_id', 'username', 'date', 'product_id', 'product_name',
    'quantity', 'price', 'total_cart_value',
)


class CsvPurchaseHistoryRepository(SkippedRowCounter, PurchaseHistoryRepository):

    def __init__(self, path):
        self.file = FlatFile(path)

    @staticmethod
    def _render(record: PurchaseRecord) -> list:
        return [
            record.user_id,
            sanitize_field(record.username),
            timestamp(record.timestamp),
            record.product_id,
            sanitize_field(record.product_name),
            record.quantity,
            plain_amount(record.unit_price),
            plain_amount(record.cart_total),
        ]

    def append(self, records: Sequence[PurchaseRecord]) -> None:
        """Append every record in one write; the header goes first on a new file."""
        if not records:
            return
        self.file.append_rows([self._render(r) for r in records], header=HISTORY_HEADER)

    def load(self) -> List[PurchaseRecord]:
        self._reset_skipped()
        records = []
        for line_number, row in self.file.read_rows():
            if [field.strip() for field in row] == list(HISTORY_HEADER):
                continue
            try:
                if len(row) != len(HISTORY_HEADER):
                    raise ValueError(f'expected {len(HISTORY_HEADER)} columns, got {len(row)}')
                records.append(PurchaseRecord(
                    user_id=parse_int(row[0], minimum=1),
                    username=row[1].strip(),
                    timestamp=parse_timestamp(row[2]),
                    product_id=parse_int(row[3], minimum=1),
                    product_name=row[4].strip(),
                    quantity=parse_int(row[5], minimum=1),
                    unit_price=to_decimal(row[6]),
                    cart_total=to_decimal(row[7]),
                ))
            except ValueError as e:
                self._skip(self.file.path.name, line_number, e)
        logger.debug(f"[HISTORY] Loaded {len(records)} rows ({self.skipped_rows} skipped)")
        return records
