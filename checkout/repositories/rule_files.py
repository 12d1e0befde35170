"""
Flat-file offer and coupon stores.

offers.csv:   product_id,min_quantity,discount_percent,description
coupons.csv:  code,minimum_subtotal,discount_percent[,payment_method]

Both files are edited by staff and by hand, so unparseable rows are skipped on
load but preserved verbatim when the file is rewritten.
"""
import logging
from typing import List

from checkout.exceptions import ValidationError
from checkout.models import OfferRule, CouponRule
from checkout.repositories.base import (
    FlatFile, SkippedRowCounter, OfferRepository, CouponRepository, sanitize_field
)
from checkout.utils.formatters import format_percent, plain_amount
from checkout.utils.number_format import parse_int

logger = logging.getLogger(__name__)


class CsvOfferRepository(SkippedRowCounter, OfferRepository):
    """Offer rules stored in ``offers.csv``."""

    def __init__(self, path):
        self.file = FlatFile(path)

    def load(self) -> List[OfferRule]:
        self._reset_skipped()
        rules = []
        for line_number, row in self.file.read_rows():
            try:
                rules.append(self._parse(row))
            except (ValueError, ValidationError) as e:
                self._skip(self.file.path.name, line_number, e)
        logger.debug(f"[OFFERS] Loaded {len(rules)} rules ({self.skipped_rows} skipped)")
        return rules

    @staticmethod
    def _parse(row) -> OfferRule:
        if len(row) < 3:
            raise ValueError(f'expected at least 3 columns, got {len(row)}')
        return OfferRule(
            product_id=parse_int(row[0], minimum=1),
            min_quantity=parse_int(row[1], minimum=1),
            discount_percent=row[2].strip(),
            description=','.join(row[3:]).strip(),
        )

    @staticmethod
    def _render(rule: OfferRule) -> list:
        return [
            rule.product_id,
            rule.min_quantity,
            format_percent(rule.discount_percent),
            sanitize_field(rule.description),
        ]

    def append(self, rule: OfferRule) -> None:
        self.file.append_rows([self._render(rule)])

    def remove_for_product(self, product_id: int) -> int:
        kept, removed = [], 0
        for _, row in self.file.read_rows():
            try:
                matches = parse_int(row[0]) == product_id
            except ValueError:
                matches = False
            if matches:
                removed += 1
            else:
                kept.append(row)
        if removed:
            self.file.write_rows(kept)
        return removed


class CsvCouponRepository(SkippedRowCounter, CouponRepository):
    """Coupon rules stored in ``coupons.csv``, kept in file order."""

    def __init__(self, path):
        self.file = FlatFile(path)

    def load(self) -> List[CouponRule]:
        self._reset_skipped()
        rules = []
        for line_number, row in self.file.read_rows():
            try:
                rules.append(self._parse(row))
            except (ValueError, ValidationError) as e:
                self._skip(self.file.path.name, line_number, e)
        logger.debug(f"[COUPONS] Loaded {len(rules)} rules ({self.skipped_rows} skipped)")
        return rules

    @staticmethod
    def _parse(row) -> CouponRule:
        if len(row) < 3:
            raise ValueError(f'expected at least 3 columns, got {len(row)}')
        return CouponRule(
            code=row[0].strip(),
            minimum_subtotal=row[1].strip(),
            discount_percent=row[2].strip(),
            payment_method=row[3].strip() if len(row) >= 4 else None,
        )

    @staticmethod
    def _render(rule: CouponRule) -> list:
        row = [
            sanitize_field(rule.code),
            plain_amount(rule.minimum_subtotal),
            format_percent(rule.discount_percent),
        ]
        if rule.payment_method:
            row.append(sanitize_field(rule.payment_method))
        return row

    def append(self, rule: CouponRule) -> None:
        self.file.append_rows([self._render(rule)])

    def remove(self, code: str) -> int:
        target = (code or '').strip().casefold()
        kept, removed = [], 0
        for _, row in self.file.read_rows():
            if row[0].strip().casefold() == target:
                removed += 1
            else:
                kept.append(row)
        if removed:
            self.file.write_rows(kept)
        return removed
