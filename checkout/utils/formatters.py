"""
Formatting helpers for the console shell and the persisted files.
"""
from decimal import Decimal, InvalidOperation
from datetime import datetime
from typing import Union, Optional

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'


def money(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Format an amount as dollars with exactly 2 decimals.

    Examples:
        money(1000) -> "$1,000.00"
        money(Decimal('43.2')) -> "$43.20"
        money(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value)).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    sign = "-" if num < 0 else ""
    return f"{sign}${abs(num):,.2f}"


def plain_amount(value: Decimal) -> str:
    """Format an amount for CSV columns: no symbol, no grouping, 2 decimals."""
    return f"{Decimal(value):.2f}"


def format_percent(value: Union[int, Decimal]) -> str:
    """
    Render a percent without trailing zeros.

    Examples:
        format_percent(Decimal('20')) -> "20"
        format_percent(Decimal('12.50')) -> "12.5"
    """
    text = f"{Decimal(value):f}"
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


def timestamp(value: Optional[datetime] = None) -> str:
    """Second-precision timestamp as written to the purchase history."""
    return (value or datetime.now()).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Inverse of ``timestamp``. Raises ValueError on bad input."""
    return datetime.strptime(value.strip(), TIMESTAMP_FORMAT)
