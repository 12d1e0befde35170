"""Money rounding and number parsing utilities."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

CENTS = Decimal('0.01')
HUNDRED = Decimal('100')


def round_money(value: Union[Decimal, int, str]) -> Decimal:
    """
    Round a monetary amount to 2 decimals using round-half-up.

    Every money value is finalized through here so that totals never drift
    and match conventional currency rounding (0.005 -> 0.01).
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percent: Union[Decimal, int]) -> Decimal:
    """Return ``amount * percent / 100`` rounded to cents."""
    return round_money(amount * Decimal(str(percent)) / HUNDRED)


def to_decimal(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """
    Convert a user or file value to Decimal.

    Floats go through ``str`` first so 0.1 stays 0.1.

    Raises:
        ValueError: if the value is empty or not a number.
    """
    if value is None:
        raise ValueError('Invalid format: empty value')
    if isinstance(value, Decimal):
        result = value
    else:
        cleaned = str(value).strip()
        if not cleaned:
            raise ValueError('Invalid format: empty value')
        try:
            result = Decimal(cleaned)
        except (InvalidOperation, ValueError):
            raise ValueError(f'Invalid number: {value!r}')
    if not result.is_finite():
        raise ValueError(f'Invalid number: {value!r}')
    return result


def parse_money(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """
    Parse a non-negative amount and round it to cents.

    Raises:
        ValueError: if the value is invalid or negative.
    """
    amount = to_decimal(value)
    if amount < 0:
        raise ValueError('Value cannot be negative')
    return round_money(amount)


def parse_percent(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """
    Parse a discount percent in the closed range [0, 100].

    Raises:
        ValueError: if the value is invalid or out of range.
    """
    pct = to_decimal(value)
    if pct < 0 or pct > HUNDRED:
        raise ValueError(f'Percent out of range (0-100): {value}')
    return pct


def parse_int(value: Union[int, str, None], minimum: int = None) -> int:
    """
    Parse an integer, optionally enforcing a lower bound.

    Raises:
        ValueError: if the value is not an integer or is below ``minimum``.
    """
    if isinstance(value, bool):
        raise ValueError(f'Invalid integer: {value!r}')
    if isinstance(value, int):
        number = value
    else:
        try:
            number = int(str(value).strip())
        except (TypeError, ValueError):
            raise ValueError(f'Invalid integer: {value!r}')
    if minimum is not None and number < minimum:
        raise ValueError(f'Value must be >= {minimum}: {number}')
    return number
