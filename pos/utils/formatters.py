"""
Formatting helpers for templates, receipts and notifications.
Numbers follow Indonesian conventions: dot for thousands, comma for decimals.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import date, datetime
from typing import Union, Optional

Number = Union[int, float, Decimal, str, None]

CURRENCY_PREFIX = 'Rp'


def _to_decimal(value: Number) -> Optional[Decimal]:
    """Coerce a raw value to Decimal, or None when it is not a number."""
    if value is None or value == "":
        return None
    try:
        if isinstance(value, float):
            return Decimal(repr(value))
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return None


def _group_thousands(digits: str) -> str:
    """Insert a dot every three digits from the right: '1234567' -> '1.234.567'."""
    reversed_digits = digits[::-1]
    groups = [reversed_digits[i:i + 3] for i in range(0, len(reversed_digits), 3)]
    return '.'.join(groups)[::-1]


def round_half_away(value: Union[int, float, Decimal]) -> int:
    """Round to the nearest whole unit, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def num_id(value: Number, decimals: Optional[int] = None) -> str:
    """
    Format a number in Indonesian style.

    Args:
        value: Number to format
        decimals: Fixed number of decimals (None = only significant ones)

    Returns:
        Formatted string, "-" for empty or invalid input

    Examples:
        num_id(1500) -> "1.500"
        num_id(1500.5) -> "1.500,5"
        num_id(1500.5, decimals=2) -> "1.500,50"
    """
    num = _to_decimal(value)
    if num is None:
        return "-"

    if decimals is not None:
        num = num.quantize(Decimal(10) ** -decimals, rounding=ROUND_HALF_UP)

    sign = '-' if num < 0 else ''
    text = f"{abs(num):f}"
    integer_part, _, decimal_part = text.partition('.')
    if decimals is None:
        decimal_part = decimal_part.rstrip('0')

    formatted = _group_thousands(integer_part)
    if decimal_part:
        return f"{sign}{formatted},{decimal_part}"
    return f"{sign}{formatted}"


def format_rupiah(value: Number) -> str:
    """
    Format an amount as Rupiah without decimals.

    Examples:
        format_rupiah(7770) -> "Rp7.770"
        format_rupiah(1234.5) -> "Rp1.235"
        format_rupiah(-230) -> "Rp-230"
    """
    num = _to_decimal(value)
    if num is None:
        return "-"
    whole = round_half_away(num)
    sign = '-' if whole < 0 else ''
    return f"{CURRENCY_PREFIX}{sign}{_group_thousands(str(abs(whole)))}"


def date_id(value: Union[date, datetime, None]) -> str:
    """
    Format a date as DD/MM/YYYY.

    Examples:
        date_id(date(2026, 1, 12)) -> "12/01/2026"
    """
    if value is None:
        return "-"
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        return "-"
    return value.strftime("%d/%m/%Y")


def datetime_id(value: Union[datetime, None]) -> str:
    """Format a datetime as DD/MM/YYYY HH:MM (receipt header)."""
    if not isinstance(value, datetime):
        return "-"
    return value.strftime("%d/%m/%Y %H:%M")
