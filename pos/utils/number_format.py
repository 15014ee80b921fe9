"""Number parsing utilities for Rupiah amounts typed at the till."""
import re
from decimal import Decimal, InvalidOperation

NON_DIGITS = re.compile(r"[^0-9]")
ID_NUMBER_PATTERN = re.compile(r"^-?(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d+)?$")


def parse_rupiah(value) -> int:
    """
    Read a tendered amount from the cashier input.

    Every non-digit is dropped, so "Rp8.000", "8.000" and "8000" all read
    as 8000. An empty value reads as 0.
    """
    if value is None:
        return 0
    digits = NON_DIGITS.sub('', str(value))
    return int(digits) if digits else 0


def parse_id_number(value) -> Decimal:
    """
    Parse a number in Indonesian format (e.g., 1.234,5) or plain format (1234.5).

    Rules:
    - Thousands separator: dot (.)
    - Decimal separator: comma (,)
    - Ints, floats and Decimals pass through unchanged

    Raises:
        ValueError: if the value is invalid or empty.
    """
    if isinstance(value, bool):
        raise ValueError('Format angka tidak valid')
    if isinstance(value, (int, Decimal)):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    if value is None:
        raise ValueError('Format angka tidak valid')

    cleaned = str(value).strip()
    if not cleaned:
        raise ValueError('Format angka tidak valid')

    if ID_NUMBER_PATTERN.match(cleaned):
        normalized = cleaned.replace('.', '').replace(',', '.')
    else:
        normalized = cleaned

    try:
        return Decimal(normalized)
    except (InvalidOperation, ValueError):
        raise ValueError('Format angka tidak valid')


def parse_whole_number(value, field='nilai') -> int:
    """
    Parse a stock count or quantity; decimals are rejected.

    Raises:
        ValueError: if the value is not a whole number.
    """
    number = parse_id_number(value)
    if number != number.to_integral_value():
        raise ValueError(f'{field} harus berupa bilangan bulat')
    return int(number)
