"""Checkout calculator - cart subtotal, tax, total and change."""

from decimal import Decimal
from typing import Iterable, Optional, Union

from pos.domain import CartItem, CheckoutTotals
from pos.exceptions import EmptyCartError, InsufficientFundsError
from pos.utils.formatters import round_half_away

TAX_RATE = Decimal('0.11')

Amount = Union[int, float, Decimal, str]


def calculate_subtotal(items: Iterable[CartItem]) -> int:
    """Sum of price x quantity over the cart lines (no rounding needed)."""
    return sum(item.price * item.quantity for item in items)


def calculate_totals(
    items: Iterable[CartItem],
    tax_included: bool,
    tax_rate: Amount = TAX_RATE,
    tendered: Optional[Amount] = None,
) -> CheckoutTotals:
    """
    Calculate the totals shown at the till.

    Listed prices already contain tax when ``tax_included`` is set, so the
    rate is not applied a second time. The total is rounded half away from
    zero only at this point; tax is whatever the rounding leaves between the
    subtotal and the total.

    Raises:
        EmptyCartError: if there are no lines.
    """
    items = list(items)
    if not items:
        raise EmptyCartError()

    subtotal = calculate_subtotal(items)
    if tax_included:
        total = round_half_away(subtotal)
    else:
        total = round_half_away(Decimal(subtotal) * (Decimal('1') + Decimal(str(tax_rate))))

    rounded_tendered = None
    change = None
    if tendered is not None:
        rounded_tendered = round_half_away(tendered)
        change = rounded_tendered - total

    return CheckoutTotals(
        subtotal=subtotal,
        tax=total - subtotal,
        total=total,
        tax_included=bool(tax_included),
        tendered=rounded_tendered,
        change=change,
    )


def settle_payment(total: int, tendered: Amount) -> int:
    """
    Return the change owed for a tender.

    Raises:
        InsufficientFundsError: if the rounded tender is below the total.
    """
    rounded_tendered = round_half_away(tendered)
    change = rounded_tendered - total
    if change < 0:
        raise InsufficientFundsError(tendered=rounded_tendered, total=total)
    return change
