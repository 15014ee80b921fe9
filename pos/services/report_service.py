"""Sales reports computed from recorded transactions."""

from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from pos.domain import Transaction

DAY_LABELS = {
    'id': ('Sen', 'Sel', 'Rab', 'Kam', 'Jum', 'Sab', 'Min'),
    'en': ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun'),
}


def sales_summary(transactions: Iterable[Transaction]) -> Dict[str, int]:
    """
    Headline figures for the reports page.

    Profit is (selling price - purchase price) x quantity over every sold line,
    using the prices captured in each transaction's snapshot.
    """
    transactions = list(transactions)
    return {
        'total_revenue': sum(tx.total for tx in transactions),
        'total_profit': sum(
            (item.price - item.purchase_price) * item.quantity
            for tx in transactions for item in tx.items
        ),
        'total_transactions': len(transactions),
        'total_items_sold': sum(tx.items_sold for tx in transactions),
    }


def weekly_sales(
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
    language: str = 'id'
) -> List[Dict]:
    """
    Revenue per day for the last seven days, oldest first.

    Days without sales are present with amount 0.
    """
    today = today or date.today()
    labels = DAY_LABELS.get(language, DAY_LABELS['id'])
    days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    amounts = {day: 0 for day in days}

    for tx in transactions:
        if tx.timestamp is None:
            continue
        day = tx.timestamp.date()
        if day in amounts:
            amounts[day] += tx.total

    return [
        {'day': labels[day.weekday()], 'date': day.isoformat(), 'amount': amounts[day]}
        for day in days
    ]
