"""
Unit tests for sales reports.
"""

from datetime import date, datetime

from pos.domain import CartItem, Transaction
from pos.services.report_service import sales_summary, weekly_sales


def make_transaction(tx_id, when, lines, total):
    items = tuple(
        CartItem(id=f'p{i}', name=f'Produk {i}', price=price, purchase_price=cost, stock=10, quantity=qty)
        for i, (price, cost, qty) in enumerate(lines)
    )
    return Transaction(id=tx_id, timestamp=when, items=items, total=total, tendered_amount=total, change=0)


class TestSalesSummary:

    def test_revenue_profit_and_counts(self):
        transactions = [
            make_transaction('a', datetime(2026, 1, 12, 9), [(3500, 2500, 2)], 7770),
            make_transaction('b', datetime(2026, 1, 12, 10), [(15000, 11000, 1), (3500, 2500, 1)], 20535),
        ]

        summary = sales_summary(transactions)

        assert summary == {
            'total_revenue': 28305,
            'total_profit': 2000 + 4000 + 1000,
            'total_transactions': 2,
            'total_items_sold': 4,
        }

    def test_empty(self):
        assert sales_summary([])['total_revenue'] == 0


class TestWeeklySales:

    def test_seven_days_oldest_first(self):
        today = date(2026, 1, 18)  # Sunday
        transactions = [
            make_transaction('a', datetime(2026, 1, 18, 9), [(1000, 0, 1)], 1110),
            make_transaction('b', datetime(2026, 1, 18, 15), [(1000, 0, 1)], 1110),
            make_transaction('c', datetime(2026, 1, 12, 8), [(1000, 0, 1)], 1000),
            make_transaction('d', datetime(2026, 1, 11, 8), [(5000, 0, 1)], 5000),
        ]

        week = weekly_sales(transactions, today=today)

        assert len(week) == 7
        assert week[0] == {'day': 'Sen', 'date': '2026-01-12', 'amount': 1000}
        assert week[-1] == {'day': 'Min', 'date': '2026-01-18', 'amount': 2220}
        assert sum(day['amount'] for day in week) == 3220

    def test_english_labels(self):
        week = weekly_sales([], today=date(2026, 1, 18), language='en')
        assert [day['day'] for day in week] == ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
        assert all(day['amount'] == 0 for day in week)
