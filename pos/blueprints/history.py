"""Order history blueprint - past transactions and their receipts."""
from flask import Blueprint, send_file

from pos.exceptions import NotFoundError
from pos.middleware import require_login
from pos.services.receipt_service import build_receipt, render_receipt_pdf
from pos.state import get_store
from pos.utils.formatters import datetime_id, format_rupiah
from pos.utils.http import till_response

history_bp = Blueprint('history', __name__, url_prefix='/history')


def _find_transaction(store, transaction_id: str):
    for transaction in store.state.transactions:
        if transaction.id == transaction_id:
            return transaction
    raise NotFoundError('Transaksi tidak ditemukan')


@history_bp.route('/')
@require_login
def list_transactions():
    """Transactions newest first, with items sold per order."""
    store = get_store()
    rows = [
        {
            'id': tx.id,
            'timestamp': tx.timestamp.isoformat() if tx.timestamp else None,
            'date': datetime_id(tx.timestamp),
            'items_sold': tx.items_sold,
            'total': tx.total,
            'total_formatted': format_rupiah(tx.total),
        }
        for tx in store.state.transactions
    ]
    return till_response({'transactions': rows, 'count': len(rows)}, store)


@history_bp.route('/<transaction_id>')
@require_login
def transaction_detail(transaction_id: str):
    store = get_store()
    transaction = _find_transaction(store, transaction_id)
    return till_response({
        'transaction': transaction.to_dict(),
        'receipt': build_receipt(transaction, store.state.settings, store.tax_rate),
    }, store)


@history_bp.route('/<transaction_id>/receipt.pdf')
@require_login
def receipt_pdf(transaction_id: str):
    store = get_store()
    transaction = _find_transaction(store, transaction_id)
    receipt = build_receipt(transaction, store.state.settings, store.tax_rate)
    pdf = render_receipt_pdf(receipt, transaction.timestamp, store.t)
    return send_file(
        pdf,
        mimetype='application/pdf',
        as_attachment=False,
        download_name=f'struk-{transaction.id[:8]}.pdf'
    )
