"""
Cashier blueprint - product grid, cart and checkout for the signed-in till.
"""
import logging

from flask import Blueprint, request, g

from pos.exceptions import PosError
from pos.middleware import require_login
from pos.blueprints.metrics import record_checkout
from pos.services.receipt_service import build_receipt
from pos.state import get_store
from pos.utils.formatters import format_rupiah
from pos.utils.http import request_data, till_response
from pos.utils.number_format import parse_rupiah, parse_whole_number

logger = logging.getLogger(__name__)

cashier_bp = Blueprint('cashier', __name__, url_prefix='/cashier')

TRUE_VALUES = {'1', 'true', 'on', 'yes'}


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


def _quantity(value, default=None) -> int:
    if value is None or value == '':
        if default is None:
            raise PosError('Jumlah wajib diisi.', 400)
        return default
    try:
        return parse_whole_number(value, 'Jumlah')
    except ValueError as e:
        raise PosError(str(e), 400)


def _tendered(value):
    """Tender as typed: numbers pass through, text keeps digits only."""
    if value is None or value == '':
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return parse_rupiah(value)


def _totals_payload(totals) -> dict:
    data = totals.to_dict()
    data['formatted'] = {
        'subtotal': format_rupiah(totals.subtotal),
        'tax': format_rupiah(totals.tax),
        'total': format_rupiah(totals.total),
        'change': format_rupiah(totals.change) if totals.change is not None else None,
    }
    return data


@cashier_bp.route('/')
@require_login
def index():
    """Cashier screen state: grid (optionally filtered), categories, cart, totals."""
    store = get_store()
    category_id = request.args.get('category_id') or None
    payload = store.to_dict()
    payload['totals'] = _totals_payload(store.cart_totals())
    payload['products'] = store.product_listing(category_id)
    payload['categories'] = [c.to_dict() for c in store.state.categories]
    return till_response(payload, store)


@cashier_bp.route('/cart/items', methods=['POST'])
@require_login
def add_item():
    store = get_store()
    data = request_data()
    product_id = str(data.get('product_id') or '').strip()
    quantity = _quantity(data.get('quantity'), default=1)

    if store.add_product_to_cart(product_id, quantity):
        return till_response({'cart': store.to_dict()['cart']}, store, 201)

    if store.state.product(product_id) is None:
        status = 404
    else:
        status = 400 if quantity < 1 else 409
    return till_response(None, store, status)


@cashier_bp.route('/cart/items/<product_id>', methods=['PATCH'])
@require_login
def update_item(product_id: str):
    store = get_store()
    quantity = _quantity(request_data().get('quantity'))
    if not store.update_cart_item_quantity(product_id, quantity):
        return till_response(None, store, 404)
    return till_response({'cart': store.to_dict()['cart']}, store)


@cashier_bp.route('/cart/items/<product_id>', methods=['DELETE'])
@require_login
def remove_item(product_id: str):
    store = get_store()
    store.remove_product_from_cart(product_id)
    return till_response({'cart': store.to_dict()['cart']}, store)


@cashier_bp.route('/cart', methods=['DELETE'])
@require_login
def clear_cart():
    store = get_store()
    store.clear_cart()
    return till_response({'cart': []}, store)


@cashier_bp.route('/tax-included', methods=['POST'])
@require_login
def set_tax_included():
    store = get_store()
    store.set_tax_included(_as_bool(request_data().get('tax_included', False)))
    return till_response({
        'tax_included': store.state.tax_included,
        'totals': _totals_payload(store.cart_totals()),
    }, store)


@cashier_bp.route('/totals')
@require_login
def totals():
    """Live totals for the payment panel, with change when a tender is given."""
    store = get_store()
    return till_response({'totals': _totals_payload(store.cart_totals(_tendered(request.args.get('tendered'))))}, store)


@cashier_bp.route('/checkout', methods=['POST'])
@require_login
def checkout():
    store = get_store()
    tendered = _tendered(request_data().get('tendered_amount'))
    if tendered is None:
        tendered = 0

    try:
        transaction = store.checkout(tendered)
    except PosError as e:
        record_checkout((e.payload or {}).get('code', 'failed'))
        logger.info(f"[CHECKOUT] Rejected on till {g.till_id}: {e.message}")
        body = e.to_dict()
        return till_response(body, store, e.status_code)

    record_checkout('success', transaction.total)
    receipt = build_receipt(transaction, store.state.settings, store.tax_rate)
    return till_response({
        'transaction': transaction.to_dict(),
        'receipt': receipt,
    }, store, 201)
