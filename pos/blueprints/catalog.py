"""Catalog blueprint for products management."""
import logging

from flask import Blueprint, request

from pos.domain import Product
from pos.exceptions import BusinessLogicError, NotFoundError
from pos.middleware import require_login
from pos.services.catalog_service import validate_product_fields
from pos.state import get_store
from pos.utils.http import request_data, till_response

logger = logging.getLogger(__name__)

catalog_bp = Blueprint('catalog', __name__, url_prefix='/products')


@catalog_bp.route('/')
@require_login
def list_products():
    """Stock table; ?category_id= narrows it to one category."""
    store = get_store()
    listing = store.product_listing(request.args.get('category_id') or None)
    return till_response({'products': listing, 'count': len(listing)}, store)


@catalog_bp.route('/<product_id>')
@require_login
def get_product(product_id: str):
    store = get_store()
    product = store.state.product(product_id)
    if product is None:
        raise NotFoundError(f'Produk "{product_id}" tidak ditemukan')
    row = product.to_dict()
    row['category_name'] = store.category_name_for(product)
    return till_response({'product': row}, store)


@catalog_bp.route('/', methods=['POST'])
@require_login
def create_product():
    store = get_store()
    data = request_data()
    product_id = str(data.get('id') or '').strip()
    created = store.create_product(
        product_id,
        data.get('name', ''),
        data.get('price'),
        data.get('purchase_price'),
        data.get('stock', 0),
        category_id=data.get('category_id') or None,
        image_url=data.get('image_url') or None,
    )
    if not created:
        status = 409 if product_id and store.state.product(product_id) is not None else 400
        return till_response(None, store, status)
    product = store.state.product(product_id)
    return till_response({'product': product.to_dict() if product else None}, store, 201)


@catalog_bp.route('/<product_id>', methods=['PUT', 'PATCH'])
@require_login
def update_product(product_id: str):
    store = get_store()
    current = store.state.product(product_id)
    if current is None:
        raise NotFoundError(f'Produk "{product_id}" tidak ditemukan')

    data = request_data()
    if 'id' in data and str(data['id']).strip() != product_id:
        raise BusinessLogicError('ID produk tidak dapat diubah.')

    fields = validate_product_fields(
        data.get('name', current.name),
        data.get('price', current.price),
        data.get('purchase_price', current.purchase_price),
        data.get('stock', current.stock),
        data.get('category_id', current.category_id),
        data.get('image_url', current.image_url),
    )
    if not store.update_product(Product(id=product_id, **fields)):
        return till_response(None, store, 400)
    return till_response({'product': store.state.product(product_id).to_dict()}, store)


@catalog_bp.route('/<product_id>', methods=['DELETE'])
@require_login
def delete_product(product_id: str):
    store = get_store()
    if not store.delete_product(product_id):
        return till_response(None, store, 404 if store.state.product(product_id) is None else 400)
    return till_response(None, store)
