"""Categories blueprint."""
from flask import Blueprint

from pos.middleware import require_login
from pos.state import get_store
from pos.utils.http import request_data, till_response

categories_bp = Blueprint('categories', __name__, url_prefix='/categories')


@categories_bp.route('/')
@require_login
def list_categories():
    """Categories with the number of products pointing at each."""
    store = get_store()
    counts = {}
    for product in store.state.products:
        counts[product.category_id] = counts.get(product.category_id, 0) + 1
    categories = [
        dict(category.to_dict(), product_count=counts.get(category.id, 0))
        for category in store.state.categories
    ]
    return till_response({'categories': categories}, store)


@categories_bp.route('/', methods=['POST'])
@require_login
def create_category():
    store = get_store()
    if not store.create_category(request_data().get('name', '')):
        return till_response(None, store, 400)
    return till_response({'categories': [c.to_dict() for c in store.state.categories]}, store, 201)


@categories_bp.route('/<category_id>', methods=['PUT', 'PATCH'])
@require_login
def rename_category(category_id: str):
    store = get_store()
    if not store.update_category(category_id, request_data().get('name', '')):
        return till_response(None, store, 400)
    return till_response({'categories': [c.to_dict() for c in store.state.categories]}, store)


@categories_bp.route('/<category_id>', methods=['DELETE'])
@require_login
def delete_category(category_id: str):
    """Products keep their category id and show up as uncategorized."""
    store = get_store()
    if not store.delete_category(category_id):
        return till_response(None, store, 404)
    return till_response({'categories': [c.to_dict() for c in store.state.categories]}, store)
