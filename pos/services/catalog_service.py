"""Catalog service - products and categories."""

import logging
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

from sqlalchemy import asc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from pos.domain import Category as CategoryRecord, Product as ProductRecord
from pos.exceptions import BusinessLogicError, NotFoundError, DuplicateProductError, RemoteStoreError
from pos.models import Category, Product
from pos.services.realtime_service import notify_change
from pos.utils.formatters import round_half_away
from pos.utils.number_format import parse_id_number, parse_whole_number

logger = logging.getLogger(__name__)

MAX_PRODUCT_ID_LENGTH = 64
MAX_PRODUCT_NAME_LENGTH = 200
MAX_CATEGORY_NAME_LENGTH = 120


# =====================================================
# VALIDATION
# =====================================================

def _clean_price(value, field: str, allow_zero: bool) -> int:
    try:
        amount = round_half_away(parse_id_number(value))
    except ValueError:
        raise BusinessLogicError(f'{field} tidak valid')
    if amount < 0:
        raise BusinessLogicError(f'{field} tidak boleh negatif')
    if amount == 0 and not allow_zero:
        raise BusinessLogicError(f'{field} harus lebih dari 0')
    return amount


def _clean_stock(value) -> int:
    try:
        stock = parse_whole_number(value, 'Stok')
    except ValueError as e:
        raise BusinessLogicError(str(e))
    if stock < 0:
        raise BusinessLogicError('Stok tidak boleh negatif')
    return stock


def _clean_image_url(value: Optional[str]) -> Optional[str]:
    url = (value or '').strip()
    if not url:
        return None
    parsed = urlparse(url)
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise BusinessLogicError('URL gambar harus diawali http:// atau https://')
    return url


def _clean_name(value: Optional[str], max_length: int, label: str) -> str:
    name = (value or '').strip()
    if not name:
        raise BusinessLogicError(f'{label} wajib diisi.')
    if len(name) > max_length:
        raise BusinessLogicError(f'{label} maksimal {max_length} karakter.')
    return name


def validate_product_fields(
    name,
    price,
    purchase_price,
    stock,
    category_id=None,
    image_url=None
) -> Dict:
    """
    Normalize form/JSON values for a product.

    Prices are rounded to whole Rupiah. Raises BusinessLogicError on the
    first invalid field.
    """
    return {
        'name': _clean_name(name, MAX_PRODUCT_NAME_LENGTH, 'Nama produk'),
        'price': _clean_price(price, 'Harga jual', allow_zero=False),
        'purchase_price': _clean_price(purchase_price if purchase_price not in (None, '') else 0,
                                       'Harga beli', allow_zero=True),
        'stock': _clean_stock(stock),
        'category_id': (category_id or None),
        'image_url': _clean_image_url(image_url),
    }


def _commit(session, collection: str, action: str) -> None:
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"[CATALOG] ✗ {action} failed: {e}")
        raise RemoteStoreError()
    notify_change(collection)


# =====================================================
# PRODUCTS
# =====================================================

def list_products(session) -> List[ProductRecord]:
    rows = session.query(Product).order_by(asc(Product.name)).all()
    return [ProductRecord.from_model(row) for row in rows]


def get_product(session, product_id: str) -> ProductRecord:
    row = session.query(Product).filter(Product.id == product_id).first()
    if not row:
        raise NotFoundError(f'Produk "{product_id}" tidak ditemukan')
    return ProductRecord.from_model(row)


def create_product(
    session,
    product_id: str,
    name,
    price,
    purchase_price,
    stock,
    category_id: Optional[str] = None,
    image_url: Optional[str] = None
) -> ProductRecord:
    """
    Create a product under a caller-chosen id (the scan code).

    Raises:
        BusinessLogicError: blank id or invalid field
        DuplicateProductError: id already in use
    """
    product_id = (product_id or '').strip()
    if not product_id:
        raise BusinessLogicError('ID produk wajib diisi.')
    if len(product_id) > MAX_PRODUCT_ID_LENGTH:
        raise BusinessLogicError(f'ID produk maksimal {MAX_PRODUCT_ID_LENGTH} karakter.')

    fields = validate_product_fields(name, price, purchase_price, stock, category_id, image_url)

    if session.query(Product.id).filter(Product.id == product_id).first():
        raise DuplicateProductError(product_id)

    product = Product(id=product_id, **fields)
    session.add(product)
    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        raise DuplicateProductError(product_id)

    _commit(session, 'products', f'Create product {product_id}')
    logger.info(f"[CATALOG] Product {product_id} created")
    return ProductRecord.from_model(product)


def update_product(session, product_id: str, **changes) -> ProductRecord:
    """
    Update a product in place. The id itself cannot change.

    Missing keys keep their current value.
    """
    row = session.query(Product).filter(Product.id == product_id).first()
    if not row:
        raise NotFoundError(f'Produk "{product_id}" tidak ditemukan')
    if 'id' in changes and changes['id'] != product_id:
        raise BusinessLogicError('ID produk tidak dapat diubah.')

    current = ProductRecord.from_model(row)
    fields = validate_product_fields(
        changes.get('name', current.name),
        changes.get('price', current.price),
        changes.get('purchase_price', current.purchase_price),
        changes.get('stock', current.stock),
        changes.get('category_id', current.category_id),
        changes.get('image_url', current.image_url),
    )
    for key, value in fields.items():
        setattr(row, key, value)

    _commit(session, 'products', f'Update product {product_id}')
    logger.info(f"[CATALOG] Product {product_id} updated")
    return ProductRecord.from_model(row)


def delete_product(session, product_id: str) -> ProductRecord:
    row = session.query(Product).filter(Product.id == product_id).first()
    if not row:
        raise NotFoundError(f'Produk "{product_id}" tidak ditemukan')
    record = ProductRecord.from_model(row)
    session.delete(row)
    _commit(session, 'products', f'Delete product {product_id}')
    logger.info(f"[CATALOG] Product {product_id} deleted")
    return record


def products_in_category(products: Iterable[ProductRecord], category_id: Optional[str]) -> List[ProductRecord]:
    """Cashier grid filter; None means all categories."""
    if not category_id:
        return list(products)
    return [p for p in products if p.category_id == category_id]


# =====================================================
# CATEGORIES
# =====================================================

def list_categories(session) -> List[CategoryRecord]:
    rows = session.query(Category).order_by(asc(Category.name)).all()
    return [CategoryRecord.from_model(row) for row in rows]


def create_category(session, name) -> CategoryRecord:
    category = Category(name=_clean_name(name, MAX_CATEGORY_NAME_LENGTH, 'Nama kategori'))
    session.add(category)
    _commit(session, 'categories', 'Create category')
    logger.info(f"[CATALOG] Category {category.id} created")
    return CategoryRecord.from_model(category)


def update_category(session, category_id: str, name) -> CategoryRecord:
    category = session.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError('Kategori tidak ditemukan')
    category.name = _clean_name(name, MAX_CATEGORY_NAME_LENGTH, 'Nama kategori')
    _commit(session, 'categories', f'Update category {category_id}')
    return CategoryRecord.from_model(category)


def delete_category(session, category_id: str) -> CategoryRecord:
    """Delete a category; products keep their now dangling category id."""
    category = session.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError('Kategori tidak ditemukan')
    record = CategoryRecord.from_model(category)
    session.delete(category)
    _commit(session, 'categories', f'Delete category {category_id}')
    logger.info(f"[CATALOG] Category {category_id} deleted")
    return record


def category_name_for(
    product: ProductRecord,
    categories: Iterable[CategoryRecord],
    no_category_label: str
) -> str:
    """Name of the product's category, or the label when none matches its id."""
    if product.category_id:
        for category in categories:
            if category.id == product.category_id:
                return category.name
    return no_category_label
