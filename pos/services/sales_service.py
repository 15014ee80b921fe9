"""
Sales service with transactional logic.
Records a checkout and reserves its stock in one database transaction.
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence

from sqlalchemy import update, desc
from sqlalchemy.exc import SQLAlchemyError

from pos.domain import CartItem, Transaction as TransactionRecord
from pos.exceptions import (
    BusinessLogicError, NotFoundError, InsufficientStockError, RemoteStoreError
)
from pos.models import Product, Transaction
from pos.services.realtime_service import notify_change

logger = logging.getLogger(__name__)


def record_sale(
    session,
    items: Sequence[CartItem],
    total: int,
    tendered_amount: int,
    change: int,
    operator_id: Optional[int] = None
) -> TransactionRecord:
    """
    Insert the transaction and decrement stock for every purchased product.

    Each decrement is a conditional UPDATE that only matches while enough
    stock is left, so two tills selling the last unit cannot both succeed.
    Any unknown product or shortfall rolls the whole sale back.

    Raises:
        BusinessLogicError: empty item list or negative change
        NotFoundError: a product no longer exists
        InsufficientStockError: stock would go negative
        RemoteStoreError: the database failed
    """
    if not items:
        raise BusinessLogicError('Keranjang kosong.', payload={'code': 'cart_empty'})
    if change < 0:
        raise BusinessLogicError('Kembalian tidak boleh negatif')

    quantities = _quantities_by_product(items)

    try:
        sale = Transaction(
            items=[_snapshot(item) for item in items],
            total=int(total),
            tendered_amount=int(tendered_amount),
            change=int(change),
            operator_id=operator_id
        )
        session.add(sale)
        session.flush()

        for product_id, qty in quantities.items():
            _reserve_stock(session, product_id, qty, _name_for(items, product_id))

        session.commit()
        record = TransactionRecord.from_model(sale)

    except (BusinessLogicError, NotFoundError, InsufficientStockError):
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"[CHECKOUT] ✗ Failed to record sale: {e}")
        raise RemoteStoreError('Gagal memproses transaksi')

    logger.info(f"[CHECKOUT] ✓ Sale {record.id} recorded: total={record.total} items={record.items_sold}")
    notify_change('transactions', 'products')
    return record


def list_transactions(session) -> List[TransactionRecord]:
    """All transactions, newest first."""
    rows = session.query(Transaction).order_by(desc(Transaction.timestamp)).all()
    return [TransactionRecord.from_model(row) for row in rows]


def get_transaction(session, transaction_id: str) -> TransactionRecord:
    row = session.query(Transaction).filter(Transaction.id == transaction_id).first()
    if not row:
        raise NotFoundError('Transaksi tidak ditemukan')
    return TransactionRecord.from_model(row)


# =====================================================
# PRIVATE HELPERS
# =====================================================

def _quantities_by_product(items: Sequence[CartItem]) -> Dict[str, int]:
    """Total quantity per product id, in cart order."""
    quantities: Dict[str, int] = OrderedDict()
    for item in items:
        if item.quantity < 1:
            raise BusinessLogicError(f'Jumlah untuk "{item.name}" harus lebih dari 0')
        quantities[item.id] = quantities.get(item.id, 0) + item.quantity
    return quantities


def _reserve_stock(session, product_id: str, qty: int, product_name: str) -> None:
    """Conditional decrement; raise when the row is missing or too low."""
    result = session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= qty)
        .values(stock=Product.stock - qty)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        return

    available = session.query(Product.stock).filter(Product.id == product_id).scalar()
    if available is None:
        raise NotFoundError(f'Produk "{product_name}" tidak ditemukan', payload={'product_id': product_id})
    raise InsufficientStockError(
        product_name, required=qty, available=available,
        message=f'Stok "{product_name}" tidak mencukupi. Tersedia: {available}, diminta: {qty}'
    )


def _name_for(items: Sequence[CartItem], product_id: str) -> str:
    for item in items:
        if item.id == product_id:
            return item.name
    return product_id


def _snapshot(item: CartItem) -> dict:
    """Cart line as stored in the transaction's items column."""
    return {
        'id': item.id,
        'name': item.name,
        'price': item.price,
        'purchase_price': item.purchase_price,
        'quantity': item.quantity,
        'image_url': item.image_url,
        'category_id': item.category_id,
    }
