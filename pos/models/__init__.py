"""Models package - exports all SQLAlchemy models."""
from pos.models.operator import Operator
from pos.models.category import Category
from pos.models.product import Product
from pos.models.transaction import Transaction
from pos.models.store_settings import StoreSettings

__all__ = [
    'Operator',
    'Category', 'Product',
    'Transaction',
    'StoreSettings',
]
