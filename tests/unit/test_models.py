"""
Unit tests for SQLAlchemy models.
"""

import pytest

from pos.models import Operator, Category, Product, Transaction, StoreSettings


class TestOperatorModel:
    """Tests for Operator model."""

    def test_create_operator(self, session):
        operator = Operator(email='pemilik@toko.test', full_name='Pemilik')
        operator.set_password('securepassword')
        session.add(operator)
        session.commit()

        assert operator.id is not None
        assert operator.active is True
        assert operator.password_hash != 'securepassword'

    def test_password_check(self, operator):
        assert operator.check_password('password123') is True
        assert operator.check_password('wrong') is False

    def test_email_unique(self, session, operator):
        duplicate = Operator(email=operator.email)
        duplicate.set_password('another')
        session.add(duplicate)

        with pytest.raises(Exception):  # IntegrityError
            session.commit()
        session.rollback()


class TestProductModel:
    """Tests for Product model."""

    def test_create_product(self, session, category):
        product = Product(id='SKU-1', name='Kopi', price=5000, purchase_price=3000, stock=4,
                          category_id=category.id)
        session.add(product)
        session.commit()

        assert session.get(Product, 'SKU-1').category_id == category.id

    def test_category_id_may_dangle(self, session):
        product = Product(id='SKU-2', name='Gula', price=16000, purchase_price=14000, stock=1,
                          category_id='deleted-category')
        session.add(product)
        session.commit()

        assert session.get(Product, 'SKU-2').category_id == 'deleted-category'

    def test_negative_stock_rejected(self, session):
        session.add(Product(id='SKU-3', name='Minus', price=1000, purchase_price=0, stock=-1))

        with pytest.raises(Exception):  # IntegrityError
            session.commit()
        session.rollback()


class TestTransactionModel:

    def test_defaults(self, session):
        transaction = Transaction(
            items=[{'id': 'SKU-1', 'name': 'Kopi', 'price': 5000, 'quantity': 1}],
            total=5550, tendered_amount=10000, change=4450
        )
        session.add(transaction)
        session.commit()

        assert len(transaction.id) == 36
        assert transaction.timestamp is not None
        assert transaction.items[0]['name'] == 'Kopi'


class TestCategoryAndSettings:

    def test_category_gets_uuid(self, category):
        assert len(category.id) == 36

    def test_one_settings_row_per_operator(self, session, operator):
        session.add(StoreSettings(user_id=operator.id, store_name='Toko A'))
        session.commit()
        session.add(StoreSettings(user_id=operator.id, store_name='Toko B'))

        with pytest.raises(Exception):  # IntegrityError
            session.commit()
        session.rollback()
