"""
Unit tests for the till state store.
"""

import threading

import pytest

from pos.database import db_session
from pos.domain import Product as ProductRecord
from pos.exceptions import EmptyCartError, InsufficientFundsError, InsufficientStockError
from pos.models import Product, Transaction
from pos.state.store import PosStore


@pytest.fixture
def till(product, second_product, store):
    """Mounted store that has seen both test products."""
    store.fetch_data()
    store.drain_notifications()
    return store


def messages(store):
    return [(n.level, n.message) for n in store.drain_notifications()]


class TestMount:

    def test_mount_loads_catalog_and_subscribes(self, app, product, session, operator):
        feed = app.extensions['realtime']
        before = feed.subscriber_count()
        store = PosStore(session, feed=feed, operator_id=operator.id)
        assert store.state.loading is True

        store.mount()
        try:
            assert store.mounted
            assert store.state.loading is False
            assert [p.id for p in store.state.products] == [product.id]
            assert feed.subscriber_count() == before + 4
        finally:
            store.unmount()
        assert feed.subscriber_count() == before

    def test_default_settings_without_saved_row(self, till):
        assert till.state.settings.name == 'Dyad POS'
        assert till.state.settings.receipt_notes == 'Terima kasih atas pembelian Anda!'


class TestCart:

    def test_add_merges_existing_line(self, till, product):
        assert till.add_product_to_cart(product.id)
        assert till.add_product_to_cart(product.id)

        assert len(till.state.cart) == 1
        assert till.state.cart_item(product.id).quantity == 2
        assert messages(till) == [('success', 'Item ditambahkan ke keranjang.')] * 2

    def test_add_beyond_stock_is_rejected(self, till, product):
        assert till.add_product_to_cart(product.id, quantity=10)
        till.drain_notifications()

        assert till.add_product_to_cart(product.id) is False
        assert till.state.cart_item(product.id).quantity == 10
        assert messages(till) == [
            ('error', 'Tidak dapat menambahkan lebih dari 10 Teh Botol ke keranjang.')
        ]

    def test_unknown_product(self, till):
        assert till.add_product_to_cart('does-not-exist') is False
        assert till.state.cart == ()
        level, message = messages(till)[0]
        assert level == 'warning'
        assert 'does-not-exist' in message

    def test_zero_quantity_rejected(self, till, product):
        assert till.add_product_to_cart(product.id, quantity=0) is False
        assert till.state.cart == ()

    def test_update_quantity_below_one_removes_line(self, till, product):
        till.add_product_to_cart(product.id, quantity=3)

        assert till.update_cart_item_quantity(product.id, 5)
        assert till.state.cart_item(product.id).quantity == 5

        till.update_cart_item_quantity(product.id, 0)
        assert till.state.cart == ()

    def test_remove_and_clear(self, till, product, second_product):
        till.add_product_to_cart(product.id)
        till.add_product_to_cart(second_product.id)

        assert till.remove_product_from_cart(product.id)
        assert [item.id for item in till.state.cart] == [second_product.id]

        till.clear_cart()
        assert till.state.cart == ()

    def test_every_change_bumps_revision(self, till, product):
        revision = till.revision
        till.add_product_to_cart(product.id)
        assert till.revision == revision + 1
        till.set_tax_included(True)
        assert till.revision == revision + 2

    def test_totals(self, till, product):
        assert till.cart_totals().total == 0

        till.add_product_to_cart(product.id, quantity=2)
        assert till.cart_totals().total == 7770

        till.set_tax_included(True)
        assert till.cart_totals().total == 7000


class TestCheckout:

    def test_checkout_reduces_stock_and_clears_cart(self, till, product, session):
        till.add_product_to_cart(product.id, quantity=2)
        till.drain_notifications()

        transaction = till.checkout(8000)

        assert transaction.total == 7770
        assert transaction.tendered_amount == 8000
        assert transaction.change == 230
        assert till.state.cart == ()
        assert till.state.transactions[0].id == transaction.id
        assert till.state.product(product.id).stock == 8
        assert session.get(Product, '8991001').stock == 8
        assert messages(till) == [('success', 'Checkout berhasil! Total: Rp7.770')]

    def test_checkout_tax_included(self, till, product):
        till.set_tax_included(True)
        till.add_product_to_cart(product.id, quantity=2)

        transaction = till.checkout(7000)

        assert transaction.total == 7000
        assert transaction.change == 0

    def test_empty_cart(self, till):
        with pytest.raises(EmptyCartError):
            till.checkout(10000)
        assert messages(till) == [('error', 'Keranjang kosong.')]

    def test_insufficient_funds_changes_nothing(self, till, product, session):
        till.add_product_to_cart(product.id, quantity=2)
        till.drain_notifications()
        revision = till.revision

        with pytest.raises(InsufficientFundsError) as exc_info:
            till.checkout(7000)

        assert exc_info.value.shortfall == 770
        assert till.revision == revision
        assert till.state.cart_item(product.id).quantity == 2
        assert session.query(Transaction).count() == 0
        assert session.get(Product, '8991001').stock == 10
        assert messages(till) == [
            ('error', 'Uang yang diterima (Rp7.000) kurang dari total pembayaran (Rp7.770).')
        ]

    def test_stock_sold_elsewhere_rolls_back(self, till, second_product, session):
        till.add_product_to_cart(second_product.id, quantity=3)
        till.drain_notifications()
        # Another till sells two units without this store noticing
        session.query(Product).filter_by(id='8991002').update({'stock': 1})
        session.commit()

        with pytest.raises(InsufficientStockError):
            till.checkout(100000)

        assert session.query(Transaction).count() == 0
        assert session.get(Product, '8991002').stock == 1
        assert till.state.cart_item('8991002').quantity == 3
        level, message = messages(till)[0]
        assert level == 'error'
        assert 'Roti Tawar' in message


class TestCatalog:

    def test_create_read_delete_product(self, till):
        assert till.create_product('P-100', 'Kopi Susu', 5000, 3000, 20)
        created = till.state.product('P-100')
        assert created.price == 5000
        assert created.category_id is None
        assert messages(till)[-1][0] == 'success'

        assert till.delete_product('P-100')
        assert till.state.product('P-100') is None
        assert messages(till)[-1] == ('warning', 'Produk Kopi Susu dihapus.')

    def test_duplicate_product_id(self, till, product):
        assert till.create_product(product.id, 'Lain', 1000, 500, 1) is False
        level, message = messages(till)[-1]
        assert level == 'error'
        assert product.id in message

    def test_invalid_product_reports_error(self, till):
        assert till.create_product('P-200', 'Gratis', 0, 0, 1) is False
        assert till.state.product('P-200') is None
        assert messages(till)[-1][0] == 'error'

    def test_update_product(self, till, product):
        current = till.state.product(product.id)
        updated = ProductRecord(
            id=current.id, name='Teh Botol Besar', price=5000,
            purchase_price=3500, stock=12, category_id=current.category_id
        )

        assert till.update_product(updated)
        assert till.state.product(product.id).name == 'Teh Botol Besar'
        assert till.state.product(product.id).stock == 12

    def test_deleted_category_falls_back_to_no_category(self, till, product, category):
        category_id = category.id
        current = till.state.product(product.id)
        assert till.category_name_for(current) == 'Minuman'

        assert till.delete_category(category_id)

        assert till.state.categories == ()
        assert till.state.product(product.id).category_id == category_id
        assert till.category_name_for(till.state.product(product.id)) == 'Tanpa Kategori'

    def test_category_create_and_rename(self, till):
        assert till.create_category('Makanan')
        category = next(c for c in till.state.categories if c.name == 'Makanan')
        assert category.name == 'Makanan'

        assert till.update_category(category.id, 'Makanan Ringan')
        assert 'Makanan Ringan' in [c.name for c in till.state.categories]

    def test_product_listing_flags_low_stock(self, till, product, second_product):
        listing = {row['id']: row for row in till.product_listing()}

        assert listing[product.id]['low_stock'] is False
        assert listing[product.id]['category_name'] == 'Minuman'
        assert listing[second_product.id]['low_stock'] is True
        assert listing[second_product.id]['category_name'] == 'Tanpa Kategori'

    def test_product_listing_by_category(self, till, product, category):
        rows = till.product_listing(category.id)
        assert [row['id'] for row in rows] == [product.id]


class TestStoreIdentity:

    def test_save_and_merge_with_defaults(self, till):
        assert till.update_store_identity('Toko Maju', None, 'Jl. Merdeka 1', '0812', None)

        settings = till.state.settings
        assert settings.name == 'Toko Maju'
        assert settings.address == 'Jl. Merdeka 1'
        assert settings.receipt_notes == 'Terima kasih atas pembelian Anda!'

    def test_requires_operator(self, session):
        store = PosStore(session)
        assert store.update_store_identity('Toko', None, None, None, None) is False
        assert messages(store) == [('error', 'Silakan masuk terlebih dahulu.')]

    def test_name_required(self, till):
        assert till.update_store_identity('  ', None, None, None, None) is False
        assert till.state.settings.name == 'Dyad POS'


class TestDetachedStore:

    def test_unmounted_store_refreshes_itself(self, product, session, operator):
        store = PosStore(session, operator_id=operator.id)
        store.fetch_data()

        assert store.create_product('P-300', 'Air Mineral', 3000, 2000, 24)
        assert store.state.product('P-300') is not None


class TestConcurrentCheckout:

    def test_two_tills_checking_out_together_both_finish(self, app, session, operator, product, second_product):
        feed = app.extensions['realtime']
        arrived = threading.Event()
        both_committed = threading.Barrier(2, timeout=5)

        def hold_until_both_committed(collection):
            arrived.set()
            both_committed.wait()

        # Subscribed first so both sales sit in dispatch at the same time
        gate = feed.subscribe('transactions', hold_until_both_committed)
        tills = [PosStore(session, feed=feed, operator_id=operator.id) for _ in range(2)]
        errors = []

        def ring_up(till):
            try:
                till.checkout(20000)
            except Exception as e:
                errors.append(e)
            finally:
                db_session.remove()

        try:
            for till, product_id in zip(tills, ('8991001', '8991002')):
                till.mount()
                assert till.add_product_to_cart(product_id)
            session.commit()

            first = threading.Thread(target=ring_up, args=(tills[0],), daemon=True)
            second = threading.Thread(target=ring_up, args=(tills[1],), daemon=True)
            first.start()
            assert arrived.wait(5)
            second.start()
            first.join(10)
            second.join(10)

            assert not first.is_alive()
            assert not second.is_alive()
            assert errors == []
        finally:
            gate.unsubscribe()
            for till in tills:
                till.unmount()

        assert session.query(Transaction).count() == 2
        assert all(till.state.cart == () for till in tills)
