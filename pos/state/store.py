"""
Till state store.

One PosStore per signed-in till holds the cart and a local mirror of the
catalog, transaction history and store settings. Actions validate, write
through the services and report the outcome as notifications that the HTTP
layer drains into its response. The mirror is never merged: any change
notification re-reads all four collections.
"""
import logging
import threading
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from pos.domain import (
    CartItem, Category, CheckoutTotals, Notification, Product, StoreSettings, Transaction
)
from pos.exceptions import (
    DuplicateProductError, EmptyCartError, InsufficientFundsError, InsufficientStockError,
    NotFoundError, PosError
)
from pos.i18n import Translator
from pos.services import catalog_service, sales_service, settings_service
from pos.services.checkout_service import TAX_RATE, calculate_totals, settle_payment
from pos.services.realtime_service import COLLECTIONS
from pos.utils.formatters import format_rupiah, round_half_away

logger = logging.getLogger(__name__)

SUCCESS = 'success'
INFO = 'info'
WARNING = 'warning'
ERROR = 'error'


@dataclass(frozen=True)
class PosState:
    products: Tuple[Product, ...] = ()
    categories: Tuple[Category, ...] = ()
    cart: Tuple[CartItem, ...] = ()
    transactions: Tuple[Transaction, ...] = ()
    tax_included: bool = False
    settings: StoreSettings = field(default_factory=StoreSettings)
    loading: bool = True
    revision: int = 0

    def product(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def cart_item(self, product_id: str) -> Optional[CartItem]:
        for item in self.cart:
            if item.id == product_id:
                return item
        return None


class PosStore:
    """
    Explicit application state for one till.

    Usage:
        store = PosStore(db_session, feed, operator_id=1)
        store.mount()
        store.add_product_to_cart('8991234567890')
        transaction = store.checkout(50000)
    """

    def __init__(
        self,
        session,
        feed=None,
        operator_id: Optional[int] = None,
        translator: Optional[Callable[..., str]] = None,
        tax_rate=TAX_RATE,
        low_stock_threshold: int = 5,
        default_settings: Optional[StoreSettings] = None
    ):
        self.session = session
        self.feed = feed
        self.operator_id = operator_id
        self.t = translator or Translator()
        self.tax_rate = Decimal(str(tax_rate))
        self.low_stock_threshold = low_stock_threshold
        self._lock = threading.RLock()
        # One checkout at a time per till; never taken by feed callbacks
        self._checkout_lock = threading.Lock()
        self._state = PosState(settings=default_settings or StoreSettings())
        self._notifications: List[Notification] = []
        self._subscriptions = []

    # =====================================================
    # STATE
    # =====================================================

    @property
    def state(self) -> PosState:
        return self._state

    @property
    def revision(self) -> int:
        return self._state.revision

    @property
    def mounted(self) -> bool:
        return bool(self._subscriptions)

    def _set_state(self, **changes) -> PosState:
        """Single write path; every change bumps the revision."""
        with self._lock:
            self._state = replace(self._state, revision=self._state.revision + 1, **changes)
            return self._state

    def _notify(self, level: str, key: str, **replacements) -> Notification:
        notification = Notification(level, self.t(key, **replacements))
        with self._lock:
            self._notifications.append(notification)
        return notification

    def _notify_message(self, level: str, message: str) -> Notification:
        notification = Notification(level, message)
        with self._lock:
            self._notifications.append(notification)
        return notification

    def drain_notifications(self) -> List[Notification]:
        """Return and forget the notifications produced so far."""
        with self._lock:
            pending, self._notifications = self._notifications, []
        return pending

    # =====================================================
    # SYNCHRONIZATION
    # =====================================================

    def fetch_data(self) -> bool:
        """Re-read products, categories, transactions and settings."""
        try:
            products = tuple(catalog_service.list_products(self.session))
            categories = tuple(catalog_service.list_categories(self.session))
            transactions = tuple(sales_service.list_transactions(self.session))
            settings_row = settings_service.get_store_settings(self.session, self.operator_id)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception(f"Error fetching data: {e}")
            self._set_state(loading=False)
            return False

        with self._lock:
            self._set_state(
                products=products,
                categories=categories,
                transactions=transactions,
                settings=self._state.settings.merged_with(settings_row),
                loading=False,
            )
        return True

    def mount(self) -> None:
        """Initial fetch, then refetch on any change to the synced collections."""
        with self._lock:
            if self.mounted:
                return
            self.fetch_data()
            if self.feed is not None:
                self._subscriptions = [
                    self.feed.subscribe(collection, self._on_change) for collection in COLLECTIONS
                ]

    def unmount(self) -> None:
        with self._lock:
            for subscription in self._subscriptions:
                subscription.unsubscribe()
            self._subscriptions = []

    def _on_change(self, collection: str) -> None:
        logger.debug(f"[REALTIME] {collection} changed, refetching till state")
        self.fetch_data()

    def _refresh_if_detached(self) -> None:
        """Without a feed subscription nothing else refreshes the mirror."""
        if not self.mounted:
            self.fetch_data()

    # =====================================================
    # CART
    # =====================================================

    def add_product_to_cart(self, product_id: str, quantity: int = 1) -> bool:
        """
        Add units of a product, merging with an existing line.

        Stock is only checked here: the resulting quantity may not exceed the
        product's last known stock.
        """
        with self._lock:
            state = self._state
            product = state.product(product_id)
            if product is None:
                self._notify(WARNING, 'toastProductNotFound', productId=product_id)
                return False
            if quantity < 1:
                self._notify(WARNING, 'toastInvalidQuantity')
                return False

            existing = state.cart_item(product_id)
            new_quantity = (existing.quantity if existing else 0) + quantity
            if new_quantity > product.stock:
                self._notify(ERROR, 'toastStockLimit', stock=product.stock, productName=product.name)
                return False

            if existing:
                cart = tuple(item.with_quantity(new_quantity) if item.id == product_id else item
                             for item in state.cart)
            else:
                cart = state.cart + (CartItem.from_product(product, quantity),)
            self._set_state(cart=cart)

        self._notify(SUCCESS, 'toastItemAdded')
        return True

    def update_cart_item_quantity(self, product_id: str, quantity: int) -> bool:
        """Set a line's quantity as given; below 1 removes the line."""
        with self._lock:
            if self._state.cart_item(product_id) is None:
                self._notify(WARNING, 'toastProductNotFound', productId=product_id)
                return False
            if quantity < 1:
                return self.remove_product_from_cart(product_id)
            self._set_state(cart=tuple(
                item.with_quantity(quantity) if item.id == product_id else item
                for item in self._state.cart
            ))
        return True

    def remove_product_from_cart(self, product_id: str) -> bool:
        with self._lock:
            cart = tuple(item for item in self._state.cart if item.id != product_id)
            removed = len(cart) != len(self._state.cart)
            self._set_state(cart=cart)
        if removed:
            self._notify(INFO, 'toastItemRemoved')
        return removed

    def clear_cart(self) -> None:
        self._set_state(cart=())

    def set_tax_included(self, included: bool) -> None:
        self._set_state(tax_included=bool(included))

    def cart_totals(self, tendered=None) -> CheckoutTotals:
        """Totals for the open cart; all zeros while it is empty."""
        state = self._state
        if not state.cart:
            return CheckoutTotals(subtotal=0, tax=0, total=0, tax_included=state.tax_included)
        return calculate_totals(state.cart, state.tax_included, self.tax_rate, tendered)

    # =====================================================
    # CHECKOUT
    # =====================================================

    def checkout(self, tendered_amount, operator_id: Optional[int] = None) -> Transaction:
        """
        Record the sale, reserve its stock and clear the cart.

        The state lock is not held while the sale is written: committing
        publishes to the change feed, which refetches every mounted till on
        this thread, including tills that are checking out themselves.

        Raises:
            EmptyCartError: nothing to sell
            InsufficientFundsError: tender below the total, nothing changed
            NotFoundError, InsufficientStockError: a product vanished or ran
                out since it was added; the sale is rolled back
            RemoteStoreError: the database failed
        """
        with self._checkout_lock:
            with self._lock:
                state = self._state
                if not state.cart:
                    message = self._notify(ERROR, 'toastCartEmpty').message
                    raise EmptyCartError(message)

                cart = state.cart
                totals = calculate_totals(cart, state.tax_included, self.tax_rate)
                tendered = round_half_away(tendered_amount)
                try:
                    change = settle_payment(totals.total, tendered)
                except InsufficientFundsError as e:
                    message = self._notify(
                        ERROR, 'insufficientFunds',
                        tendered=format_rupiah(e.tendered), total=format_rupiah(e.total)
                    ).message
                    raise InsufficientFundsError(e.tendered, e.total, message=message)

            try:
                transaction = sales_service.record_sale(
                    self.session, cart, totals.total, tendered, change,
                    operator_id if operator_id is not None else self.operator_id
                )
            except (NotFoundError, InsufficientStockError) as e:
                self._notify_message(ERROR, e.message)
                self._refresh_if_detached()
                raise
            except PosError:
                self._notify(ERROR, 'toastCheckoutFailed')
                raise

            with self._lock:
                known = any(tx.id == transaction.id for tx in self._state.transactions)
                transactions = self._state.transactions if known else (transaction,) + self._state.transactions
                self._set_state(cart=(), transactions=transactions)
            self._refresh_if_detached()

        logger.info(f"[CHECKOUT] Till sale {transaction.id}: total={totals.total} change={change}")
        self._notify(SUCCESS, 'toastCheckoutSuccess', total=format_rupiah(totals.total))
        return transaction

    # =====================================================
    # CATALOG
    # =====================================================

    def _write(self, action, success: Tuple, failure_key: str):
        """Run a catalog/settings write and report it; False on any PosError."""
        try:
            result = action()
        except PosError as e:
            logger.warning(f"[CATALOG] {failure_key}: {e.message}")
            if e.status_code >= 500:
                self._notify(ERROR, failure_key)
            else:
                self._notify_message(ERROR, e.message)
            return False
        self._refresh_if_detached()
        level, key, replacements = success
        self._notify(level, key, **replacements)
        return result if result is not None else True

    def create_product(
        self,
        product_id: str,
        name: str,
        price,
        purchase_price,
        stock,
        category_id: Optional[str] = None,
        image_url: Optional[str] = None
    ) -> bool:
        product_id = (product_id or '').strip()
        if product_id and self._state.product(product_id) is not None:
            self._notify_message(ERROR, DuplicateProductError(product_id).message)
            return False
        return bool(self._write(
            lambda: catalog_service.create_product(
                self.session, product_id, name, price, purchase_price, stock, category_id, image_url
            ),
            (SUCCESS, 'toastProductCreated', {'productName': (name or '').strip()}),
            'toastProductCreateFailed'
        ))

    def update_product(self, product: Product) -> bool:
        return bool(self._write(
            lambda: catalog_service.update_product(
                self.session, product.id,
                name=product.name,
                price=product.price,
                purchase_price=product.purchase_price,
                stock=product.stock,
                category_id=product.category_id,
                image_url=product.image_url,
            ),
            (SUCCESS, 'toastProductUpdated', {'productName': product.name}),
            'toastProductUpdateFailed'
        ))

    def delete_product(self, product_id: str) -> bool:
        product = self._state.product(product_id)
        name = product.name if product else product_id
        return bool(self._write(
            lambda: catalog_service.delete_product(self.session, product_id),
            (WARNING, 'toastProductDeleted', {'productName': name}),
            'toastProductDeleteFailed'
        ))

    def create_category(self, name: str) -> bool:
        return bool(self._write(
            lambda: catalog_service.create_category(self.session, name),
            (SUCCESS, 'toastCategoryCreated', {'categoryName': (name or '').strip()}),
            'toastCategoryCreateFailed'
        ))

    def update_category(self, category_id: str, name: str) -> bool:
        return bool(self._write(
            lambda: catalog_service.update_category(self.session, category_id, name),
            (SUCCESS, 'toastCategoryUpdated', {}),
            'toastCategoryUpdateFailed'
        ))

    def delete_category(self, category_id: str) -> bool:
        return bool(self._write(
            lambda: catalog_service.delete_category(self.session, category_id),
            (SUCCESS, 'toastCategoryDeleted', {}),
            'toastCategoryDeleteFailed'
        ))

    def category_name_for(self, product: Product) -> str:
        return catalog_service.category_name_for(product, self._state.categories, self.t('noCategory'))

    def product_listing(self, category_id: Optional[str] = None) -> List[dict]:
        """Products for the grid/stock table with category name and low-stock flag."""
        state = self._state
        listing = []
        for product in catalog_service.products_in_category(state.products, category_id):
            row = product.to_dict()
            row['category_name'] = self.category_name_for(product)
            row['low_stock'] = product.is_low_stock(self.low_stock_threshold)
            listing.append(row)
        return listing

    # =====================================================
    # SETTINGS
    # =====================================================

    def update_store_identity(
        self,
        name: str,
        logo: Optional[str],
        address: Optional[str],
        phone: Optional[str],
        notes: Optional[str]
    ) -> bool:
        if self.operator_id is None:
            self._notify(ERROR, 'toastLoginRequired')
            return False
        return bool(self._write(
            lambda: settings_service.upsert_store_settings(
                self.session, self.operator_id, name, logo, address, phone, notes
            ),
            (SUCCESS, 'toastStoreUpdated', {}),
            'toastStoreUpdateFailed'
        ))

    # =====================================================
    # SERIALIZATION
    # =====================================================

    def to_dict(self, tendered=None) -> dict:
        state = self._state
        return {
            'revision': state.revision,
            'loading': state.loading,
            'tax_included': state.tax_included,
            'cart': [item.to_dict() for item in state.cart],
            'totals': self.cart_totals(tendered).to_dict(),
            'settings': state.settings.to_dict(),
        }
