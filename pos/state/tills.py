"""
Registry of till stores, one per signed-in till.

The registry lives in app.extensions['tills']; request handlers reach the
store of the current till through get_store(). Tills are closed on sign-out,
when the same browser signs in again, and after sitting idle longer than the
session lifetime.
"""
import logging
import threading
import time
from datetime import timedelta
from typing import Callable, Dict, List, Optional

from flask import Flask, current_app

from pos.database import db_session
from pos.domain import StoreSettings
from pos.exceptions import LoginRequiredError
from pos.i18n import Translator
from pos.services.auth_service import SIGNED_OUT, AuthSession, get_identity
from pos.services.realtime_service import get_feed
from pos.state.store import PosStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_IDLE = 86400


def _seconds(value) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class TillRegistry:
    """Creates, hands out and drops PosStore instances keyed by till id."""

    def __init__(self, app: Optional[Flask] = None, clock: Callable[[], float] = time.monotonic):
        self._stores: Dict[str, PosStore] = {}
        self._last_seen: Dict[str, float] = {}
        self._lock = threading.Lock()
        self.clock = clock
        self.max_idle: float = DEFAULT_MAX_IDLE
        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        self.max_idle = _seconds(app.config.get('PERMANENT_SESSION_LIFETIME', DEFAULT_MAX_IDLE))
        app.extensions['tills'] = self
        identity = app.extensions.get('identity')
        if identity is not None:
            identity.on_auth_state_change(self._on_auth_state_change)

    def __len__(self) -> int:
        return len(self._stores)

    def get(self, till_id: str) -> Optional[PosStore]:
        return self._stores.get(till_id)

    def get_or_create(self, auth_session: AuthSession) -> PosStore:
        self.evict_idle()
        with self._lock:
            store = self._stores.get(auth_session.till_id)
            created = store is None
            if created:
                store = self._create_store(auth_session)
                self._stores[auth_session.till_id] = store
            self._last_seen[auth_session.till_id] = self.clock()
        if created:
            store.mount()
            logger.info(f"Till {auth_session.till_id} opened for operator {auth_session.user_id}")
        return store

    def drop(self, till_id: str) -> None:
        with self._lock:
            store = self._stores.pop(till_id, None)
            self._last_seen.pop(till_id, None)
        if store is not None:
            store.unmount()
            logger.info(f"Till {till_id} closed")

    def evict_idle(self, max_idle: Optional[float] = None) -> List[str]:
        """Close tills not used for longer than max_idle seconds; returns their ids."""
        limit = self.max_idle if max_idle is None else max_idle
        now = self.clock()
        with self._lock:
            stale = [till_id for till_id, seen in self._last_seen.items() if now - seen > limit]
        for till_id in stale:
            logger.info(f"Till {till_id} idle for more than {limit:.0f}s")
            self.drop(till_id)
        return stale

    def clear(self) -> None:
        """Close every till (shutdown and test isolation)."""
        for till_id in list(self._stores):
            self.drop(till_id)

    def _create_store(self, auth_session: AuthSession) -> PosStore:
        config = current_app.config
        return PosStore(
            db_session,
            feed=get_feed(),
            operator_id=auth_session.user_id,
            translator=Translator(config.get('DEFAULT_LANGUAGE', 'id')),
            tax_rate=config.get('TAX_RATE', '0.11'),
            low_stock_threshold=config.get('LOW_STOCK_THRESHOLD', 5),
            default_settings=StoreSettings(
                name=config.get('DEFAULT_STORE_NAME', 'Dyad POS'),
                receipt_notes=config.get('DEFAULT_RECEIPT_NOTES', 'Terima kasih atas pembelian Anda!'),
            ),
        )

    def _on_auth_state_change(self, event: str, auth_session: Optional[AuthSession]) -> None:
        if event == SIGNED_OUT and auth_session is not None:
            self.drop(auth_session.till_id)


def init_tills(app: Flask) -> TillRegistry:
    return TillRegistry(app)


def get_store() -> PosStore:
    """Store of the till signed in on this request."""
    auth_session = get_identity().current_session()
    if auth_session is None:
        raise LoginRequiredError()
    return current_app.extensions['tills'].get_or_create(auth_session)
