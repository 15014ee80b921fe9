"""
Realtime change feed for the four synced collections.

Every till subscribes to products, categories, transactions and settings.
Publishing a change dispatches to subscribers in this process and, when Redis
is reachable, on ``{prefix}:{collection}`` so tills served by other worker
processes refresh too. Without Redis the feed degrades to in-process only.
"""

import json
import logging
import threading
import uuid
from typing import Callable, Dict, List, Optional

import redis
from redis.exceptions import RedisError, ConnectionError, TimeoutError
from flask import Flask, current_app, has_app_context

logger = logging.getLogger(__name__)

COLLECTIONS = ('products', 'categories', 'transactions', 'settings')

ChangeCallback = Callable[[str], None]


class Subscription:
    """Handle returned by ChangeFeed.subscribe; call unsubscribe() to stop."""

    def __init__(self, feed: 'ChangeFeed', collection: str, callback: ChangeCallback):
        self.feed = feed
        self.collection = collection
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.feed._remove(self)
            self.active = False


class ChangeFeed:
    """
    Per-collection publish/subscribe hub.

    Channel pattern: {prefix}:{collection}
    """

    def __init__(self, app: Optional[Flask] = None):
        self.client: Optional[redis.Redis] = None
        self._enabled: bool = False
        self._prefix: str = 'pos:changes'
        self._source_id: str = uuid.uuid4().hex
        self._subscribers: Dict[str, List[Subscription]] = {c: [] for c in COLLECTIONS}
        self._lock = threading.RLock()
        self._pubsub = None
        self._listener = None
        # Called on the listener thread after each remote dispatch
        self.thread_cleanup: Optional[Callable[[], None]] = None

        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Connect to Redis from Flask app config and start the listener."""
        self._enabled = app.config.get('REALTIME_ENABLED', True)
        self._prefix = app.config.get('REALTIME_CHANNEL_PREFIX', 'pos:changes')
        redis_url = app.config.get('REDIS_URL', 'redis://redis:6379/0')

        if not self._enabled:
            logger.info("[REALTIME] Redis broker is DISABLED via config, in-process feed only")
            return

        try:
            self.client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=3,
                socket_keepalive=True,
                health_check_interval=30
            )
            self.client.ping()
            self._start_listener()
            logger.info(f"[REALTIME] ✓ Redis connected: {redis_url}")
        except (ConnectionError, TimeoutError, RedisError) as e:
            logger.warning(f"[REALTIME] ⚠ Redis connection failed: {e}. In-process feed only.")
            self._enabled = False
            self.client = None

    def is_distributed(self) -> bool:
        """True when changes also travel through Redis."""
        return self._enabled and self.client is not None

    def channel(self, collection: str) -> str:
        return f"{self._prefix}:{collection}"

    def subscribe(self, collection: str, callback: ChangeCallback) -> Subscription:
        """Register a callback for changes on one collection."""
        if collection not in self._subscribers:
            raise ValueError(f"Unknown collection: {collection}")
        subscription = Subscription(self, collection, callback)
        with self._lock:
            self._subscribers[collection].append(subscription)
        return subscription

    def subscriber_count(self, collection: Optional[str] = None) -> int:
        with self._lock:
            if collection:
                return len(self._subscribers.get(collection, []))
            return sum(len(subs) for subs in self._subscribers.values())

    def publish(self, collection: str) -> None:
        """Announce that a collection changed."""
        if collection not in self._subscribers:
            raise ValueError(f"Unknown collection: {collection}")

        self._dispatch(collection)

        if not self.is_distributed():
            return
        try:
            payload = json.dumps({'collection': collection, 'source': self._source_id})
            self.client.publish(self.channel(collection), payload)
        except RedisError as e:
            logger.warning(f"[REALTIME] ✗ Publish error on {collection}: {e}")

    def close(self) -> None:
        """Stop the listener thread and release the Redis connection."""
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
        if self._pubsub is not None:
            self._pubsub.close()
            self._pubsub = None

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subs = self._subscribers.get(subscription.collection, [])
            if subscription in subs:
                subs.remove(subscription)

    def _dispatch(self, collection: str) -> None:
        with self._lock:
            callbacks = [s.callback for s in self._subscribers[collection]]
        for callback in callbacks:
            try:
                callback(collection)
            except Exception:
                # One till failing to refresh must not stop the others
                logger.exception(f"[REALTIME] ✗ Subscriber failed on {collection}")

    def _start_listener(self) -> None:
        self._pubsub = self.client.pubsub(ignore_subscribe_messages=True)
        self._pubsub.psubscribe(**{f"{self._prefix}:*": self._on_message})
        self._listener = self._pubsub.run_in_thread(sleep_time=0.5, daemon=True)

    def _on_message(self, message: dict) -> None:
        try:
            data = json.loads(message.get('data') or '{}')
        except (TypeError, json.JSONDecodeError):
            logger.warning(f"[REALTIME] Ignoring malformed message on {message.get('channel')}")
            return

        # Local publishes were already dispatched synchronously
        if data.get('source') == self._source_id:
            return

        collection = data.get('collection')
        if collection not in self._subscribers:
            return

        logger.debug(f"[REALTIME] Remote change on {collection}")
        try:
            self._dispatch(collection)
        finally:
            if self.thread_cleanup:
                self.thread_cleanup()


_feed: Optional[ChangeFeed] = None


def init_realtime(app: Flask) -> ChangeFeed:
    """Initialize the change feed and register it on the app."""
    global _feed
    from pos.database import db_session

    _feed = ChangeFeed(app)
    _feed.thread_cleanup = db_session.remove
    if not hasattr(app, 'extensions'):
        app.extensions = {}
    app.extensions['realtime'] = _feed
    return _feed


def get_feed() -> ChangeFeed:
    """Get the change feed of the current app."""
    if has_app_context() and 'realtime' in current_app.extensions:
        return current_app.extensions['realtime']
    if _feed is None:
        raise RuntimeError("Realtime feed not initialized.")
    return _feed


def notify_change(*collections: str) -> None:
    """Publish after a successful commit; a missing feed is not an error."""
    try:
        feed = get_feed()
    except RuntimeError:
        logger.debug(f"[REALTIME] No feed, skipping notification for {collections}")
        return
    for collection in collections:
        feed.publish(collection)
