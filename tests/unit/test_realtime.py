"""
Unit tests for the change feed.
"""

import json

import pytest

from pos.services.realtime_service import COLLECTIONS, ChangeFeed, notify_change


class TestChangeFeed:

    def test_publish_reaches_collection_subscribers_only(self):
        feed = ChangeFeed()
        seen = []
        feed.subscribe('products', seen.append)

        feed.publish('products')
        feed.publish('categories')

        assert seen == ['products']
        assert feed.is_distributed() is False

    def test_unsubscribe(self):
        feed = ChangeFeed()
        seen = []
        subscription = feed.subscribe('settings', seen.append)

        subscription.unsubscribe()
        subscription.unsubscribe()
        feed.publish('settings')

        assert seen == []
        assert feed.subscriber_count() == 0

    def test_unknown_collection(self):
        feed = ChangeFeed()
        with pytest.raises(ValueError):
            feed.subscribe('orders', lambda collection: None)
        with pytest.raises(ValueError):
            feed.publish('orders')

    def test_failing_subscriber_does_not_block_others(self):
        feed = ChangeFeed()
        seen = []

        def broken(collection):
            raise RuntimeError('boom')

        feed.subscribe('transactions', broken)
        feed.subscribe('transactions', seen.append)
        feed.publish('transactions')

        assert seen == ['transactions']

    def test_channel_names(self):
        feed = ChangeFeed()
        assert [feed.channel(c) for c in COLLECTIONS] == [
            'pos:changes:products', 'pos:changes:categories',
            'pos:changes:transactions', 'pos:changes:settings',
        ]


class TestRemoteMessages:

    def test_remote_change_dispatched_then_cleaned_up(self):
        feed = ChangeFeed()
        seen, cleaned = [], []
        feed.thread_cleanup = lambda: cleaned.append(True)
        feed.subscribe('products', seen.append)

        feed._on_message({'data': json.dumps({'collection': 'products', 'source': 'other-worker'})})

        assert seen == ['products']
        assert cleaned == [True]

    def test_own_messages_ignored(self):
        feed = ChangeFeed()
        seen = []
        feed.subscribe('products', seen.append)

        feed._on_message({'data': json.dumps({'collection': 'products', 'source': feed._source_id})})

        assert seen == []

    def test_malformed_message_ignored(self):
        feed = ChangeFeed()
        seen = []
        feed.subscribe('products', seen.append)

        feed._on_message({'channel': 'pos:changes:products', 'data': 'not json'})
        feed._on_message({'data': json.dumps({'collection': 'orders', 'source': 'x'})})

        assert seen == []


class TestNotifyChange:

    def test_reaches_app_feed(self, app):
        feed = app.extensions['realtime']
        seen = []
        subscription = feed.subscribe('categories', seen.append)
        try:
            notify_change('categories', 'products')
        finally:
            subscription.unsubscribe()

        assert seen == ['categories']

    def test_mounted_store_refetches_on_change(self, store, session):
        from pos.models import Category

        session.add(Category(name='Snack'))
        session.commit()
        assert store.state.categories == ()

        notify_change('categories')

        assert [c.name for c in store.state.categories] == ['Snack']
