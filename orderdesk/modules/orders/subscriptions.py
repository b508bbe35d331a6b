"""
Order Subscriptions
===================

Opens one live subscription per source collection and owns their teardown.
The subscriptions are independent of each other: each delivers its own
snapshots straight to the listener, so a change in any collection is seen
without re-opening the others.
"""

import logging

from orderdesk.core.exceptions import SetupError
from orderdesk.core.logging_service import db_log

logger = logging.getLogger(__name__)

DEFAULT_COLLECTIONS = ('orders', 'users', 'addresses')


class SubscriptionManager:
    """Lifecycle owner for the orders/users/addresses subscriptions"""

    def __init__(self, store, collections=DEFAULT_COLLECTIONS):
        self.store = store
        self.collections = tuple(collections)
        self._handles = {}

    @property
    def active(self):
        return bool(self._handles)

    def activate(self, listener):
        """
        Subscribe to every collection.

        listener(collection, documents) is called with the initial snapshot
        of each collection and again whenever that collection changes.
        Raises SetupError if any subscription cannot be opened; subscriptions
        opened before the failure are released first.
        """
        if self._handles:
            return

        for collection in self.collections:
            def _deliver(documents, collection=collection):
                listener(collection, documents)

            try:
                self._handles[collection] = self.store.subscribe(collection, _deliver)
            except Exception as e:
                logger.error(f"Failed to subscribe to '{collection}': {e}")
                db_log('error', 'orders', f"Subscription setup failed for '{collection}'", {'error': str(e)})
                self.deactivate()
                raise SetupError(str(e)) from e

        logger.info(f"Subscriptions active: {', '.join(self.collections)}")

    def deactivate(self):
        """Release every subscription together"""
        handles = self._handles
        self._handles = {}
        for collection, handle in handles.items():
            try:
                handle()
            except Exception as e:
                logger.error(f"Failed to release subscription to '{collection}': {e}")
