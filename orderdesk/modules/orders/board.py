"""
Order Board
===========

State container for the admin orders view.

Holds the latest snapshot of each source collection, the view state
(loading / ready / error) and any local write intents, and derives the
display rows from them. Rows are never patched in place: every snapshot
delivery and every write intent re-derives the whole row list from the
canonical snapshots, with intents folded over the orders snapshot until the
next authoritative orders snapshot replaces them.
"""

import logging
import threading

from orderdesk.core.exceptions import SetupError
from orderdesk.core.logging_service import db_log
from .gateway import MutationGateway
from .join import enrich_orders, partition_rows
from .subscriptions import SubscriptionManager

logger = logging.getLogger(__name__)

STATE_LOADING = 'loading'
STATE_READY = 'ready'
STATE_ERROR = 'error'


class OrderBoard:

    def __init__(self, store, date_format=None, orders_collection='orders',
                 users_collection='users', addresses_collection='addresses'):
        self.store = store
        self.date_format = date_format or None
        self.orders_collection = orders_collection
        self.users_collection = users_collection
        self.addresses_collection = addresses_collection

        self.subscriptions = SubscriptionManager(
            store, (orders_collection, users_collection, addresses_collection)
        )
        self.gateway = MutationGateway(store, board=self, collection=orders_collection)

        self.state = STATE_LOADING
        self.error = None
        self._snapshots = {}
        self._write_intents = {}
        self._rows = []
        self._listeners = []
        self._lock = threading.RLock()

    # -------------------- lifecycle --------------------

    def activate(self):
        """
        Open the subscriptions. A setup failure puts the board into the
        error state; nothing is retried.
        """
        with self._lock:
            self.state = STATE_LOADING
            self.error = None

        try:
            self.subscriptions.activate(self.receive)
        except SetupError as e:
            with self._lock:
                self.state = STATE_ERROR
                self.error = str(e)
            logger.error(f"Order board failed to start: {e}")
            db_log('error', 'orders', 'Order board failed to start', {'error': str(e)})
            return False
        return True

    def deactivate(self):
        self.subscriptions.deactivate()

    @property
    def active(self):
        return self.subscriptions.active

    # -------------------- snapshot intake --------------------

    def receive(self, collection, documents):
        """Store the newest snapshot of one collection and re-derive the rows"""
        with self._lock:
            self._snapshots[collection] = list(documents)
            if collection == self.orders_collection:
                # The authoritative snapshot supersedes local intents
                self._write_intents.clear()
            self._derive()

    def apply_write_intent(self, order_id, fields):
        """Overlay fields on one order until the next orders snapshot arrives"""
        with self._lock:
            self._write_intents.setdefault(str(order_id), {}).update(fields)
            self._derive()

    def _ready_to_join(self):
        return all(
            name in self._snapshots
            for name in (self.orders_collection, self.users_collection, self.addresses_collection)
        )

    def _orders_with_intents(self):
        orders = []
        for document in self._snapshots[self.orders_collection]:
            order = document.to_dict() if hasattr(document, 'to_dict') else dict(document)
            intent = self._write_intents.get(str(order.get('id')))
            if intent:
                order.update(intent)
            orders.append(order)
        return orders

    def _derive(self):
        if self.state == STATE_ERROR or not self._ready_to_join():
            return

        self._rows = enrich_orders(
            self._orders_with_intents(),
            self._snapshots[self.users_collection],
            self._snapshots[self.addresses_collection],
            self.date_format,
        )
        self.state = STATE_READY
        rows = list(self._rows)

        for listener in list(self._listeners):
            try:
                listener(rows)
            except Exception as e:
                logger.error(f"Order board listener failed: {e}")

    # -------------------- views --------------------

    @property
    def rows(self):
        with self._lock:
            return list(self._rows)

    def partition(self):
        return partition_rows(self.rows)

    def pending_orders(self):
        return self.partition()['pending']

    def delivered_orders(self):
        return self.partition()['delivered']

    def get_row(self, order_id):
        for row in self.rows:
            if row.get('id') == str(order_id):
                return row
        return None

    def snapshot_sizes(self):
        with self._lock:
            return {name: len(documents) for name, documents in self._snapshots.items()}

    def add_listener(self, callback):
        """callback(rows) runs after every re-derivation"""
        with self._lock:
            self._listeners.append(callback)

    def remove_listener(self, callback):
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    # -------------------- mutations --------------------

    def mark_delivered(self, order_id, confirm, user_id=None):
        return self.gateway.mark_delivered(order_id, confirm, user_id=user_id)
