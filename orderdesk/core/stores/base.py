"""
Document Store Base
===================

The boundary to the remote document database:

    subscribe(collection, on_snapshot) -> Subscription
    update_field(collection, doc_id, field, value)

A subscription delivers the full collection snapshot when it is opened and
again every time any document in the collection changes, until released.
Change detection compares a fingerprint of each fetched snapshot, so backends
only have to know how to read a whole collection. Backends without push
notifications are refreshed by poll(), optionally from a background thread.
"""

import itertools
import json
import logging
import threading

from ..exceptions import StoreError

logger = logging.getLogger(__name__)


class Document:
    """A single record: an opaque id plus its field bag"""

    __slots__ = ('id', 'data')

    def __init__(self, doc_id, data=None):
        self.id = str(doc_id)
        self.data = dict(data or {})

    def get(self, key, default=None):
        return self.data.get(key, default)

    def to_dict(self):
        """Flatten to {'id': ..., **fields}; the document id always wins"""
        row = {'id': self.id}
        row.update(self.data)
        row['id'] = self.id
        return row

    def __eq__(self, other):
        if not isinstance(other, Document):
            return NotImplemented
        return self.id == other.id and self.data == other.data

    def __repr__(self):
        return f"Document({self.id!r}, {self.data!r})"


class Subscription:
    """Handle for one live subscription. Calling it releases the subscription."""

    def __init__(self, store, collection, callback):
        self.store = store
        self.collection = collection
        self.callback = callback
        self.active = True

    def deliver(self, documents):
        if self.active:
            self.callback(list(documents))

    def unsubscribe(self):
        if not self.active:
            return
        self.active = False
        self.store._remove_subscription(self)

    def __call__(self):
        self.unsubscribe()


def snapshot_fingerprint(documents):
    """Stable string identifying a snapshot's content and order"""
    return json.dumps(
        [[doc.id, doc.data] for doc in documents],
        sort_keys=True,
        default=str,
    )


class DocumentStore:
    """Base class for document store backends"""

    name = 'base'

    def __init__(self):
        self._subscriptions = {}
        self._fingerprints = {}
        self._tickets = itertools.count(1)
        self._delivered_tickets = {}
        self._lock = threading.RLock()
        self._poll_thread = None
        self._stop_event = None

    # -------------------- backend hooks --------------------

    def fetch_collection(self, collection):
        """Return the current snapshot of a collection as a list of Document"""
        raise NotImplementedError

    def update_field(self, collection, doc_id, field, value):
        """Set one field on an existing document"""
        raise NotImplementedError

    def set_document(self, collection, doc_id, data):
        """Create or replace a whole document"""
        raise NotImplementedError

    # -------------------- subscriptions --------------------

    def subscribe(self, collection, on_snapshot):
        """
        Open a live subscription.

        The current snapshot is fetched and delivered before this returns;
        any error while doing so propagates to the caller.
        """
        with self._lock:
            ticket = next(self._tickets)
        documents = self.fetch_collection(collection)
        subscription = Subscription(self, collection, on_snapshot)

        with self._lock:
            self._subscriptions.setdefault(collection, []).append(subscription)
            latest = self._delivered_tickets.get(collection, 0)
            if ticket > latest or collection not in self._fingerprints:
                self._delivered_tickets[collection] = max(ticket, latest)
                self._fingerprints[collection] = snapshot_fingerprint(documents)

        logger.info(f"Subscribed to '{collection}' ({len(documents)} documents, store: {self.name})")
        try:
            subscription.deliver(documents)
        except Exception:
            subscription.unsubscribe()
            raise
        return subscription

    def _remove_subscription(self, subscription):
        with self._lock:
            subscriptions = self._subscriptions.get(subscription.collection, [])
            if subscription in subscriptions:
                subscriptions.remove(subscription)
            if not subscriptions:
                self._subscriptions.pop(subscription.collection, None)
                self._fingerprints.pop(subscription.collection, None)
        logger.info(f"Released subscription to '{subscription.collection}'")

    def subscription_count(self, collection=None):
        with self._lock:
            if collection is not None:
                return len(self._subscriptions.get(collection, []))
            return sum(len(subs) for subs in self._subscriptions.values())

    def subscribed_collections(self):
        with self._lock:
            return list(self._subscriptions)

    def notify(self, collection):
        """
        Re-read a collection and deliver it to its subscribers if it changed.
        Returns True when a new snapshot was delivered.

        Every read takes a ticket before fetching. A snapshot whose read
        started before an already delivered one is dropped as stale.
        """
        with self._lock:
            if not self._subscriptions.get(collection):
                return False
            ticket = next(self._tickets)

        documents = self.fetch_collection(collection)
        fingerprint = snapshot_fingerprint(documents)

        with self._lock:
            if ticket < self._delivered_tickets.get(collection, 0):
                return False
            self._delivered_tickets[collection] = ticket
            if self._fingerprints.get(collection) == fingerprint:
                return False
            self._fingerprints[collection] = fingerprint

            for subscription in list(self._subscriptions.get(collection, [])):
                try:
                    subscription.deliver(documents)
                except Exception as e:
                    # A failing listener must not break the write or the poller
                    logger.error(f"Snapshot listener for '{collection}' failed: {e}")
        return True

    def refresh(self, collection):
        """notify() that logs read failures instead of raising them"""
        try:
            return self.notify(collection)
        except StoreError as e:
            logger.error(f"Failed to refresh '{collection}': {e}")
            return False

    def poll(self):
        """Refresh every subscribed collection once. Returns the changed collections."""
        changed = []
        for collection in self.subscribed_collections():
            if self.refresh(collection):
                changed.append(collection)
        return changed

    # -------------------- background polling --------------------

    def start_polling(self, interval):
        """Poll every `interval` seconds on a daemon thread"""
        if self._poll_thread is not None and self._poll_thread.is_alive():
            return
        self._stop_event = threading.Event()
        stop_event = self._stop_event

        def _run():
            while not stop_event.wait(interval):
                self.poll()

        self._poll_thread = threading.Thread(target=_run, name=f"orderdesk-poller-{self.name}", daemon=True)
        self._poll_thread.start()
        logger.info(f"Polling {self.name} store every {interval}s")

    def stop_polling(self, join=True):
        if self._stop_event is not None:
            self._stop_event.set()
        if join and self._poll_thread is not None:
            self._poll_thread.join()
        self._poll_thread = None

    @property
    def polling(self):
        return self._poll_thread is not None and self._poll_thread.is_alive()

    # -------------------- helpers --------------------

    def seed(self, collection, documents):
        """Load plain dicts carrying an 'id' key into a collection"""
        for document in documents:
            data = dict(document)
            doc_id = data.pop('id')
            self.set_document(collection, doc_id, data)
