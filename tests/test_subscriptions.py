"""
Subscription manager tests: three independent live subscriptions with a
shared teardown.
"""

import pytest

from orderdesk.core.exceptions import SetupError, StoreError
from orderdesk.core.stores import MemoryDocumentStore
from orderdesk.modules.orders.subscriptions import SubscriptionManager


class FailingStore(MemoryDocumentStore):
    """Memory store that cannot read one collection"""

    def __init__(self, broken, collections=None):
        super().__init__(collections)
        self.broken = broken

    def fetch_collection(self, collection):
        if collection == self.broken:
            raise StoreError(f"permission denied on {collection}")
        return super().fetch_collection(collection)


@pytest.fixture
def deliveries():
    return []


@pytest.fixture
def listener(deliveries):
    def _listener(collection, documents):
        deliveries.append((collection, [doc.id for doc in documents]))
    return _listener


def test_activate_opens_three_subscriptions(store, listener, deliveries):
    manager = SubscriptionManager(store)
    manager.activate(listener)

    assert manager.active
    assert store.subscription_count() == 3
    assert sorted(store.subscribed_collections()) == ["addresses", "orders", "users"]
    assert deliveries == [
        ("orders", ["o1", "o2", "o3"]),
        ("users", ["u1", "u2"]),
        ("addresses", ["a1", "a2"]),
    ]


def test_each_collection_change_is_delivered_on_its_own(store, listener, deliveries):
    manager = SubscriptionManager(store)
    manager.activate(listener)
    deliveries.clear()

    store.set_document("addresses", "a3", {"street": "Oak Ave", "city": "Ogdenville"})

    # Only the address subscription fires; nothing is re-opened
    assert deliveries == [("addresses", ["a1", "a2", "a3"])]
    assert store.subscription_count() == 3

    store.set_document("users", "u3", {"email": "e@f.com"})
    assert deliveries[-1] == ("users", ["u1", "u2", "u3"])


def test_deactivate_releases_all_subscriptions(store, listener, deliveries):
    manager = SubscriptionManager(store)
    manager.activate(listener)

    manager.deactivate()

    assert not manager.active
    assert store.subscription_count() == 0

    deliveries.clear()
    store.set_document("orders", "o4", {"status": "Pending"})
    store.set_document("users", "u3", {"email": "e@f.com"})
    store.set_document("addresses", "a3", {"street": "Oak Ave", "city": "Ogdenville"})
    assert deliveries == []


def test_deactivate_twice_is_safe(store, listener):
    manager = SubscriptionManager(store)
    manager.activate(listener)

    manager.deactivate()
    manager.deactivate()

    assert store.subscription_count() == 0


def test_activate_twice_does_not_duplicate(store, listener):
    manager = SubscriptionManager(store)
    manager.activate(listener)
    manager.activate(listener)

    assert store.subscription_count() == 3


def test_setup_failure_raises_and_releases_opened_subscriptions(orders, users, listener):
    store = FailingStore("addresses", {"orders": orders, "users": users})
    manager = SubscriptionManager(store)

    with pytest.raises(SetupError) as excinfo:
        manager.activate(listener)

    assert "permission denied on addresses" in str(excinfo.value)
    assert not manager.active
    assert store.subscription_count() == 0


def test_listener_failure_during_setup_is_a_setup_error(store):
    def broken_listener(collection, documents):
        raise ValueError("bad listener")

    manager = SubscriptionManager(store)

    with pytest.raises(SetupError):
        manager.activate(broken_listener)

    assert store.subscription_count() == 0


def test_custom_collection_names(listener, deliveries):
    store = MemoryDocumentStore({"shop_orders": [{"id": "x1"}]})
    manager = SubscriptionManager(store, ("shop_orders", "customers", "places"))

    manager.activate(listener)

    assert [collection for collection, _ in deliveries] == ["shop_orders", "customers", "places"]
    manager.deactivate()
