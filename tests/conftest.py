"""
Shared fixtures for the OrderDesk test suite.

Run with: pytest tests/ -v
Install test dependencies with: pip install -e ".[dev]"
"""

import os
import shutil
import tempfile

# Point every database at a throwaway directory before orderdesk.core.config loads
_SESSION_DB_DIR = tempfile.mkdtemp(prefix="orderdesk-session-")
os.environ["DB_DIR"] = _SESSION_DB_DIR
os.environ["LOGS_DB"] = os.path.join(_SESSION_DB_DIR, "app_logs.db")
os.environ["DOCUMENTS_DB"] = os.path.join(_SESSION_DB_DIR, "documents.db")
os.environ["ORDERDESK_POLL_INTERVAL"] = "0"

import pytest
from flask import Flask

from orderdesk import OrderDesk
from orderdesk.core.stores import MemoryDocumentStore
from orderdesk.modules.orders import OrderBoard


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_SESSION_DB_DIR, ignore_errors=True)


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

@pytest.fixture
def orders():
    return [
        {"id": "o1", "userId": "u1", "addressId": "a1", "status": "Pending",
         "items": [{"name": "Widget", "price": 5, "quantity": 1}],
         "date": "2024-01-05", "paymentMethod": "Card"},
        {"id": "o2", "userId": "u2", "addressId": "a2", "status": "Delivered",
         "items": [{"name": "Gadget"}, {"name": "Gizmo"}],
         "date": "2024-02-10", "paymentMethod": "Cash on Delivery"},
        {"id": "o3", "userId": "u1", "addressId": "a2", "status": "Pending",
         "items": [], "date": "2024-03-15T09:30:00Z", "paymentMethod": "UPI"},
    ]


@pytest.fixture
def users():
    return [
        {"id": "u1", "email": "a@b.com"},
        {"id": "u2", "email": "c@d.com"},
    ]


@pytest.fixture
def addresses():
    return [
        {"id": "a1", "street": "Main St", "city": "Springfield"},
        {"id": "a2", "street": "Elm Rd", "city": "Shelbyville"},
    ]


@pytest.fixture
def store(orders, users, addresses):
    return MemoryDocumentStore({
        "orders": orders,
        "users": users,
        "addresses": addresses,
    })


@pytest.fixture
def board(store):
    board = OrderBoard(store)
    board.activate()
    yield board
    board.deactivate()


# ---------------------------------------------------------------------------
# Flask app
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="orderdesk-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def make_app(tmp_db_dir):
    """Factory for Flask apps with OrderDesk initialised; shut down after the test."""
    created = []

    def _make_app(store=None, **config):
        app = Flask(__name__)
        app.config["TESTING"] = True
        app.config["SECRET_KEY"] = "test-secret"
        app.config["DB_DIR"] = tmp_db_dir
        app.config["LOGS_DB"] = os.path.join(tmp_db_dir, "app_logs.db")
        app.config["DOCUMENTS_DB"] = os.path.join(tmp_db_dir, "documents.db")
        app.config["ORDERDESK_STORE"] = "memory"
        app.config["ORDERDESK_POLL_INTERVAL"] = 0
        app.config.update(config)
        created.append(OrderDesk(app, store=store))
        return app

    yield _make_app

    for ext in created:
        ext.shutdown()


@pytest.fixture
def app(make_app, store):
    """Flask app with OrderDesk initialised on the in-memory sample store."""
    return make_app(store=store)


@pytest.fixture
def client(app):
    return app.test_client()
