"""
OrderDesk - Live Orders Admin for Flask
=======================================

An admin view over three live document collections (orders, users,
addresses) that joins them into pending and delivered order tables and lets
an operator mark orders delivered.

Usage:
    from flask import Flask
    from orderdesk import OrderDesk

    app = Flask(__name__)
    orderdesk = OrderDesk(app)          # store chosen by ORDERDESK_STORE

    # or with an explicit store
    from orderdesk.core.stores import MemoryDocumentStore
    orderdesk = OrderDesk(app, store=MemoryDocumentStore())
"""

import logging
import os

__version__ = '0.1.0'

logger = logging.getLogger(__name__)

# Config keys copied into app.config when the host app has not set them
_DEFAULT_KEYS = [
    'SECRET_KEY', 'BRAND_NAME', 'DB_DIR', 'DOCUMENTS_DB', 'LOGS_DB',
    'ORDERDESK_STORE', 'ORDERDESK_POLL_INTERVAL',
    'FIRESTORE_PROJECT_ID', 'FIRESTORE_DATABASE', 'FIRESTORE_API_KEY', 'FIRESTORE_TIMEOUT',
    'ORDERS_COLLECTION', 'USERS_COLLECTION', 'ADDRESSES_COLLECTION',
    'ORDER_DATE_FORMAT', 'ORDERDESK_REQUIRE_ADMIN', 'ORDERDESK_LOGIN_URL',
    'ORDERDESK_ALLOWED_ORIGINS',
]


class OrderDesk:
    """Flask extension wiring the document store, order board and blueprint"""

    def __init__(self, app=None, store=None, config=None):
        self.app = None
        self.store = store
        self.board = None
        self._config = dict(config or {})
        self._registered_modules = []

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        from .core.config import Config
        from .core.stores import create_store
        from .modules.orders import orders_bp, OrderBoard

        self.app = app

        for key, value in self._config.items():
            app.config[key] = value
        for key in _DEFAULT_KEYS:
            if app.config.get(key) is None:
                app.config[key] = getattr(Config, key)

        self._setup_database_dir(app)

        if self.store is None:
            self.store = create_store(app.config)

        self.board = OrderBoard(
            self.store,
            date_format=app.config.get('ORDER_DATE_FORMAT'),
            orders_collection=app.config['ORDERS_COLLECTION'],
            users_collection=app.config['USERS_COLLECTION'],
            addresses_collection=app.config['ADDRESSES_COLLECTION'],
        )

        app.extensions['orderdesk'] = self

        with app.app_context():
            self.board.activate()

        interval = float(app.config.get('ORDERDESK_POLL_INTERVAL') or 0)
        if interval > 0 and self.store.name != 'memory':
            self.store.start_polling(interval)

        app.register_blueprint(orders_bp)
        self._registered_modules.append('orders')

        @app.context_processor
        def inject_orderdesk():
            return {
                'brand_name': app.config.get('BRAND_NAME') or 'OrderDesk',
                'orderdesk_state': self.board.state,
            }

        logger.info(f"OrderDesk initialised (store: {self.store.name}, state: {self.board.state})")

    def _setup_database_dir(self, app):
        db_dir = app.config.get('DB_DIR')
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    def get_registered_modules(self):
        return list(self._registered_modules)

    def shutdown(self):
        """Stop polling and release every subscription"""
        if self.store is not None:
            self.store.stop_polling()
        if self.board is not None:
            self.board.deactivate()


__all__ = ['OrderDesk', '__version__']
