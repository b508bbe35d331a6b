import os
from dotenv import load_dotenv

load_dotenv(override=True)


def _as_bool(value):
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """
    Base configuration for OrderDesk.
    Host projects override any of these via environment variables or app.config.
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')
    BRAND_NAME = os.getenv('BRAND_NAME', 'OrderDesk')

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Database paths - use environment variables or fallback to DB_DIR
    DOCUMENTS_DB = os.getenv('DOCUMENTS_DB', os.path.join(DB_DIR, "documents.db"))
    LOGS_DB = os.getenv('LOGS_DB', os.path.join(DB_DIR, "app_logs.db"))

    # Document store backend: memory, sqlite or firestore
    ORDERDESK_STORE = os.getenv('ORDERDESK_STORE', 'sqlite')
    ORDERDESK_POLL_INTERVAL = float(os.getenv('ORDERDESK_POLL_INTERVAL', '5'))

    # Firestore REST settings
    FIRESTORE_PROJECT_ID = os.getenv('FIRESTORE_PROJECT_ID')
    FIRESTORE_DATABASE = os.getenv('FIRESTORE_DATABASE', '(default)')
    FIRESTORE_API_KEY = os.getenv('FIRESTORE_API_KEY')
    FIRESTORE_TIMEOUT = float(os.getenv('FIRESTORE_TIMEOUT', '10'))

    # Collection names
    ORDERS_COLLECTION = os.getenv('ORDERS_COLLECTION', 'orders')
    USERS_COLLECTION = os.getenv('USERS_COLLECTION', 'users')
    ADDRESSES_COLLECTION = os.getenv('ADDRESSES_COLLECTION', 'addresses')

    # strftime pattern for the Date column; empty means US short date (1/5/2024)
    ORDER_DATE_FORMAT = os.getenv('ORDER_DATE_FORMAT', '')

    # Admin access
    ORDERDESK_REQUIRE_ADMIN = _as_bool(os.getenv('ORDERDESK_REQUIRE_ADMIN', '0'))
    ORDERDESK_LOGIN_URL = os.getenv('ORDERDESK_LOGIN_URL', '/admin/login')

    # Origins allowed to call the JSON API from another site
    ORDERDESK_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.getenv('ORDERDESK_ALLOWED_ORIGINS', 'http://localhost:3000').split(',')
        if origin.strip()
    ]


def get_config_value(key, default=None):
    """Get configuration value: Flask app config first, then Config, then env var"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val is not None:
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val is not None:
        return val
    return os.getenv(key, default)
