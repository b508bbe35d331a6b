"""
Document Stores
===============

Backends for the remote document database the orders view reads from.

    memory     - in-process, for tests and demos
    sqlite     - JSON documents in a local SQLite file
    firestore  - Firestore REST API (polled)
"""

from .base import Document, DocumentStore, Subscription
from .memory import MemoryDocumentStore
from .sqlite import SqliteDocumentStore
from .firestore import FirestoreDocumentStore

STORE_BACKENDS = {
    'memory': MemoryDocumentStore,
    'sqlite': SqliteDocumentStore,
    'firestore': FirestoreDocumentStore,
}


def create_store(config):
    """Build a document store from a config mapping (app.config or similar)"""
    backend = (config.get('ORDERDESK_STORE') or 'sqlite').lower()

    if backend == 'memory':
        return MemoryDocumentStore()
    if backend == 'sqlite':
        return SqliteDocumentStore(config.get('DOCUMENTS_DB'))
    if backend == 'firestore':
        return FirestoreDocumentStore(
            project_id=config.get('FIRESTORE_PROJECT_ID'),
            database=config.get('FIRESTORE_DATABASE'),
            api_key=config.get('FIRESTORE_API_KEY'),
            timeout=config.get('FIRESTORE_TIMEOUT', 10),
        )

    raise ValueError(f"Unknown ORDERDESK_STORE '{backend}'. Expected one of: {', '.join(STORE_BACKENDS)}")


__all__ = [
    'Document', 'DocumentStore', 'Subscription',
    'MemoryDocumentStore', 'SqliteDocumentStore', 'FirestoreDocumentStore',
    'STORE_BACKENDS', 'create_store',
]
