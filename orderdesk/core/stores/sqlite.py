"""
SQLite Document Store
=====================

Documents stored as JSON rows in a single `documents` table.
Writes made through this store notify subscribers immediately; writes made
by other processes are picked up by poll().
"""

import logging
import sqlite3

from .base import Document, DocumentStore
from ..database import Database
from ..exceptions import DocumentNotFound, MutationError, StoreError

logger = logging.getLogger(__name__)


class SqliteDocumentStore(DocumentStore):

    name = 'sqlite'

    def __init__(self, db_path):
        super().__init__()
        self.db_path = db_path
        Database.init_documents_table(db_path)

    def fetch_collection(self, collection):
        try:
            rows = Database.get_documents(self.db_path, collection)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read collection '{collection}': {e}") from e
        return [Document(doc_id, data) for doc_id, data in rows]

    def set_document(self, collection, doc_id, data):
        Database.put_document(self.db_path, collection, str(doc_id), data)
        self.refresh(collection)

    def delete_document(self, collection, doc_id):
        deleted = Database.delete_document(self.db_path, collection, str(doc_id))
        if deleted:
            self.refresh(collection)
        return deleted

    def update_field(self, collection, doc_id, field, value):
        try:
            found = Database.update_document_field(self.db_path, collection, str(doc_id), field, value)
        except sqlite3.Error as e:
            raise MutationError(f"Failed to update {collection}/{doc_id}: {e}", collection, doc_id) from e

        if not found:
            raise DocumentNotFound(f"No document to update: {collection}/{doc_id}", collection, doc_id)

        logger.info(f"Updated {collection}/{doc_id}: {field} = {value!r}")
        self.refresh(collection)
