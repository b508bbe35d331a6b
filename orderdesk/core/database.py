import json
import os
import sqlite3
import threading


class Database:
    # Serializes writes from request threads and the polling thread
    _lock = threading.Lock()

    @staticmethod
    def connect(path):
        return sqlite3.connect(path)

    @staticmethod
    def ensure_parent_dir(path):
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    @staticmethod
    def init_documents_table(path):
        """Initialize the documents table with proper schema"""
        Database.ensure_parent_dir(path)
        with Database.connect(path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL DEFAULT '{}',
                    position INTEGER NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (collection, id)
                )
            """)

            # Snapshot reads always filter and order by collection/position
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_documents_collection
                ON documents(collection, position)
            """)

            conn.commit()

    @staticmethod
    def get_documents(path, collection):
        """Get all documents of a collection in insertion order as (id, data) tuples"""
        with Database.connect(path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT id, data FROM documents
                WHERE collection = ?
                ORDER BY position, id
            """, (collection,))
            return [(row[0], json.loads(row[1])) for row in cursor.fetchall()]

    @classmethod
    def put_document(cls, path, collection, doc_id, data):
        """
        Insert or replace a whole document.
        A replaced document keeps its position in the collection.
        """
        with cls._lock:
            with cls.connect(path) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    SELECT position FROM documents
                    WHERE collection = ? AND id = ?
                """, (collection, doc_id))
                row = cursor.fetchone()

                if row:
                    cursor.execute("""
                        UPDATE documents
                        SET data = ?, updated_at = CURRENT_TIMESTAMP
                        WHERE collection = ? AND id = ?
                    """, (json.dumps(data), collection, doc_id))
                else:
                    cursor.execute("""
                        SELECT COALESCE(MAX(position), 0) + 1 FROM documents
                        WHERE collection = ?
                    """, (collection,))
                    position = cursor.fetchone()[0]
                    cursor.execute("""
                        INSERT INTO documents (collection, id, data, position)
                        VALUES (?, ?, ?, ?)
                    """, (collection, doc_id, json.dumps(data), position))

                conn.commit()

    @classmethod
    def update_document_field(cls, path, collection, doc_id, field_name, value):
        """
        Update a single field of a document.
        Returns False if the document does not exist.
        """
        with cls._lock:
            with cls.connect(path) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    SELECT data FROM documents
                    WHERE collection = ? AND id = ?
                """, (collection, doc_id))
                row = cursor.fetchone()
                if not row:
                    return False

                data = json.loads(row[0])
                data[field_name] = value
                cursor.execute("""
                    UPDATE documents
                    SET data = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE collection = ? AND id = ?
                """, (json.dumps(data), collection, doc_id))

                conn.commit()
                return True

    @classmethod
    def delete_document(cls, path, collection, doc_id):
        """Delete a document, returns True if a row was removed"""
        with cls._lock:
            with cls.connect(path) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    DELETE FROM documents
                    WHERE collection = ? AND id = ?
                """, (collection, doc_id))
                deleted = cursor.rowcount
                conn.commit()
                return deleted > 0
