"""In-process document store. Every write re-delivers the collection to its subscribers."""

from .base import Document, DocumentStore
from ..exceptions import DocumentNotFound


class MemoryDocumentStore(DocumentStore):

    name = 'memory'

    def __init__(self, collections=None):
        super().__init__()
        self._collections = {}
        for collection, documents in (collections or {}).items():
            self._collections[collection] = {}
            for document in documents:
                data = dict(document)
                self._collections[collection][str(data.pop('id'))] = data

    def fetch_collection(self, collection):
        with self._lock:
            documents = self._collections.get(collection, {})
            return [Document(doc_id, dict(data)) for doc_id, data in documents.items()]

    def get_document(self, collection, doc_id):
        with self._lock:
            data = self._collections.get(collection, {}).get(str(doc_id))
            return Document(doc_id, dict(data)) if data is not None else None

    def set_document(self, collection, doc_id, data):
        with self._lock:
            self._collections.setdefault(collection, {})[str(doc_id)] = dict(data)
        self.notify(collection)

    def delete_document(self, collection, doc_id):
        with self._lock:
            removed = self._collections.get(collection, {}).pop(str(doc_id), None)
        if removed is not None:
            self.notify(collection)
        return removed is not None

    def update_field(self, collection, doc_id, field, value):
        with self._lock:
            document = self._collections.get(collection, {}).get(str(doc_id))
            if document is None:
                raise DocumentNotFound(f"No document to update: {collection}/{doc_id}", collection, doc_id)
            document[field] = value
        self.notify(collection)
