# orderdesk/core/stores/firestore.py
import logging
import os
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from .base import Document, DocumentStore
from ..exceptions import DocumentNotFound, MutationError, StoreError

logger = logging.getLogger(__name__)

FIRESTORE_API_URL = "https://firestore.googleapis.com/v1"


def decode_value(value: Dict[str, Any]) -> Any:
    """Convert a Firestore typed value ({'stringValue': 'x'}) to plain Python"""
    if 'nullValue' in value:
        return None
    if 'booleanValue' in value:
        return bool(value['booleanValue'])
    if 'integerValue' in value:
        return int(value['integerValue'])
    if 'doubleValue' in value:
        return float(value['doubleValue'])
    if 'arrayValue' in value:
        return [decode_value(item) for item in value['arrayValue'].get('values', [])]
    if 'mapValue' in value:
        return decode_fields(value['mapValue'].get('fields', {}))
    if 'geoPointValue' in value:
        return dict(value['geoPointValue'])
    for key in ('stringValue', 'timestampValue', 'referenceValue', 'bytesValue'):
        if key in value:
            return value[key]
    return None


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {name: decode_value(value) for name, value in fields.items()}


def encode_value(value: Any) -> Dict[str, Any]:
    """Convert a plain Python value to a Firestore typed value"""
    if value is None:
        return {'nullValue': None}
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return {'booleanValue': value}
    if isinstance(value, int):
        return {'integerValue': str(value)}
    if isinstance(value, float):
        return {'doubleValue': value}
    if isinstance(value, datetime):
        return {'timestampValue': value.isoformat()}
    if isinstance(value, date):
        return {'stringValue': value.isoformat()}
    if isinstance(value, (list, tuple)):
        return {'arrayValue': {'values': [encode_value(item) for item in value]}}
    if isinstance(value, dict):
        return {'mapValue': {'fields': encode_fields(value)}}
    return {'stringValue': str(value)}


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {name: encode_value(value) for name, value in data.items()}


def _error_message(response) -> str:
    try:
        return response.json().get('error', {}).get('message') or response.text
    except ValueError:
        return response.text


class FirestoreDocumentStore(DocumentStore):
    """Document store backed by the Firestore REST API, observed by polling"""

    name = 'firestore'

    def __init__(self, project_id: str = None, database: str = None, api_key: str = None,
                 id_token: str = None, timeout: float = 10, page_size: int = 300,
                 session: Optional[requests.Session] = None):
        super().__init__()
        self.project_id = project_id or os.getenv("FIRESTORE_PROJECT_ID")
        self.database = database or os.getenv("FIRESTORE_DATABASE", "(default)")
        self.api_key = api_key or os.getenv("FIRESTORE_API_KEY")
        self.id_token = id_token
        self.timeout = timeout
        self.page_size = page_size
        self.session = session or requests.Session()

        if not self.project_id:
            raise ValueError("FIRESTORE_PROJECT_ID is required for the firestore store")

    def _documents_url(self, collection: str, doc_id: str = None) -> str:
        url = (f"{FIRESTORE_API_URL}/projects/{self.project_id}"
               f"/databases/{self.database}/documents/{quote(collection, safe='')}")
        if doc_id is not None:
            url += f"/{quote(str(doc_id), safe='')}"
        return url

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.id_token:
            headers['Authorization'] = f'Bearer {self.id_token}'
        return headers

    def _params(self, *pairs) -> List[tuple]:
        params = list(pairs)
        if self.api_key:
            params.append(('key', self.api_key))
        return params

    def fetch_collection(self, collection: str) -> List[Document]:
        documents = []
        page_token = None

        while True:
            params = self._params(('pageSize', self.page_size))
            if page_token:
                params.append(('pageToken', page_token))

            try:
                response = self.session.get(
                    self._documents_url(collection),
                    params=params,
                    headers=self._headers(),
                    timeout=self.timeout
                )
                response.raise_for_status()
                payload = response.json()
            except requests.RequestException as e:
                raise StoreError(f"Failed to list collection '{collection}': {e}") from e
            except ValueError as e:
                raise StoreError(f"Invalid response listing '{collection}': {e}") from e

            for raw in payload.get('documents', []):
                doc_id = raw['name'].rsplit('/', 1)[-1]
                documents.append(Document(doc_id, decode_fields(raw.get('fields', {}))))

            page_token = payload.get('nextPageToken')
            if not page_token:
                break

        return documents

    def _patch(self, collection: str, doc_id: str, fields: Dict[str, Any], params: List[tuple]):
        try:
            return self.session.patch(
                self._documents_url(collection, doc_id),
                params=params,
                json={'fields': encode_fields(fields)},
                headers=self._headers(),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise MutationError(f"Failed to update {collection}/{doc_id}: {e}", collection, doc_id) from e

    def update_field(self, collection: str, doc_id: str, field: str, value: Any):
        # currentDocument.exists makes Firestore refuse to create a missing document
        params = self._params(
            ('updateMask.fieldPaths', field),
            ('currentDocument.exists', 'true'),
        )
        response = self._patch(collection, doc_id, {field: value}, params)

        if response.status_code == 404:
            raise DocumentNotFound(f"No document to update: {collection}/{doc_id}", collection, doc_id)
        if not response.ok:
            raise MutationError(
                f"Firestore rejected update of {collection}/{doc_id} "
                f"({response.status_code}): {_error_message(response)}",
                collection, doc_id
            )

        logger.info(f"Updated {collection}/{doc_id}: {field} = {value!r}")
        self.refresh(collection)

    def set_document(self, collection: str, doc_id: str, data: Dict[str, Any]):
        response = self._patch(collection, doc_id, data, self._params())
        if not response.ok:
            raise MutationError(
                f"Firestore rejected write of {collection}/{doc_id} "
                f"({response.status_code}): {_error_message(response)}",
                collection, doc_id
            )
        self.refresh(collection)
