"""Thin Firestore wrapper exposing the operations the pipeline relies on."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from anzen.errors import DocumentStoreError

LOGGER = logging.getLogger(__name__)

Filter = Tuple[str, str, Any]


@dataclass(slots=True)
class StoredDocument:
    """A document id paired with its field data."""

    id: str
    data: Dict[str, Any] = field(default_factory=dict)


class DocumentStore(Protocol):
    """Operations shared by the Firestore store and in-memory doubles."""

    def get(self, collection: str, doc_id: str) -> StoredDocument | None: ...

    def list_all(self, collection: str) -> List[StoredDocument]: ...

    def query(
        self,
        collection: str,
        *,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> List[StoredDocument]: ...

    def create(self, collection: str, data: Mapping[str, Any]) -> str: ...

    def merge_update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None: ...

    def batch_update(self, collection: str, updates: Mapping[str, Mapping[str, Any]]) -> int: ...


class FirestoreDocumentStore:
    """Collection-scoped reads, merge updates and atomic batched writes."""

    def __init__(self, *, project: str | None = None, client: Optional[firestore.Client] = None) -> None:
        self._client = client or firestore.Client(project=project)

    def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        try:
            snapshot = self._client.collection(collection).document(doc_id).get()
        except Exception as exc:
            LOGGER.exception("Firestore read failed for %s/%s", collection, doc_id)
            raise DocumentStoreError(f"Read failed for {collection}/{doc_id}: {exc}", operation="read") from exc
        if not snapshot.exists:
            return None
        return StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {})

    def list_all(self, collection: str) -> List[StoredDocument]:
        return self._stream(self._client.collection(collection), collection)

    def query(
        self,
        collection: str,
        *,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> List[StoredDocument]:
        """Run a filtered query such as ``[("title", ">", "")]``."""

        query = self._client.collection(collection)
        for field_path, op, value in filters:
            query = query.where(filter=FieldFilter(field_path, op, value))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if limit:
            query = query.limit(limit)
        return self._stream(query, collection)

    def _stream(self, query, collection: str) -> List[StoredDocument]:
        try:
            return [StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {}) for snapshot in query.stream()]
        except Exception as exc:
            LOGGER.exception("Firestore read failed in collection=%s", collection)
            raise DocumentStoreError(f"Read failed in {collection}: {exc}", operation="read") from exc

    def create(self, collection: str, data: Mapping[str, Any]) -> str:
        """Create a document with a generated id and return that id."""

        doc_ref = self._client.collection(collection).document()
        try:
            doc_ref.set(dict(data))
        except Exception as exc:
            LOGGER.exception("Firestore create failed in collection=%s", collection)
            raise DocumentStoreError(f"Create failed in {collection}: {exc}") from exc
        return doc_ref.id

    def merge_update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        """Write ``fields`` into an existing document without touching other fields."""

        doc_ref = self._client.collection(collection).document(doc_id)
        try:
            doc_ref.set(dict(fields), merge=True)
        except Exception as exc:
            LOGGER.exception("Firestore merge update failed for %s/%s", collection, doc_id)
            raise DocumentStoreError(f"Update failed for {collection}/{doc_id}: {exc}") from exc

    def batch_update(self, collection: str, updates: Mapping[str, Mapping[str, Any]]) -> int:
        """Apply every update in one atomic commit and return the number written."""

        if not updates:
            return 0
        batch = self._client.batch()
        collection_ref = self._client.collection(collection)
        for doc_id, fields in updates.items():
            batch.update(collection_ref.document(doc_id), dict(fields))
        try:
            batch.commit()
        except Exception as exc:
            LOGGER.exception("Firestore batch commit failed for collection=%s", collection)
            raise DocumentStoreError(f"Batch update failed for {collection}: {exc}") from exc
        return len(updates)


__all__ = ["DocumentStore", "FirestoreDocumentStore", "StoredDocument"]
