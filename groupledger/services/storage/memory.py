"""
In-Memory Storage Implementations

Used for local development and for tests. Behaves like the remote
document store: documents are copied on the way in and on the way out,
so callers never share mutable state with the store.
"""

import copy
from typing import Any, Optional

from groupledger.models.audit import AuditEvent
from groupledger.models.ledger import new_document_id
from groupledger.services.storage.interface import (
    AuditStorageInterface,
    DocumentSnapshot,
    DocumentStoreInterface,
    DuplicateError,
    NotFoundError,
    SnapshotStoreInterface,
    document_path,
    matches_query,
    split_document_path,
)


class InMemoryDocumentStore(DocumentStoreInterface):
    """
    Dictionary-backed document store.

    Collections map document ids to field dicts; dict order gives
    insertion order.
    """

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def _snapshot(self, collection: str, doc_id: str, data: dict) -> DocumentSnapshot:
        return DocumentSnapshot(
            id=doc_id,
            path=document_path(collection, doc_id),
            data=copy.deepcopy(data),
        )

    async def get_document(self, path: str) -> Optional[DocumentSnapshot]:
        collection, doc_id = split_document_path(path)
        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return self._snapshot(collection, doc_id, data)

    async def set_document(
        self,
        path: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        collection, doc_id = split_document_path(path)
        documents = self._collections.setdefault(collection, {})
        if merge and doc_id in documents:
            documents[doc_id].update(copy.deepcopy(data))
        else:
            documents[doc_id] = copy.deepcopy(data)

    async def update_document(self, path: str, data: dict[str, Any]) -> None:
        collection, doc_id = split_document_path(path)
        documents = self._collections.get(collection, {})
        if doc_id not in documents:
            raise NotFoundError(f"Document not found: {path}")
        documents[doc_id].update(copy.deepcopy(data))

    async def delete_document(self, path: str) -> bool:
        collection, doc_id = split_document_path(path)
        documents = self._collections.get(collection, {})
        return documents.pop(doc_id, None) is not None

    async def add_document(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = new_document_id()
        documents = self._collections.setdefault(collection, {})
        if doc_id in documents:
            raise DuplicateError(f"Document already exists: {document_path(collection, doc_id)}")
        documents[doc_id] = copy.deepcopy(data)
        return doc_id

    async def array_union(
        self,
        path: str,
        field: str,
        values: list[Any],
    ) -> list[Any]:
        # No await between read and write
        collection, doc_id = split_document_path(path)
        document = self._collections.get(collection, {}).get(doc_id)
        if document is None:
            raise NotFoundError(f"Document not found: {path}")
        current = document.get(field)
        array = list(current) if isinstance(current, list) else []
        for value in values:
            if value not in array:
                array.append(copy.deepcopy(value))
        document[field] = array
        return copy.deepcopy(array)

    async def list_documents(self, collection: str) -> list[DocumentSnapshot]:
        documents = self._collections.get(collection, {})
        return [
            self._snapshot(collection, doc_id, data)
            for doc_id, data in documents.items()
        ]

    async def query(
        self,
        collection: str,
        field: str,
        op: str,
        value: Any,
    ) -> list[DocumentSnapshot]:
        return [
            doc for doc in await self.list_documents(collection)
            if matches_query(doc.data, field, op, value)
        ]


class InMemorySnapshotStore(SnapshotStoreInterface):
    """Dictionary-backed snapshot store."""

    def __init__(self):
        self._values: dict[str, Any] = {}

    def save(self, key: str, value: Any) -> None:
        self._values[key] = copy.deepcopy(value)

    def load(self, key: str) -> Optional[Any]:
        if key not in self._values:
            return None
        return copy.deepcopy(self._values[key])

    def delete(self, key: str) -> bool:
        return self._values.pop(key, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
