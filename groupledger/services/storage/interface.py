"""
Abstract Storage Interfaces

DESIGN DECISION: We define abstract interfaces for every kind of storage.
This allows us to:
1. Swap the remote document store without touching business logic
2. Use in-memory storage for testing and local development
3. Keep the ledger service decoupled from any vendor SDK

Three kinds of storage exist:
- Document store: remote documents addressed by slash-separated paths
  ("groups/{gid}/transactions/{tid}"), queried by a single field.
- Snapshot store: local key-value persistence of JSON values
  (transaction and budget snapshots).
- Audit storage: append-only audit trail.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field

from groupledger.models.audit import AuditEvent


QUERY_OPERATORS = ("==", "array_contains")


class DocumentSnapshot(BaseModel):
    """A document read from the document store."""

    id: str
    path: str
    data: dict[str, Any] = Field(default_factory=dict)


def document_path(*segments: str) -> str:
    """
    Join path segments into a document or collection path.

    document_path("groups", gid, "transactions") -> "groups/<gid>/transactions"
    """
    cleaned = [str(s).strip("/") for s in segments]
    if any(not s for s in cleaned):
        raise ValueError(f"Empty path segment in {segments!r}")
    return "/".join(cleaned)


def split_document_path(path: str) -> tuple[str, str]:
    """
    Split a document path into (collection_path, document_id).

    Document paths have an even number of segments.
    """
    segments = path.strip("/").split("/")
    if len(segments) < 2 or len(segments) % 2 != 0:
        raise ValueError(f"Not a document path: {path}")
    return "/".join(segments[:-1]), segments[-1]


def matches_query(data: dict[str, Any], field: str, op: str, value: Any) -> bool:
    """Evaluate a single-field query against a document's data."""
    if op not in QUERY_OPERATORS:
        raise ValueError(f"Unsupported query operator: {op}")
    if field not in data:
        return False
    if op == "==":
        return data[field] == value
    field_value = data[field]
    return isinstance(field_value, list) and value in field_value


class DocumentStoreInterface(ABC):
    """
    Abstract interface for the remote document store.

    Every method is a single request/response. Implementations do not
    retry writes and do not queue them offline.
    """

    @abstractmethod
    async def get_document(self, path: str) -> Optional[DocumentSnapshot]:
        """
        Read a document by path.

        Returns:
            The document if it exists, None otherwise
        """
        pass

    @abstractmethod
    async def set_document(
        self,
        path: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        """
        Create or overwrite a document.

        Args:
            path: Document path
            data: Document fields
            merge: If True, merge fields into an existing document
                   instead of replacing it

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update_document(self, path: str, data: dict[str, Any]) -> None:
        """
        Merge fields into an existing document.

        Raises:
            NotFoundError: If the document doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_document(self, path: str) -> bool:
        """
        Delete a document.

        Returns:
            True if a document was deleted, False if it didn't exist
        """
        pass

    @abstractmethod
    async def add_document(self, collection: str, data: dict[str, Any]) -> str:
        """
        Create a document with a generated id.

        Returns:
            The generated document id

        Raises:
            DuplicateError: If the generated id is already taken
        """
        pass

    @abstractmethod
    async def array_union(
        self,
        path: str,
        field: str,
        values: list[Any],
    ) -> list[Any]:
        """
        Append values to an array field, skipping ones already present.

        The read and the write happen in one step, so concurrent unions
        on the same document don't drop each other's values.

        Returns:
            The array after the union

        Raises:
            NotFoundError: If the document doesn't exist
        """
        pass

    @abstractmethod
    async def list_documents(self, collection: str) -> list[DocumentSnapshot]:
        """
        List every document in a collection.

        Returns:
            Documents in insertion order
        """
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        field: str,
        op: str,
        value: Any,
    ) -> list[DocumentSnapshot]:
        """
        Filter a collection by a single field.

        Args:
            collection: Collection path
            field: Field name
            op: "==" or "array_contains"
            value: Value to compare with

        Returns:
            Matching documents in insertion order
        """
        pass


class SnapshotStoreInterface(ABC):
    """
    Abstract interface for local key-value snapshots.

    Values are anything JSON-serializable.
    """

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if nothing was saved under key."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
