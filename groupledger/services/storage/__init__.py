"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage:
an in-memory backend for local use and tests, a Google Sheets document
store, and JSON-file snapshots for local key-value persistence.
"""

from groupledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DocumentSnapshot,
    DocumentStoreInterface,
    DuplicateError,
    NotFoundError,
    SnapshotStoreInterface,
    StorageError,
    document_path,
    split_document_path,
)
from groupledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryDocumentStore,
    InMemorySnapshotStore,
)
from groupledger.services.storage.local import JsonFileSnapshotStore
from groupledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "DocumentSnapshot",
    "DocumentStoreInterface",
    "SnapshotStoreInterface",
    "document_path",
    "split_document_path",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory / local implementations
    "InMemoryAuditStorage",
    "InMemoryDocumentStore",
    "InMemorySnapshotStore",
    "JsonFileSnapshotStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
]
