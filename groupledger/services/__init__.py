"""Services package."""

from groupledger.services.auth import (
    AuthBackendInterface,
    AuthError,
    AuthErrorCode,
    InMemoryAuthBackend,
)
from groupledger.services.ledger_service import (
    CategoryProtectedError,
    InvalidTransactionError,
    LedgerError,
    LedgerService,
    NoGroupSelectedError,
    NotAuthenticatedError,
    PermissionDeniedError,
    UserNotFoundError,
)
from groupledger.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DocumentStoreInterface,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryAuditStorage,
    InMemoryDocumentStore,
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
    NotFoundError,
    SnapshotStoreInterface,
    StorageError,
)

__all__ = [
    # Auth services
    "AuthBackendInterface",
    "AuthError",
    "AuthErrorCode",
    "InMemoryAuthBackend",
    # Ledger service
    "CategoryProtectedError",
    "InvalidTransactionError",
    "LedgerError",
    "LedgerService",
    "NoGroupSelectedError",
    "NotAuthenticatedError",
    "PermissionDeniedError",
    "UserNotFoundError",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DocumentStoreInterface",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryAuditStorage",
    "InMemoryDocumentStore",
    "InMemorySnapshotStore",
    "JsonFileSnapshotStore",
    "NotFoundError",
    "SnapshotStoreInterface",
    "StorageError",
]
