"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets can back the document store because:
1. Group members can look at the raw ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

Each collection path ("groups/<gid>/transactions") gets its own worksheet.
Each document is one row: [id, data_json].

TRADEOFFS:
- Not suitable for high-volume data (fine for household ledgers)
- No transactions across documents
- Limited query capabilities (we filter in Python)
"""

import json
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from groupledger.config import GoogleSheetsSettings, get_settings
from groupledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from groupledger.models.ledger import new_document_id
from groupledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DocumentSnapshot,
    DocumentStoreInterface,
    DuplicateError,
    NotFoundError,
    StorageError,
    document_path,
    matches_query,
    split_document_path,
)


logger = structlog.get_logger(__name__)

DOCUMENT_COLUMNS = ["id", "data_json"]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "actor_id",
    "group_id",
    "description",
    "details_json",
    "error_code",
    "error_message",
]

# Sheets tab titles are limited to 100 characters
MAX_SHEET_TITLE = 100


def collection_sheet_title(collection: str) -> str:
    """Worksheet title for a collection path."""
    title = collection.strip("/").replace("/", "__")
    if len(title) > MAX_SHEET_TITLE:
        raise ValueError(f"Collection path too long for a worksheet title: {collection}")
    return title


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and caches worksheets. Only connection
    establishment is retried; document writes are single calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(
        self,
        title: str,
        header: list[str],
        create: bool = True,
    ) -> Optional[gspread.Worksheet]:
        """
        Get a worksheet by title, creating it with a header row if missing.

        With create=False a missing worksheet returns None.
        """
        if title in self._worksheets:
            return self._worksheets[title]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            if not create:
                return None
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(header),
            )
            sheet.append_row(header)

        self._worksheets[title] = sheet
        return sheet

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS)


class GoogleSheetsDocumentStore(DocumentStoreInterface):
    """
    Google Sheets implementation of the document store.

    Documents are stored as rows with the fields JSON-serialized
    into the second column.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self, collection: str, create: bool = True) -> Optional[gspread.Worksheet]:
        return self._client.get_worksheet(
            collection_sheet_title(collection),
            DOCUMENT_COLUMNS,
            create=create,
        )

    def _rows(self, sheet: gspread.Worksheet) -> list[list[str]]:
        # Skip header
        return sheet.get_all_values()[1:]

    def _find_row(self, sheet: gspread.Worksheet, doc_id: str) -> tuple[int, Optional[dict]]:
        """Return (sheet_row_number, data) for a document id, or (0, None)."""
        for idx, row in enumerate(self._rows(sheet), start=2):  # Row 1 is header
            if row and row[0] == doc_id:
                return idx, self._decode(row)
        return 0, None

    def _decode(self, row: list[str]) -> dict:
        if len(row) < 2 or not row[1]:
            return {}
        return json.loads(row[1])

    def _encode(self, data: dict[str, Any]) -> str:
        return json.dumps(data, ensure_ascii=False, default=str)

    async def get_document(self, path: str) -> Optional[DocumentSnapshot]:
        collection, doc_id = split_document_path(path)
        try:
            sheet = self._sheet(collection, create=False)
            if sheet is None:
                return None
            _, data = self._find_row(sheet, doc_id)
        except Exception as e:
            raise StorageError(f"Failed to get document {path}: {e}")
        if data is None:
            return None
        return DocumentSnapshot(id=doc_id, path=path, data=data)

    async def set_document(
        self,
        path: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        collection, doc_id = split_document_path(path)
        try:
            sheet = self._sheet(collection)
            row_number, existing = self._find_row(sheet, doc_id)
            if existing is None:
                sheet.append_row([doc_id, self._encode(data)], value_input_option="RAW")
                return
            if merge:
                existing.update(data)
                data = existing
            sheet.update_cell(row_number, 2, self._encode(data))
        except Exception as e:
            raise StorageError(f"Failed to write document {path}: {e}")

    async def update_document(self, path: str, data: dict[str, Any]) -> None:
        collection, doc_id = split_document_path(path)
        try:
            sheet = self._sheet(collection, create=False)
            row_number, existing = (0, None) if sheet is None else self._find_row(sheet, doc_id)
            if existing is None:
                raise NotFoundError(f"Document not found: {path}")
            existing.update(data)
            sheet.update_cell(row_number, 2, self._encode(existing))
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update document {path}: {e}")

    async def delete_document(self, path: str) -> bool:
        collection, doc_id = split_document_path(path)
        try:
            sheet = self._sheet(collection, create=False)
            if sheet is None:
                return False
            row_number, existing = self._find_row(sheet, doc_id)
            if existing is None:
                return False
            sheet.delete_rows(row_number)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete document {path}: {e}")

    async def add_document(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = new_document_id()
        try:
            sheet = self._sheet(collection)
            _, existing = self._find_row(sheet, doc_id)
            if existing is not None:
                raise DuplicateError(f"Document already exists: {document_path(collection, doc_id)}")
            sheet.append_row([doc_id, self._encode(data)], value_input_option="RAW")
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to add document to {collection}: {e}")
        return doc_id

    async def array_union(
        self,
        path: str,
        field: str,
        values: list[Any],
    ) -> list[Any]:
        """
        Read-modify-write of one cell.

        Atomic within this process; two processes writing the same row
        can still race.
        """
        collection, doc_id = split_document_path(path)
        try:
            sheet = self._sheet(collection, create=False)
            row_number, existing = (0, None) if sheet is None else self._find_row(sheet, doc_id)
            if existing is None:
                raise NotFoundError(f"Document not found: {path}")
            current = existing.get(field)
            array = list(current) if isinstance(current, list) else []
            for value in values:
                if value not in array:
                    array.append(value)
            existing[field] = array
            sheet.update_cell(row_number, 2, self._encode(existing))
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update document {path}: {e}")
        return array

    async def list_documents(self, collection: str) -> list[DocumentSnapshot]:
        try:
            sheet = self._sheet(collection, create=False)
            rows = [] if sheet is None else self._rows(sheet)
        except Exception as e:
            raise StorageError(f"Failed to list {collection}: {e}")

        documents = []
        for row in rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                data = self._decode(row)
            except json.JSONDecodeError:
                logger.warning("malformed_document_row", collection=collection, doc_id=row[0])
                continue
            documents.append(DocumentSnapshot(
                id=row[0],
                path=document_path(collection, row[0]),
                data=data,
            ))
        return documents

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


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            actor_id=safe_get(6) or None,
            group_id=safe_get(7) or None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_code=safe_get(10) or None,
            error_message=safe_get(11) or None,
        )

    def _all_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, IndexError):
                continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.warning("audit_sheet_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        try:
            events = [
                e for e in self._all_events()
                if e.entity_type == entity_type and e.entity_id == entity_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        try:
            events = self._all_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        # Newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
