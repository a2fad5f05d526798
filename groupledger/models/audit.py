"""
Audit Models for Group Ledger

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of who changed what in a shared group
2. Debugging information when a backend call fails
3. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Authentication
    USER_SIGNED_UP = "user_signed_up"
    USER_SIGNED_IN = "user_signed_in"
    USER_SIGNED_OUT = "user_signed_out"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    AUTH_FAILED = "auth_failed"

    # Groups
    GROUP_CREATED = "group_created"
    GROUP_SELECTED = "group_selected"
    GROUP_DELETED = "group_deleted"
    MEMBER_ADDED = "member_added"

    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Categories
    CATEGORY_ADDED = "category_added"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"

    # Local data
    BUDGET_SET = "budget_set"
    DATA_CLEARED = "data_cleared"
    DATA_EXPORTED = "data_exported"

    # Validation / system
    VALIDATION_FAILED = "validation_failed"
    SYSTEM_ERROR = "system_error"
    BACKEND_ERROR = "backend_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'group', 'transaction', 'category')"
    )
    entity_id: Optional[str] = None

    # Who did it, and in which group
    actor_id: Optional[str] = None
    group_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_id": self.actor_id,
            "group_id": self.group_id,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         actor_id, group_id, description, details_json, error_code, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.actor_id or "",
            self.group_id or "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_code or "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.group_created(group_id, name, actor_id)
        event = AuditEventBuilder.transaction_added(tx_id, title, amount, ...)
    """

    @staticmethod
    def user_signed_up(user_id: str, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_UP,
            entity_type="user",
            entity_id=user_id,
            actor_id=user_id,
            description=f"User signed up: {email}",
            details={"email": email},
        )

    @staticmethod
    def user_signed_in(user_id: str, method: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_IN,
            entity_type="user",
            entity_id=user_id,
            actor_id=user_id,
            description=f"User signed in with {method}",
            details={"method": method},
        )

    @staticmethod
    def user_signed_out(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_OUT,
            entity_type="user",
            entity_id=user_id,
            actor_id=user_id,
            description="User signed out",
        )

    @staticmethod
    def password_reset_requested(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_RESET_REQUESTED,
            entity_type="user",
            description="Password reset requested",
            details={"email": email},
        )

    @staticmethod
    def auth_failed(action: str, code: str, message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Authentication failed during {action}",
            error_code=code,
            error_message=message,
            details={"action": action},
        )

    @staticmethod
    def group_created(group_id: str, name: str, actor_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_CREATED,
            entity_type="group",
            entity_id=group_id,
            actor_id=actor_id,
            group_id=group_id,
            description=f"Group created: {name}",
            details={"name": name},
        )

    @staticmethod
    def group_selected(group_id: str, actor_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_SELECTED,
            severity=AuditSeverity.DEBUG,
            entity_type="group",
            entity_id=group_id,
            actor_id=actor_id,
            group_id=group_id,
            description="Group selected",
        )

    @staticmethod
    def group_deleted(group_id: str, name: str, actor_id: str, transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="group",
            entity_id=group_id,
            actor_id=actor_id,
            group_id=group_id,
            description=f"Group deleted: {name}",
            details={"name": name, "transactions_deleted": transaction_count},
        )

    @staticmethod
    def member_added(group_id: str, member_id: str, actor_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBER_ADDED,
            entity_type="group",
            entity_id=group_id,
            actor_id=actor_id,
            group_id=group_id,
            description="Member added to group",
            details={"member_id": member_id},
        )

    @staticmethod
    def transaction_added(
        transaction_id: str,
        title: str,
        amount: str,
        transaction_type: str,
        group_id: str,
        actor_id: Optional[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_id=actor_id,
            group_id=group_id,
            description=f"Transaction added: {title} ({transaction_type} {amount})",
            details={
                "title": title,
                "amount": amount,
                "type": transaction_type,
            },
        )

    @staticmethod
    def transaction_updated(transaction_id: str, group_id: str, actor_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_id=actor_id,
            group_id=group_id,
            description="Transaction updated",
        )

    @staticmethod
    def transaction_deleted(transaction_id: str, group_id: str, actor_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_id=actor_id,
            group_id=group_id,
            description="Transaction deleted",
        )

    @staticmethod
    def category_changed(
        event_type: AuditEventType,
        category_id: str,
        name: str,
        group_id: str,
        actor_id: Optional[str],
    ) -> AuditEvent:
        verb = event_type.value.split("_", 1)[1]
        return AuditEvent(
            event_type=event_type,
            entity_type="category",
            entity_id=category_id,
            actor_id=actor_id,
            group_id=group_id,
            description=f"Category {verb}: {name}",
            details={"name": name},
        )

    @staticmethod
    def budget_set(category_id: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SET,
            entity_type="budget",
            entity_id=category_id,
            description=f"Budget set for {category_id}: {amount}",
            details={"amount": amount},
        )

    @staticmethod
    def data_cleared(transaction_count: int, budget_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_CLEARED,
            severity=AuditSeverity.WARNING,
            description="Local transactions and budgets cleared",
            details={
                "transactions": transaction_count,
                "budgets": budget_count,
            },
        )

    @staticmethod
    def data_exported(transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_EXPORTED,
            description=f"Exported {transaction_count} transactions",
            details={"transactions": transaction_count},
        )

    @staticmethod
    def validation_failed(subject: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"Validation of {subject} failed with {len(issues)} issues",
            details={"subject": subject, "issues": issues},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def backend_error(
        operation: str,
        error_message: str,
        group_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKEND_ERROR,
            severity=AuditSeverity.ERROR,
            group_id=group_id,
            description=f"Backend call failed: {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        reason: str,
        error_type: str,
        group_id: Optional[str] = None,
    ) -> AuditEvent:
        """A request refused before reaching the backend (no group, not allowed, ...)."""
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            group_id=group_id,
            description=f"Operation rejected: {operation}",
            error_message=reason,
            details={"operation": operation, "error_type": error_type},
        )
