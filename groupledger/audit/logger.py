"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of who changed a shared ledger
2. Debugging capability
3. A history members of a group can look at

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

from typing import Optional

import structlog

from groupledger.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from groupledger.models.ledger import Category, Transaction, ValidationResult
from groupledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("groupledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def log_user_signed_up(self, user_id: str, email: str) -> None:
        await self.log(AuditEventBuilder.user_signed_up(user_id=user_id, email=email))

    async def log_user_signed_in(self, user_id: str, method: str = "password") -> None:
        await self.log(AuditEventBuilder.user_signed_in(user_id=user_id, method=method))

    async def log_user_signed_out(self, user_id: Optional[str]) -> None:
        await self.log(AuditEventBuilder.user_signed_out(user_id=user_id))

    async def log_password_reset_requested(self, email: str) -> None:
        await self.log(AuditEventBuilder.password_reset_requested(email=email))

    async def log_auth_failed(self, action: str, code: str, message: str) -> None:
        """Log a rejected auth attempt."""
        await self.log(AuditEventBuilder.auth_failed(action=action, code=code, message=message))

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    async def log_group_created(self, group_id: str, name: str, actor_id: str) -> None:
        await self.log(AuditEventBuilder.group_created(
            group_id=group_id,
            name=name,
            actor_id=actor_id,
        ))

    async def log_group_selected(self, group_id: str, actor_id: Optional[str]) -> None:
        await self.log(AuditEventBuilder.group_selected(group_id=group_id, actor_id=actor_id))

    async def log_group_deleted(
        self,
        group_id: str,
        name: str,
        actor_id: str,
        transaction_count: int,
    ) -> None:
        """Log a group deletion, including how many transactions went with it."""
        await self.log(AuditEventBuilder.group_deleted(
            group_id=group_id,
            name=name,
            actor_id=actor_id,
            transaction_count=transaction_count,
        ))

    async def log_member_added(
        self,
        group_id: str,
        member_id: str,
        actor_id: Optional[str],
    ) -> None:
        await self.log(AuditEventBuilder.member_added(
            group_id=group_id,
            member_id=member_id,
            actor_id=actor_id,
        ))

    # -------------------------------------------------------------------------
    # Transactions and categories
    # -------------------------------------------------------------------------

    async def log_transaction_added(
        self,
        transaction: Transaction,
        group_id: str,
        actor_id: Optional[str],
    ) -> None:
        await self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction.id,
            title=transaction.title,
            amount=str(transaction.amount),
            transaction_type=transaction.type.value,
            group_id=group_id,
            actor_id=actor_id,
        ))

    async def log_transaction_updated(
        self,
        transaction_id: str,
        group_id: str,
        actor_id: Optional[str],
    ) -> None:
        await self.log(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            group_id=group_id,
            actor_id=actor_id,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: str,
        group_id: str,
        actor_id: Optional[str],
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            group_id=group_id,
            actor_id=actor_id,
        ))

    async def log_category_changed(
        self,
        event_type: AuditEventType,
        category: Category,
        group_id: str,
        actor_id: Optional[str],
    ) -> None:
        """Log a category add, update or delete."""
        await self.log(AuditEventBuilder.category_changed(
            event_type=event_type,
            category_id=category.id,
            name=category.name,
            group_id=group_id,
            actor_id=actor_id,
        ))

    # -------------------------------------------------------------------------
    # Local data
    # -------------------------------------------------------------------------

    async def log_budget_set(self, category_id: str, amount: str) -> None:
        await self.log(AuditEventBuilder.budget_set(category_id=category_id, amount=amount))

    async def log_data_cleared(self, transaction_count: int, budget_count: int) -> None:
        await self.log(AuditEventBuilder.data_cleared(
            transaction_count=transaction_count,
            budget_count=budget_count,
        ))

    async def log_data_exported(self, transaction_count: int) -> None:
        await self.log(AuditEventBuilder.data_exported(transaction_count=transaction_count))

    # -------------------------------------------------------------------------
    # Failures
    # -------------------------------------------------------------------------

    async def log_validation_failed(self, result: ValidationResult) -> None:
        """Log validation failure."""
        await self.log(AuditEventBuilder.validation_failed(
            subject=result.subject,
            issues=[issue.model_dump() for issue in result.issues],
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))

    async def log_backend_error(
        self,
        operation: str,
        error_message: str,
        group_id: Optional[str] = None,
    ) -> None:
        """Log a failed document store or auth backend call."""
        await self.log(AuditEventBuilder.backend_error(
            operation=operation,
            error_message=error_message,
            group_id=group_id,
        ))

    async def log_operation_rejected(
        self,
        operation: str,
        reason: str,
        error_type: str,
        group_id: Optional[str] = None,
    ) -> None:
        """Log a request the ledger refused (missing group, permissions, protected data)."""
        await self.log(AuditEventBuilder.operation_rejected(
            operation=operation,
            reason=reason,
            error_type=error_type,
            group_id=group_id,
        ))
