"""
Data Models Package

This package contains all Pydantic models used in Group Ledger.
All data flowing through the system must conform to these schemas.
"""

from groupledger.models.ledger import (
    DEFAULT_CATEGORIES,
    INCOME_CATEGORY_IDS,
    INCOME_ONLY_CATEGORY_IDS,
    OTHER_CATEGORY,
    BudgetStatus,
    Category,
    CategoryExpense,
    DatePeriod,
    Group,
    LedgerSummary,
    Transaction,
    TransactionType,
    User,
    ValidationIssue,
    ValidationResult,
    default_category,
    default_category_by_name,
    is_default_category,
    new_document_id,
)
from groupledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORIES",
    "INCOME_CATEGORY_IDS",
    "INCOME_ONLY_CATEGORY_IDS",
    "OTHER_CATEGORY",
    "BudgetStatus",
    "Category",
    "CategoryExpense",
    "DatePeriod",
    "Group",
    "LedgerSummary",
    "Transaction",
    "TransactionType",
    "User",
    "ValidationIssue",
    "ValidationResult",
    "default_category",
    "default_category_by_name",
    "is_default_category",
    "new_document_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
