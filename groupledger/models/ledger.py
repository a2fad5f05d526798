"""
Core Data Models for Group Ledger

These models define the schemas for everything that flows between the
flows, the ledger service and the document store.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage, snapshots and logging

DESIGN DECISION: Amounts are unsigned Decimals. The sign of a transaction
is carried by its TransactionType, never by the amount itself.
"""

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
DEFAULT_CATEGORY_COLOR = "#808080"


def new_document_id() -> str:
    """Generate a document identifier."""
    return uuid4().hex


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class DatePeriod(str, Enum):
    """
    Period filter for transaction lists.

    Periods are calendar based and relative to "now":
    the current ISO week, month or year.
    """
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


# =============================================================================
# DOMAIN MODELS
# =============================================================================

class User(BaseModel):
    """
    A signed-up user.

    Created at sign-up and mirrored into the document store under users/{id}.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1, description="Auth provider user id")
    name: str = Field(default="", max_length=100)
    email: str = Field(default="", max_length=254)
    created_at: datetime = Field(default_factory=datetime.now)


class Group(BaseModel):
    """
    A shared ledger.

    The owner can delete the group; members can read and write
    its transactions.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_document_id)
    name: str = Field(..., min_length=1, max_length=100)
    owner: str = Field(..., min_length=1, description="User id of the owner")
    members: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("members")
    @classmethod
    def dedupe_members(cls, v: list[str]) -> list[str]:
        """Members are a set; keep first-seen order."""
        return list(dict.fromkeys(v))

    def is_member(self, user_id: str) -> bool:
        return user_id in self.members

    def is_owner(self, user_id: str) -> bool:
        return self.owner == user_id


class Category(BaseModel):
    """
    A label applied to a transaction.

    Default categories have no group_id. Custom categories are scoped
    to the group they were created in.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default="", description="Empty until stored")
    name: str = Field(..., min_length=1, max_length=50)
    icon: str = Field(default="📦", max_length=16)
    color: str = Field(default=DEFAULT_CATEGORY_COLOR)
    group_id: Optional[str] = None

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """Colors are stored as #RRGGBB."""
        if not v.startswith("#"):
            v = f"#{v}"
        if not HEX_COLOR_PATTERN.match(v):
            raise ValueError(f"Invalid color: {v}. Expected #RRGGBB")
        return v.upper()

    @property
    def is_custom(self) -> bool:
        return self.group_id is not None


class Transaction(BaseModel):
    """
    A single income or expense record.

    Belongs to exactly one group (the group is the document path,
    not a field on the record).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_document_id)
    title: str = Field(..., max_length=200)
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Unsigned amount; sign comes from type",
    )
    date: datetime = Field(default_factory=datetime.now)
    category: Category
    type: TransactionType
    note: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("note")
    @classmethod
    def empty_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign implied by the type."""
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount


# =============================================================================
# DEFAULT CATEGORIES
# =============================================================================

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="food", name="Food", icon="🍽️", color="#FF9500"),
    Category(id="transport", name="Transport", icon="🚗", color="#007AFF"),
    Category(id="entertainment", name="Entertainment", icon="🎮", color="#AF52DE"),
    Category(id="shopping", name="Shopping", icon="🛍️", color="#FF2D55"),
    Category(id="salary", name="Salary", icon="💰", color="#34C759"),
    Category(id="investment", name="Investment", icon="📈", color="#5AC8FA"),
    Category(id="other", name="Other", icon="📦", color="#8E8E93"),
)

INCOME_CATEGORY_IDS = frozenset({"salary", "investment", "other"})
INCOME_ONLY_CATEGORY_IDS = frozenset({"salary", "investment"})


def is_default_category(category: Category) -> bool:
    return any(c.id == category.id for c in DEFAULT_CATEGORIES)


def default_category(category_id: str) -> Optional[Category]:
    """Look up a default category by id."""
    for category in DEFAULT_CATEGORIES:
        if category.id == category_id:
            return category
    return None


def default_category_by_name(name: str) -> Optional[Category]:
    """Look up a default category by display name or id (case-insensitive)."""
    wanted = name.strip().lower()
    for category in DEFAULT_CATEGORIES:
        if category.name.lower() == wanted or category.id == wanted:
            return category
    return None


OTHER_CATEGORY = default_category("other")


# =============================================================================
# AGGREGATION RESULTS
# =============================================================================

class CategoryExpense(BaseModel):
    """One row of the per-category expense breakdown."""

    category: Category
    amount: Decimal = Field(ge=0)


class LedgerSummary(BaseModel):
    """Totals over a list of transactions."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    category_expenses: list[CategoryExpense] = Field(default_factory=list)
    transaction_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_balance(self) -> "LedgerSummary":
        """Balance is always income minus expenses."""
        if self.balance != self.total_income - self.total_expenses:
            raise ValueError("Balance must equal total income minus total expenses")
        return self


class BudgetStatus(BaseModel):
    """How much of a category budget has been used."""

    category: Category
    budget: Decimal = Field(ge=0)
    spent: Decimal = Field(ge=0)
    remaining: Decimal
    is_over_budget: bool
    usage_ratio: float = Field(ge=0.0)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'too_short')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating user input before a backend call.

    Errors block the call. Warnings are shown but don't block.
    """

    subject: str = Field(
        ...,
        description="What was validated (e.g., 'sign_in', 'transaction')"
    )
    validated_at: datetime = Field(default_factory=datetime.now)
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]

    def first_error(self) -> Optional[str]:
        for issue in self.issues:
            if issue.severity == "error":
                return issue.message
        return None
