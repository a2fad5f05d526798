"""
Input Validation

DESIGN DECISION: Everything a user types is checked locally before any
backend call is made:

CREDENTIALS:
- Required fields present
- Email format
- Password length

TRANSACTIONS:
- Title present
- Amount greater than zero
- Category present
- Future date detection (warning only)

IMPORTANT: Validation NEVER silently fixes issues.
Errors block the backend call; warnings are shown to the user.
"""

import re
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from groupledger.config import get_settings
from groupledger.models.ledger import (
    Category,
    ValidationIssue,
    ValidationResult,
)


EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


class CredentialValidator:
    """Validates sign-in, sign-up and password reset input."""

    def __init__(self, min_password_length: Optional[int] = None):
        """
        Initialize validator.

        Args:
            min_password_length: Override for the configured minimum.
                                 If None, the value from settings is used.
        """
        if min_password_length is None:
            min_password_length = get_settings().app.min_password_length
        self._min_password_length = min_password_length

    def _check_email(self, email: str) -> list[ValidationIssue]:
        email = email.strip()
        if not email:
            return [ValidationIssue(
                field="email",
                issue_type="missing",
                message="Please enter your email address",
                severity="error",
            )]
        if not EMAIL_PATTERN.match(email):
            return [ValidationIssue(
                field="email",
                issue_type="invalid_format",
                message="Please enter a valid email address",
                severity="error",
            )]
        return []

    def _check_password(self, password: str) -> list[ValidationIssue]:
        if not password:
            return [ValidationIssue(
                field="password",
                issue_type="missing",
                message="Please enter your password",
                severity="error",
            )]
        if len(password) < self._min_password_length:
            return [ValidationIssue(
                field="password",
                issue_type="too_short",
                message=(
                    f"Password must be at least {self._min_password_length} characters"
                ),
                severity="error",
            )]
        return []

    def validate_sign_in(self, email: str, password: str) -> ValidationResult:
        issues = self._check_email(email) + self._check_password(password)
        return ValidationResult(subject="sign_in", issues=issues)

    def validate_sign_up(self, email: str, password: str, name: str) -> ValidationResult:
        issues = []
        if not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Please enter your name",
                severity="error",
            ))
        issues.extend(self._check_email(email))
        issues.extend(self._check_password(password))
        return ValidationResult(subject="sign_up", issues=issues)

    def validate_password_reset(self, email: str) -> ValidationResult:
        return ValidationResult(subject="password_reset", issues=self._check_email(email))


class TransactionValidator:
    """
    Validates a transaction draft before it is written.

    Works on raw inputs rather than a Transaction model so that a zero
    or missing amount produces a readable issue instead of a pydantic error.
    """

    def __init__(self, future_date_tolerance_days: Optional[int] = None):
        if future_date_tolerance_days is None:
            future_date_tolerance_days = get_settings().app.future_date_tolerance_days
        self._future_tolerance = timedelta(days=future_date_tolerance_days)

    def validate(
        self,
        title: str,
        amount: Optional[Decimal],
        category: Optional[Category],
        date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> ValidationResult:
        """
        Validate a transaction draft.

        Args:
            title: Transaction title as typed
            amount: Parsed amount, or None if it could not be parsed
            category: Selected category
            date: Transaction date (defaults to now)
            now: Reference time for the future-date check

        Returns:
            ValidationResult with all issues found
        """
        issues = []

        if not title or not title.strip():
            issues.append(ValidationIssue(
                field="title",
                issue_type="missing",
                message="Please enter a title",
                severity="error",
            ))

        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Please enter an amount",
                severity="error",
            ))
        elif amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))

        if category is None:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Please choose a category",
                severity="error",
            ))

        now = now or datetime.now()
        if date is not None and date > now + self._future_tolerance:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Transaction date ({date.date()}) is in the future",
                severity="warning",
            ))

        return ValidationResult(subject="transaction", issues=issues)


def get_user_friendly_summary(result: ValidationResult) -> str:
    """
    Generate a user-friendly summary of validation results.

    This is what we show next to the form.
    """
    if result.is_valid and not result.warnings:
        return "✅ All checks passed!"

    lines = []
    if result.has_errors:
        lines.append("❌ Please fix the following:")
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"   • {issue.message}")

    if result.warnings:
        if lines:
            lines.append("")
        lines.append("⚠️ Please verify the following:")
        for warning in result.warnings:
            lines.append(f"   • {warning}")

    return "\n".join(lines)
