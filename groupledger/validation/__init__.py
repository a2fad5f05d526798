"""Validation package."""

from groupledger.validation.amount import evaluate_amount_expression
from groupledger.validation.validator import (
    EMAIL_PATTERN,
    CredentialValidator,
    TransactionValidator,
    get_user_friendly_summary,
)

__all__ = [
    "EMAIL_PATTERN",
    "CredentialValidator",
    "TransactionValidator",
    "evaluate_amount_expression",
    "get_user_friendly_summary",
]
