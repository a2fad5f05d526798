"""Tests for input validation and amount entry."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from groupledger.models.ledger import default_category
from groupledger.validation import (
    CredentialValidator,
    TransactionValidator,
    evaluate_amount_expression,
    get_user_friendly_summary,
)


class TestCredentialValidator:
    """Tests for sign-in / sign-up input checks."""

    validator = CredentialValidator(min_password_length=6)

    def test_valid_sign_in(self):
        """Test that a well-formed email and password pass."""
        assert self.validator.validate_sign_in("alice@example.com", "secret1").is_valid

    def test_missing_fields(self):
        """Test that empty email and password are both reported."""
        result = self.validator.validate_sign_in("", "")
        assert result.error_count == 2
        assert {i.field for i in result.issues} == {"email", "password"}

    @pytest.mark.parametrize("email", ["alice", "alice@", "alice@example", "@example.com"])
    def test_bad_email_format(self, email):
        """Test that malformed emails are rejected."""
        result = self.validator.validate_sign_in(email, "secret1")
        assert not result.is_valid
        assert result.issues[0].issue_type == "invalid_format"

    def test_short_password(self):
        """Test the minimum password length."""
        result = self.validator.validate_sign_in("alice@example.com", "12345")
        assert not result.is_valid
        assert result.issues[0].issue_type == "too_short"
        assert "6" in result.first_error()

    def test_sign_up_requires_name(self):
        """Test that sign-up needs a name."""
        result = self.validator.validate_sign_up("alice@example.com", "secret1", "  ")
        assert not result.is_valid
        assert result.issues[0].field == "name"

    def test_password_reset_only_checks_email(self):
        """Test that reset needs just an email."""
        assert self.validator.validate_password_reset("alice@example.com").is_valid
        assert not self.validator.validate_password_reset("nope").is_valid

    def test_min_length_from_settings(self, monkeypatch):
        """Test that the configured minimum is used by default."""
        monkeypatch.setenv("MIN_PASSWORD_LENGTH", "10")
        validator = CredentialValidator()
        assert not validator.validate_sign_in("alice@example.com", "secret123").is_valid
        assert validator.validate_sign_in("alice@example.com", "secret1234").is_valid


class TestTransactionValidator:
    """Tests for transaction drafts."""

    validator = TransactionValidator(future_date_tolerance_days=1)
    food = default_category("food")

    def test_valid(self):
        """Test a complete draft."""
        result = self.validator.validate("Lunch", Decimal("120"), self.food)
        assert result.is_valid
        assert result.issues == []

    def test_blank_title(self):
        """Test that a whitespace title is rejected."""
        result = self.validator.validate("   ", Decimal("120"), self.food)
        assert result.first_error() == "Please enter a title"

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1")])
    def test_amount_must_be_positive(self, amount):
        """Test that zero and negative amounts are rejected."""
        result = self.validator.validate("Lunch", amount, self.food)
        assert not result.is_valid
        assert result.issues[0].field == "amount"

    def test_missing_amount_and_category(self):
        """Test that missing amount and category are both reported."""
        result = self.validator.validate("Lunch", None, None)
        assert {i.field for i in result.issues} == {"amount", "category"}

    def test_future_date_is_warning(self):
        """Test that a far-future date warns but doesn't block."""
        now = datetime(2024, 5, 15)
        result = self.validator.validate(
            "Lunch", Decimal("1"), self.food, date=now + timedelta(days=3), now=now
        )
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_date_within_tolerance(self):
        """Test that tomorrow is accepted silently."""
        now = datetime(2024, 5, 15)
        result = self.validator.validate(
            "Lunch", Decimal("1"), self.food, date=now + timedelta(hours=12), now=now
        )
        assert result.issues == []

    def test_summary_text(self):
        """Test the user-facing summary."""
        ok = self.validator.validate("Lunch", Decimal("1"), self.food)
        assert get_user_friendly_summary(ok).startswith("✅")

        bad = self.validator.validate("", Decimal("1"), self.food)
        assert "Please enter a title" in get_user_friendly_summary(bad)


class TestAmountExpression:
    """Tests for the amount calculator."""

    @pytest.mark.parametrize("text,expected", [
        ("120", Decimal("120.00")),
        (" 12.5 ", Decimal("12.50")),
        ("120 + 35", Decimal("155.00")),
        ("100-0.5", Decimal("99.50")),
        ("3 × 4.5", Decimal("13.50")),
        ("3*4", Decimal("12.00")),
        ("10 ÷ 3", Decimal("3.33")),
        ("2 / 3", Decimal("0.67")),
    ])
    def test_evaluates(self, text, expected):
        """Test supported operators and rounding."""
        assert evaluate_amount_expression(text) == expected

    def test_division_by_zero_is_zero(self):
        """Test that dividing by zero gives 0 instead of an error."""
        assert evaluate_amount_expression("5 ÷ 0") == Decimal("0.00")

    @pytest.mark.parametrize("text", ["", "abc", "1 + ", "1 + 2 + 3", "-5", "1 % 2"])
    def test_rejects_other_input(self, text):
        """Test that anything else raises ValueError."""
        with pytest.raises(ValueError):
            evaluate_amount_expression(text)

    @pytest.mark.parametrize("text", [
        "99999999999999999 × 99999999999999999",
        "1" * 40,
    ])
    def test_out_of_range_is_value_error(self, text):
        """Test that amounts too large to keep cents raise ValueError."""
        with pytest.raises(ValueError):
            evaluate_amount_expression(text)
