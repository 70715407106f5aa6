"""
Tests for command input validation.
"""

import pytest
from datetime import date
from decimal import Decimal

from budgetbook.config import LedgerSettings
from budgetbook.errors import ValidationError
from budgetbook.models.ledger import Category, Month, ValidationIssue
from budgetbook.validation import LedgerValidator


TODAY = date(2026, 10, 19)


@pytest.fixture
def month():
    return Month(key="2026-10", categories={"Food": Category(name="Food", base=100)})


class TestLedgerValidator:
    """Tests for the per-command validators."""

    def test_income_defaults_date_to_today(self, validator):
        amount, note, entry_date = validator.validate_income("10", "Gift", None, TODAY)
        assert (amount, note, entry_date) == (Decimal("10.00"), "Gift", TODAY)

    def test_income_collects_all_errors(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_income(None, "", "yesterday", TODAY)
        assert set(exc_info.value.fields) == {"amount", "note", "date"}

    def test_large_amount_is_warning_only(self):
        validator = LedgerValidator(LedgerSettings(max_reasonable_amount=100))
        amount, _, _ = validator.validate_income(5000, "Bonus", None, TODAY)
        assert amount == Decimal("5000.00")

    def test_expense_checks_category(self, validator, month):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_expense(month, "Rent", 10, "x", None, TODAY)
        assert exc_info.value.code == "VALIDATION_FAILED"
        assert "Rent" in exc_info.value.message

    def test_expense_requires_category(self, validator, month):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_expense(month, None, 10, "x", None, TODAY)
        assert exc_info.value.fields == ["category"]

    def test_category_name_length(self, validator):
        with pytest.raises(ValidationError):
            validator.validate_category("x" * 101, 10)

    def test_transfer_requires_both_categories(self, validator, month):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_transfer(month, "", "Food", 10)
        assert exc_info.value.fields == ["from_category"]

    def test_transfer_ok(self, validator, month):
        month.categories["Fun"] = Category(name="Fun", base=50)
        assert validator.validate_transfer(month, "Food", "Fun", "5") == ("Food", "Fun", Decimal("5.00"))

    def test_note_must_be_text(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_income(10, 42, None, TODAY)
        assert exc_info.value.issues[0].issue_type == "invalid_format"

    def test_note_length_limit(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_income(10, "x" * 501, None, TODAY)
        issue = exc_info.value.issues[0]
        assert (issue.field, issue.issue_type) == ("note", "too_long")

    def test_amount_above_ceiling(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_income("1e30", "Lottery", None, TODAY)
        issue = exc_info.value.issues[0]
        assert (issue.field, issue.issue_type) == ("amount", "out_of_range")


class TestUserFriendlySummary:
    """Tests for the message shown when a command is rejected."""

    def test_no_issues(self, validator):
        assert "All checks passed" in validator.get_user_friendly_summary([])

    def test_errors_and_warnings(self, validator):
        issues = [
            ValidationIssue(
                field="amount", issue_type="missing", message="Amount is required",
                severity="error", suggested_fix="Enter a number",
            ),
            ValidationIssue(
                field="date", issue_type="future_date", message="Date is in the future",
                severity="warning",
            ),
        ]
        summary = validator.get_user_friendly_summary(issues)
        assert "Amount is required" in summary
        assert "Enter a number" in summary
        assert "Date is in the future" in summary

    def test_rejection_carries_summary(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_income(None, "x" * 501, None, TODAY)
        summary = exc_info.value.summary

        assert summary.startswith("❌ This could not be saved:")
        assert "Amount is required" in summary
        assert "Note must be at most 500 characters" in summary
        assert "💡 Shorten the text" in summary
