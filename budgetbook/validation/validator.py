"""
Command Input Validation

DESIGN DECISION: Validation happens in two distinct stages, before any
state is touched:

STAGE 1 - INPUT VALIDATION:
- Amount present, numeric, finite, strictly positive
- Description present and within length limits
- Date parseable
- Category name present

STAGE 2 - LEDGER VALIDATION:
- Referenced categories exist in the open month
- Transfers are not to self
- Sanity checks (unusually large amounts, far-future dates) as warnings

Errors abort the command with ValidationError. Warnings never block:
users must be able to record real overspending or a big bonus.

IMPORTANT: Validation NEVER silently fixes issues.
Amounts are only normalized to cents.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional, Union

import structlog

from budgetbook.config import LedgerSettings, get_settings
from budgetbook.errors import ValidationError, format_issue_summary
from budgetbook.models.ledger import (
    CATEGORY_NAME_MAX_LENGTH,
    MAX_AMOUNT,
    NOTE_MAX_LENGTH,
    AmountOutOfRangeError,
    Month,
    ValidationIssue,
    to_money,
)


DateInput = Union[date, str, None]


def _error(field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
        suggested_fix=fix,
    )


def _warning(field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="warning",
        suggested_fix=fix,
    )


class LedgerValidator:
    """
    Validates command input for the transaction engine.

    Each validate_* method returns the cleaned values or raises
    ValidationError carrying every issue found.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings().ledger
        self._logger = structlog.get_logger(__name__)

    # -------------------------------------------------------------------------
    # Stage 1: input checks
    # -------------------------------------------------------------------------

    def _validate_amount(
        self,
        value: Any,
        field: str = "amount",
    ) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None, [_error(field, "missing", f"{field.capitalize()} is required")]

        try:
            amount = to_money(value)
        except AmountOutOfRangeError:
            symbol = self._settings.currency_symbol
            return None, [_error(
                field, "out_of_range",
                f"{field.capitalize()} is too large (maximum {symbol}{MAX_AMOUNT:,})",
            )]
        except ValueError:
            return None, [_error(
                field, "invalid_format", f"{field.capitalize()} must be a number",
                "Enter a number such as 12.50",
            )]

        if amount <= 0:
            return None, [_error(
                field, "invalid_value", f"{field.capitalize()} must be greater than zero",
            )]

        issues = []
        if amount > Decimal(str(self._settings.max_reasonable_amount)):
            symbol = self._settings.currency_symbol
            issues.append(_warning(
                field, "suspicious_value",
                f"{field.capitalize()} ({symbol}{amount:,.2f}) seems unusually high",
                "Please verify this amount is correct",
            ))
        return amount, issues

    def _validate_text(
        self,
        value: Optional[str],
        field: str,
        max_length: Optional[int] = None,
    ) -> tuple[str, list[ValidationIssue]]:
        if value is not None and not isinstance(value, str):
            return "", [_error(field, "invalid_format", f"{field.capitalize()} must be text")]

        text = (value or "").strip()
        if not text:
            return "", [_error(field, "missing", f"{field.capitalize()} is required")]
        if max_length is not None and len(text) > max_length:
            return text, [_error(
                field, "too_long",
                f"{field.capitalize()} must be at most {max_length} characters",
                "Shorten the text",
            )]
        return text, []

    def _validate_date(self, value: DateInput, today: date) -> tuple[Optional[date], list[ValidationIssue]]:
        if value is None or value == "":
            return today, []

        if isinstance(value, str):
            try:
                value = date.fromisoformat(value.strip())
            except ValueError:
                return None, [_error(
                    "date", "invalid_format", f"Date ({value}) is not a valid date",
                    "Use YYYY-MM-DD",
                )]
        elif not isinstance(value, date):
            return None, [_error("date", "invalid_format", "Date must be a calendar date")]

        issues = []
        max_future = today + timedelta(days=self._settings.future_date_tolerance_days)
        if value > max_future:
            issues.append(_warning(
                "date", "future_date", f"Date ({value}) is in the future",
                "Please verify the date is correct",
            ))
        return value, issues

    # -------------------------------------------------------------------------
    # Stage 2: ledger checks
    # -------------------------------------------------------------------------

    def _validate_category_exists(self, month: Month, name: str, field: str) -> list[ValidationIssue]:
        if not name or month.get_category(name) is not None:
            return []
        return [_error(
            field, "unknown_category", f"Category '{name}' does not exist",
            "Add the category first",
        )]

    def _raise_for_issues(self, command: str, issues: list[ValidationIssue]) -> None:
        """Raise on any error; log warnings that are allowed through."""
        if any(issue.severity == "error" for issue in issues):
            raise ValidationError(issues)

        for issue in issues:
            self._logger.warning(
                "validation_warning",
                command=command,
                field=issue.field,
                issue_type=issue.issue_type,
                message=issue.message,
            )

    # -------------------------------------------------------------------------
    # Per-command validation
    # -------------------------------------------------------------------------

    def validate_income(
        self,
        amount: Any,
        note: Optional[str],
        entry_date: DateInput,
        today: date,
    ) -> tuple[Decimal, str, date]:
        clean_amount, issues = self._validate_amount(amount)
        clean_note, note_issues = self._validate_text(note, "note", NOTE_MAX_LENGTH)
        clean_date, date_issues = self._validate_date(entry_date, today)

        issues = issues + note_issues + date_issues
        self._raise_for_issues("add_income", issues)
        return clean_amount, clean_note, clean_date

    def validate_expense(
        self,
        month: Month,
        category: Optional[str],
        amount: Any,
        note: Optional[str],
        entry_date: DateInput,
        today: date,
    ) -> tuple[str, Decimal, str, date]:
        """No budget check here: over budget is a display state, not an error."""
        clean_category, issues = self._validate_text(category, "category")
        issues += self._validate_category_exists(month, clean_category, "category")

        clean_amount, amount_issues = self._validate_amount(amount)
        clean_note, note_issues = self._validate_text(note, "note", NOTE_MAX_LENGTH)
        clean_date, date_issues = self._validate_date(entry_date, today)

        issues = issues + amount_issues + note_issues + date_issues
        self._raise_for_issues("add_expense", issues)
        return clean_category, clean_amount, clean_note, clean_date

    def validate_category(self, name: Optional[str], goal: Any) -> tuple[str, Decimal]:
        clean_name, issues = self._validate_text(name, "name", CATEGORY_NAME_MAX_LENGTH)

        clean_goal, goal_issues = self._validate_amount(goal, field="goal")

        issues = issues + goal_issues
        self._raise_for_issues("add_category", issues)
        return clean_name, clean_goal

    def validate_transfer(
        self,
        month: Month,
        from_category: Optional[str],
        to_category: Optional[str],
        amount: Any,
    ) -> tuple[str, str, Decimal]:
        """Funds are checked by the engine, after these checks pass."""
        source, issues = self._validate_text(from_category, "from_category")
        target, target_issues = self._validate_text(to_category, "to_category")
        issues += target_issues

        if source and source == target:
            issues.append(_error(
                "to_category", "self_transfer", "Cannot transfer a category to itself",
                "Pick two different categories",
            ))

        issues += self._validate_category_exists(month, source, "from_category")
        issues += self._validate_category_exists(month, target, "to_category")

        clean_amount, amount_issues = self._validate_amount(amount)
        issues += amount_issues

        self._raise_for_issues("transfer", issues)
        return source, target, clean_amount

    def get_user_friendly_summary(self, issues: list[ValidationIssue]) -> str:
        """
        Generate a user-friendly summary of validation issues.

        This is what we show to the user when a command is rejected.
        """
        return format_issue_summary(issues)
