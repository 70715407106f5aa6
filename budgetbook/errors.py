"""
Error Taxonomy for BudgetBook

Every error raised by the engine is recoverable. Nothing here is fatal to
the process, and every failing command leaves the ledger exactly as it was.

- ValidationError: bad user input (amount, note, unknown category, self-transfer)
- InsufficientFundsError: a transfer exceeds the source's available balance
- InvalidStateError: the ledger is not in a state that allows the command
- BackupFormatError: a restore file is malformed
"""

from decimal import Decimal
from typing import Optional

from budgetbook.models.ledger import ValidationIssue


def format_issue_summary(issues: list[ValidationIssue]) -> str:
    """Render validation issues as the message shown to the user."""
    if not issues:
        return "✅ All checks passed."

    lines = []
    errors = [issue for issue in issues if issue.severity == "error"]
    warnings = [issue for issue in issues if issue.severity == "warning"]

    if errors:
        lines.append("❌ This could not be saved:")
        for issue in errors:
            lines.append(f"   • {issue.message}")
            if issue.suggested_fix:
                lines.append(f"     💡 {issue.suggested_fix}")

    if warnings:
        if lines:
            lines.append("")
        lines.append("⚠️ Please verify the following:")
        for issue in warnings:
            lines.append(f"   • {issue.message}")

    return "\n".join(lines)


class BudgetBookError(Exception):
    """Base class for all BudgetBook errors."""

    def __init__(self, message: str, code: str = "BUDGETBOOK_ERROR"):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(BudgetBookError):
    """
    User input was rejected.

    Attributes:
        issues: All issues found, including non-blocking warnings.
    """

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        errors = [issue.message for issue in issues if issue.severity == "error"]
        super().__init__("; ".join(errors) or "Invalid input", code="VALIDATION_FAILED")

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues if issue.severity == "error"]

    @property
    def summary(self) -> str:
        """Every issue, formatted for display."""
        return format_issue_summary(self.issues)


class InsufficientFundsError(BudgetBookError):
    """
    A transfer would overdraw its source category.

    Attributes:
        category: The source category.
        requested: The amount asked for.
        available: What the category actually had available.
    """

    def __init__(self, category: str, requested: Decimal, available: Decimal):
        super().__init__(
            f"Not enough available in '{category}': requested {requested}, "
            f"available {available}",
            code="INSUFFICIENT_FUNDS",
        )
        self.category = category
        self.requested = requested
        self.available = available


class InvalidStateError(BudgetBookError):
    """The ledger cannot perform the command in its current state."""

    def __init__(self, message: str, month_key: Optional[str] = None):
        super().__init__(message, code="INVALID_STATE")
        self.month_key = month_key


class BackupFormatError(BudgetBookError):
    """A backup could not be restored. Nothing was changed."""

    def __init__(self, message: str):
        super().__init__(message, code="BACKUP_FORMAT")
