"""
Data Models Package

This package contains all Pydantic models used in BudgetBook.
All data flowing through the system must conform to these schemas.
"""

from budgetbook.models.ledger import (
    LEDGER_SCHEMA_VERSION,
    ArchivedMonth,
    Category,
    IncomeRecord,
    Ledger,
    Money,
    Month,
    RolloverAction,
    Transaction,
    TransactionType,
    ValidationIssue,
    to_money,
)
from budgetbook.models.results import (
    CategorySummary,
    CloseMonthPreview,
    CloseMonthResult,
    HistorySummary,
    LedgerSnapshot,
    LeftoverItem,
    ResolutionOutcome,
    RolloverChoice,
    RolloverStatus,
)
from budgetbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "LEDGER_SCHEMA_VERSION",
    "ArchivedMonth",
    "Category",
    "IncomeRecord",
    "Ledger",
    "Money",
    "Month",
    "RolloverAction",
    "Transaction",
    "TransactionType",
    "ValidationIssue",
    "to_money",
    # Close / read models
    "CategorySummary",
    "CloseMonthPreview",
    "CloseMonthResult",
    "HistorySummary",
    "LedgerSnapshot",
    "LeftoverItem",
    "ResolutionOutcome",
    "RolloverChoice",
    "RolloverStatus",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
