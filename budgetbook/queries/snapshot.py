"""
Read Snapshot Builder

DESIGN DECISION: The presentation layer never reads the Ledger directly.
It gets a LedgerSnapshot built here from the category ledger calculations.

GUARANTEES:
- Every number is derived from the transaction log at build time
- The snapshot holds copies, so mutating it cannot touch the ledger
- Archived months are summarized from history only
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from budgetbook.engine.lifecycle import month_key_for
from budgetbook.errors import InvalidStateError
from budgetbook.ledger import calculations
from budgetbook.models.ledger import ZERO, Ledger, TransactionType
from budgetbook.models.results import (
    CategorySummary,
    HistorySummary,
    LedgerSnapshot,
    RolloverStatus,
)


def build_snapshot(ledger: Ledger, today: Optional[date] = None) -> LedgerSnapshot:
    """Build the read-only view of the open month."""
    today = today or date.today()
    month = ledger.current
    calendar_key = month_key_for(today)

    categories = []
    for name, category in month.categories.items():
        categories.append(CategorySummary(
            name=name,
            base=category.base,
            rollover=category.rollover,
            allocated=calculations.allocated(month, name),
            spent=calculations.spent(month, name),
            available=calculations.available(month, name),
            progress_pct=calculations.progress_pct(month, name),
            transactions=[t.model_copy() for t in month.transactions if t.category == name],
        ))

    return LedgerSnapshot(
        month_key=month.key,
        as_of=today,
        total_income=calculations.total_income(month),
        total_expense=calculations.total_expense(month),
        total_available=calculations.total_available(month),
        pool=month.pool,
        categories=categories,
        income=[record.model_copy() for record in month.income],
        history_keys=sorted(ledger.history),
        rollover=RolloverStatus(
            ledger_month=ledger.current_month,
            calendar_month=calendar_key,
            needs_close=calendar_key > ledger.current_month,
        ),
    )


def history_summary(ledger: Ledger, month_key: str) -> HistorySummary:
    """Totals for one archived month."""
    archived = ledger.history.get(month_key)
    if archived is None:
        raise InvalidStateError(f"No archived month: {month_key}", month_key=month_key)

    spent_by_category: dict[str, Decimal] = {}
    outflow = ZERO
    inflow = ZERO
    for transaction in archived.transactions:
        if transaction.type == TransactionType.EXPENSE:
            outflow += transaction.amount
            spent_by_category[transaction.category] = (
                spent_by_category.get(transaction.category, ZERO) + transaction.amount
            )
        else:
            inflow += transaction.amount

    return HistorySummary(
        month_key=month_key,
        total_income=sum((record.amount for record in archived.incomes), ZERO),
        total_expense=outflow - inflow,
        spent_by_category=spent_by_category,
        transaction_count=len(archived.transactions),
        income_count=len(archived.incomes),
    )
