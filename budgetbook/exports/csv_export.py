"""
CSV Export

Format (exact, consumed by spreadsheet tools):

    Type,Category,Amount,Note,Date

One row per transaction, then one row per income record. Plain income
has an empty Category. Fields containing a comma, quote or newline are
quoted with internal quotes doubled (csv.QUOTE_MINIMAL).
"""

import csv
import io
from typing import Optional

from budgetbook.errors import InvalidStateError
from budgetbook.models.ledger import IncomeRecord, Ledger, Transaction, TransactionType


CSV_HEADER = ["Type", "Category", "Amount", "Note", "Date"]


def _entries_for(ledger: Ledger, month_key: Optional[str]) -> tuple[list[Transaction], list[IncomeRecord]]:
    key = month_key or ledger.current_month
    if key == ledger.current_month:
        month = ledger.current
        return month.transactions, month.income
    if key in ledger.history:
        archived = ledger.history[key]
        return archived.transactions, archived.incomes
    raise InvalidStateError(f"No month to export: {key}", month_key=key)


def csv_rows(ledger: Ledger, month_key: Optional[str] = None) -> list[list[str]]:
    """Header plus data rows, every field already a string."""
    transactions, incomes = _entries_for(ledger, month_key)

    rows = [list(CSV_HEADER)]
    for t in transactions:
        rows.append([t.type.value, t.category or "", str(t.amount), t.note, t.entry_date.isoformat()])
    for record in incomes:
        rows.append([TransactionType.INCOME.value, "", str(record.amount), record.note, record.entry_date.isoformat()])
    return rows


def export_csv(ledger: Ledger, month_key: Optional[str] = None) -> str:
    """Render a month (open or archived) as CSV text."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerows(csv_rows(ledger, month_key))
    return buffer.getvalue()
