"""
Transaction Engine

Validates and appends income, expenses, categories and transfers on the
open month of a Ledger.

GUARANTEES:
- Every check runs before the first mutation, so a failed command leaves
  the ledger untouched
- Amounts are always positive; direction is the transaction type
- A transfer can never overdraw its source category
- Adding to an existing category increases its goal (additive, not replace)

The engine does no persistence and no audit logging. The orchestrator
wraps each call with both.
"""

from datetime import date
from typing import Any, Callable, Optional
from uuid import UUID, uuid4

from budgetbook.errors import InsufficientFundsError, InvalidStateError
from budgetbook.ledger import calculations
from budgetbook.models.ledger import (
    Category,
    IncomeRecord,
    Ledger,
    Month,
    Transaction,
    TransactionType,
)
from budgetbook.validation import LedgerValidator
from budgetbook.validation.validator import DateInput


class TransactionEngine:
    """
    Mutation commands for the open month.

    Every method takes the Ledger it acts on explicitly; the engine
    itself holds no ledger state.
    """

    def __init__(
        self,
        validator: Optional[LedgerValidator] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self._validator = validator or LedgerValidator()
        self._clock = clock or date.today

    def _open_month(self, ledger: Ledger) -> Month:
        month = ledger.current
        if month.closed:
            raise InvalidStateError(f"Month {month.key} is closed", month_key=month.key)
        return month

    # =========================================================================
    # INCOME
    # =========================================================================

    def add_income(
        self,
        ledger: Ledger,
        amount: Any,
        note: Optional[str],
        entry_date: DateInput = None,
    ) -> IncomeRecord:
        month = self._open_month(ledger)
        clean_amount, clean_note, clean_date = self._validator.validate_income(
            amount, note, entry_date, self._clock(),
        )

        record = IncomeRecord(amount=clean_amount, note=clean_note, entry_date=clean_date)
        month.income.append(record)
        return record

    def delete_income(self, ledger: Ledger, income_id: UUID) -> IncomeRecord:
        month = self._open_month(ledger)
        for idx, record in enumerate(month.income):
            if record.id == income_id:
                return month.income.pop(idx)
        raise InvalidStateError(f"Income record not found: {income_id}", month_key=month.key)

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def add_category(self, ledger: Ledger, name: Optional[str], goal: Any) -> tuple[Category, bool]:
        """
        Create a category, or add the goal to an existing one.

        Returns:
            (category, existed)
        """
        month = self._open_month(ledger)
        clean_name, clean_goal = self._validator.validate_category(name, goal)

        existing = month.get_category(clean_name)
        if existing is not None:
            existing.base = existing.base + clean_goal
            return existing, True

        category = Category(name=clean_name, base=clean_goal)
        month.categories[clean_name] = category
        return category, False

    def delete_category(self, ledger: Ledger, name: str) -> int:
        """
        Remove a category and every transaction on it in the open month.

        Confirmation is the caller's job; this cannot be undone.

        Returns:
            Number of transactions removed
        """
        month = self._open_month(ledger)
        if month.get_category(name) is None:
            raise InvalidStateError(f"Unknown category: {name}", month_key=month.key)

        kept = [t for t in month.transactions if t.category != name]
        removed = len(month.transactions) - len(kept)
        month.transactions = kept
        del month.categories[name]
        return removed

    # =========================================================================
    # EXPENSES AND TRANSACTIONS
    # =========================================================================

    def add_expense(
        self,
        ledger: Ledger,
        category: Optional[str],
        amount: Any,
        note: Optional[str],
        entry_date: DateInput = None,
    ) -> Transaction:
        month = self._open_month(ledger)
        clean_category, clean_amount, clean_note, clean_date = self._validator.validate_expense(
            month, category, amount, note, entry_date, self._clock(),
        )

        transaction = Transaction(
            amount=clean_amount,
            type=TransactionType.EXPENSE,
            category=clean_category,
            note=clean_note,
            entry_date=clean_date,
        )
        month.transactions.append(transaction)
        return transaction

    def delete_transaction(self, ledger: Ledger, category: str, transaction_id: UUID) -> Transaction:
        """
        Remove one transaction.

        Deleting one leg of a transfer leaves the other leg in place.
        """
        month = self._open_month(ledger)
        if month.get_category(category) is None:
            raise InvalidStateError(f"Unknown category: {category}", month_key=month.key)

        for idx, transaction in enumerate(month.transactions):
            if transaction.id == transaction_id and transaction.category == category:
                return month.transactions.pop(idx)

        raise InvalidStateError(
            f"Transaction {transaction_id} not found in {category}",
            month_key=month.key,
        )

    # =========================================================================
    # TRANSFERS
    # =========================================================================

    def transfer(
        self,
        ledger: Ledger,
        from_category: Optional[str],
        to_category: Optional[str],
        amount: Any,
    ) -> tuple[Transaction, Transaction]:
        """
        Move money between two categories as a linked pair of entries.

        Returns:
            (outgoing expense leg, incoming income leg)
        """
        month = self._open_month(ledger)
        source, target, clean_amount = self._validator.validate_transfer(
            month, from_category, to_category, amount,
        )

        source_available = calculations.available(month, source)
        if clean_amount > source_available:
            raise InsufficientFundsError(source, clean_amount, source_available)

        today = self._clock()
        transfer_id = uuid4()
        outgoing = Transaction(
            amount=clean_amount,
            type=TransactionType.EXPENSE,
            category=source,
            note=f"Transfer to {target}",
            entry_date=today,
            transfer_id=transfer_id,
        )
        incoming = Transaction(
            amount=clean_amount,
            type=TransactionType.INCOME,
            category=target,
            note=f"Transfer from {source}",
            entry_date=today,
            transfer_id=transfer_id,
        )
        month.transactions.extend([outgoing, incoming])
        return outgoing, incoming
