"""
Main Orchestrator for BudgetBook

This module ties together all the components and exposes the commands
the presentation layer calls:

    add_income, delete_income, add_category, delete_category, add_expense,
    delete_transaction, transfer, open_close_month, resolve_close_month,
    export_csv, export_backup, restore_backup

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every command runs against a copy of the ledger; the copy is persisted
  and only then becomes the live ledger. A failed command (or a failed
  save) leaves the previous state exactly as it was.
- Persistence is synchronous. Only the read snapshot is debounced.
- Every command, accepted or rejected, is audited.
"""

from datetime import date
from typing import Any, Callable, Mapping, Optional, TypeVar, Union
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError

from budgetbook.audit import AuditLogger, configure_logging, create_correlation_id
from budgetbook.config import LedgerSettings, get_settings
from budgetbook.engine import MonthLifecycleManager, RecomputeScheduler, TransactionEngine
from budgetbook.errors import BudgetBookError, InvalidStateError
from budgetbook.exports import export_backup, export_csv, restore_backup
from budgetbook.exports.csv_export import csv_rows
from budgetbook.models.audit import AuditEvent
from budgetbook.models.ledger import Category, IncomeRecord, Ledger, Transaction, to_money
from budgetbook.models.results import (
    CloseMonthPreview,
    CloseMonthResult,
    HistorySummary,
    LedgerSnapshot,
    RolloverStatus,
)
from budgetbook.queries import build_snapshot, history_summary
from budgetbook.services.storage import (
    CorruptStorageError,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
    LedgerStorageInterface,
    StorageError,
)
from budgetbook.validation import LedgerValidator


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class BudgetBook:
    """
    The ledger context plus every command that acts on it.

    Flow for a mutating command:
    1. Copy the live ledger
    2. Run the engine against the copy (validation first, then mutation)
    3. Save the copy
    4. Swap the copy in as the live ledger
    5. Request a debounced snapshot recompute

    Steps 3-5 only happen if 2 succeeded, and 4-5 only if 3 succeeded.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
        clock: Optional[Callable[[], date]] = None,
        engine: Optional[TransactionEngine] = None,
        lifecycle: Optional[MonthLifecycleManager] = None,
        scheduler_clock: Optional[Callable[[], float]] = None,
    ):
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._settings = settings or get_settings().ledger
        self._clock = clock or date.today
        self._engine = engine or TransactionEngine(LedgerValidator(self._settings), clock=self._clock)
        self._lifecycle = lifecycle or MonthLifecycleManager(self._settings, clock=self._clock)
        self._scheduler = RecomputeScheduler(
            self._recompute,
            delay_ms=self._settings.recompute_delay_ms,
            clock=scheduler_clock,
        )
        self._ledger: Optional[Ledger] = None
        self._snapshot: Optional[LedgerSnapshot] = None

    # =========================================================================
    # LIFECYCLE OF THE CONTEXT ITSELF
    # =========================================================================

    def start(self) -> RolloverStatus:
        """
        Load the ledger (or create one) and check for a calendar rollover.

        A rollover is reported, never acted on: the caller should prompt
        the user to close the month.

        Raises:
            CorruptStorageError: If stored data is not a valid ledger
        """
        blob = self._storage.load()
        if blob is None:
            ledger = self._lifecycle.new_ledger()
            self._storage.save(ledger.to_blob())
            self._audit.log_ledger_created(ledger.current_month)
        else:
            try:
                ledger = Ledger.from_blob(blob)
            except PydanticValidationError as e:
                self._audit.log_error("corrupt_ledger", str(e))
                raise CorruptStorageError(f"Stored ledger is invalid: {e}")

        self._ledger = ledger
        self._snapshot = None
        self._scheduler.request()
        return self.check_rollover()

    def check_rollover(self) -> RolloverStatus:
        status = self._lifecycle.detect_rollover(self._require_ledger())
        if status.needs_close:
            self._audit.log_rollover_detected(status.ledger_month, status.calendar_month)
        return status

    @property
    def ledger(self) -> Ledger:
        """A copy of the live ledger. Changing it changes nothing."""
        return self._require_ledger().model_copy(deep=True)

    @property
    def scheduler(self) -> RecomputeScheduler:
        return self._scheduler

    def _require_ledger(self) -> Ledger:
        if self._ledger is None:
            raise InvalidStateError("Ledger not loaded; call start() first")
        return self._ledger

    def _commit(self, ledger: Ledger) -> None:
        try:
            self._storage.save(ledger.to_blob())
        except StorageError as e:
            self._audit.log_save_failed(str(e), ledger.current_month)
            raise
        self._ledger = ledger
        self._scheduler.request()

    def _execute(self, command: str, mutate: Callable[[Ledger], T]) -> T:
        """Run a mutation on a copy, persist it, then make it live."""
        current = self._require_ledger()
        working = current.model_copy(deep=True)
        try:
            result = mutate(working)
        except BudgetBookError as e:
            self._audit.log_command_rejected(command, e.code, e.message, current.current_month)
            raise
        self._commit(working)
        return result

    # =========================================================================
    # INCOME
    # =========================================================================

    def add_income(self, amount: Any, note: Optional[str], entry_date: Union[date, str, None] = None) -> IncomeRecord:
        record = self._execute(
            "add_income",
            lambda ledger: self._engine.add_income(ledger, amount, note, entry_date),
        )
        self._audit.log_income_added(self._ledger.current_month, record.id, record.amount, record.note)
        return record.model_copy()

    def delete_income(self, income_id: UUID) -> IncomeRecord:
        record = self._execute(
            "delete_income",
            lambda ledger: self._engine.delete_income(ledger, income_id),
        )
        self._audit.log_income_deleted(self._ledger.current_month, record.id, record.amount)
        return record

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def add_category(self, name: Optional[str], goal: Any) -> Category:
        category, existed = self._execute(
            "add_category",
            lambda ledger: self._engine.add_category(ledger, name, goal),
        )
        self._audit.log_category_added(
            self._ledger.current_month, category.name, to_money(goal), category.base, existed,
        )
        return category.model_copy()

    def delete_category(self, name: str) -> int:
        """
        Delete a category and all of its transactions this month.

        The presentation layer must confirm with the user first.
        """
        removed = self._execute(
            "delete_category",
            lambda ledger: self._engine.delete_category(ledger, name),
        )
        self._audit.log_category_deleted(self._ledger.current_month, name, removed)
        return removed

    # =========================================================================
    # EXPENSES, TRANSACTIONS, TRANSFERS
    # =========================================================================

    def add_expense(
        self,
        category: Optional[str],
        amount: Any,
        note: Optional[str],
        entry_date: Union[date, str, None] = None,
    ) -> Transaction:
        transaction = self._execute(
            "add_expense",
            lambda ledger: self._engine.add_expense(ledger, category, amount, note, entry_date),
        )
        self._audit.log_expense_added(
            self._ledger.current_month, transaction.id, transaction.category, transaction.amount,
        )
        return transaction.model_copy()

    def delete_transaction(self, category: str, transaction_id: UUID) -> Transaction:
        transaction = self._execute(
            "delete_transaction",
            lambda ledger: self._engine.delete_transaction(ledger, category, transaction_id),
        )
        self._audit.log_transaction_deleted(
            self._ledger.current_month, transaction.id, category, transaction.transfer_id,
        )
        return transaction

    def transfer(self, from_category: Optional[str], to_category: Optional[str], amount: Any) -> tuple[Transaction, Transaction]:
        outgoing, incoming = self._execute(
            "transfer",
            lambda ledger: self._engine.transfer(ledger, from_category, to_category, amount),
        )
        self._audit.log_transfer(
            self._ledger.current_month, outgoing.transfer_id,
            outgoing.category, incoming.category, outgoing.amount,
        )
        return outgoing.model_copy(), incoming.model_copy()

    # =========================================================================
    # MONTH CLOSE
    # =========================================================================

    def open_close_month(self) -> CloseMonthPreview:
        """Start a close: show each leftover so the user can choose."""
        preview = self._lifecycle.open_close_month(self._require_ledger())
        self._audit.log_close_previewed(
            preview.month_key, len(preview.actionable_items), preview.total_leftover,
        )
        return preview

    def resolve_close_month(
        self,
        choices: Optional[Mapping[str, Any]] = None,
        month_key: Optional[str] = None,
    ) -> CloseMonthResult:
        """
        Apply the user's rollover choices and open the next month.

        Raises:
            InvalidStateError: If the month is already closed. Nothing changes.
        """
        current = self._require_ledger()
        correlation_id = create_correlation_id()
        try:
            closed, result = self._lifecycle.resolve_close_month(
                current, choices, month_key=month_key, correlation_id=correlation_id,
            )
        except BudgetBookError as e:
            self._audit.log_command_rejected(
                "resolve_close_month", e.code, e.message, current.current_month,
            )
            raise

        self._commit(closed)

        for outcome in result.outcomes:
            if outcome.error:
                self._audit.log_rollover_failed(
                    result.closed_month, outcome.category, outcome.action.value,
                    outcome.error, correlation_id,
                )
            else:
                self._audit.log_rollover_resolved(
                    result.closed_month, outcome.category, outcome.action.value,
                    outcome.leftover, outcome.applied, correlation_id,
                )
        self._audit.log_month_closed(
            result.closed_month, result.opened_month, result.pooled_total, correlation_id,
        )
        return result

    # =========================================================================
    # EXPORT / BACKUP
    # =========================================================================

    def export_csv(self, month_key: Optional[str] = None) -> str:
        ledger = self._require_ledger()
        text = export_csv(ledger, month_key)
        self._audit.log_csv_exported(
            month_key or ledger.current_month, len(csv_rows(ledger, month_key)) - 1,
        )
        return text

    def export_backup(self) -> dict:
        ledger = self._require_ledger()
        backup = export_backup(ledger)
        self._audit.log_backup_exported(ledger.current_month, len(ledger.months))
        return backup

    def restore_backup(self, backup: Union[dict, str, bytes]) -> RolloverStatus:
        """
        Replace the whole ledger with a backup.

        Raises:
            BackupFormatError: If the backup is malformed. Nothing changes.
        """
        current = self._require_ledger()
        try:
            restored = restore_backup(backup)
        except BudgetBookError as e:
            self._audit.log_command_rejected("restore_backup", e.code, e.message, current.current_month)
            raise

        self._commit(restored)
        self._snapshot = None
        self._audit.log_backup_restored(restored.current_month, len(restored.months))
        return self.check_rollover()

    # =========================================================================
    # READ SIDE
    # =========================================================================

    def _recompute(self) -> None:
        self._snapshot = build_snapshot(self._require_ledger(), self._clock())

    def tick(self, now: Optional[float] = None) -> bool:
        """Let a pending snapshot recompute run if its delay has passed."""
        return self._scheduler.tick(now)

    def snapshot(self) -> LedgerSnapshot:
        """
        Current read-only view.

        Forces any pending recompute, so the result always reflects the
        last completed command.
        """
        self._scheduler.flush()
        if self._snapshot is None:
            self._recompute()
        return self._snapshot

    def history(self, month_key: str) -> HistorySummary:
        return history_summary(self._require_ledger(), month_key)

    def audit_events(
        self,
        month_key: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Read back the audit trail.

        Args:
            month_key: Only events for this ledger month (oldest first)
            correlation_id: Only events of one close cycle (oldest first)
            limit: Without a filter, this many most recent events (newest first)

        Returns:
            Matching events; empty if no audit storage is configured
        """
        storage = self._audit.storage
        if storage is None:
            return []
        if correlation_id is not None:
            return storage.get_events_by_correlation_id(correlation_id)
        if month_key is not None:
            return storage.get_events_by_month(month_key)
        return storage.get_recent_events(limit)


def create_app_components(
    use_storage: bool = True,
) -> tuple[BudgetBook, LedgerStorageInterface]:
    """
    Factory function to create the application's BudgetBook.

    Args:
        use_storage: Whether to use the configured JSON file storage.
                    Set to False for an in-memory ledger.

    Returns:
        (budget_book, ledger_storage). Call budget_book.start() next.
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    storage: LedgerStorageInterface
    audit_storage = None

    if use_storage:
        try:
            storage = JsonFileLedgerStorage()
            if settings.storage.audit_log_path:
                audit_storage = JsonLinesAuditStorage()
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            storage = InMemoryLedgerStorage()
            audit_storage = InMemoryAuditStorage()
    else:
        storage = InMemoryLedgerStorage()
        audit_storage = InMemoryAuditStorage()

    book = BudgetBook(
        storage=storage,
        audit_logger=AuditLogger(audit_storage),
        settings=settings.ledger,
    )
    return book, storage
