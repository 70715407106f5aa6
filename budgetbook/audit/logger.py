"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged.
This provides:
1. Complete traceability of where money moved
2. Debugging capability when a balance looks wrong
3. User can see the history of their month-close decisions

The audit logger:
- Is synchronous, like every command in the engine
- Gracefully handles failures (never breaks a command if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from budgetbook.models.audit import AuditEvent, AuditEventBuilder
from budgetbook.services.storage import AuditStorageInterface


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog for local JSON logging through the stdlib."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s")
    logging.getLogger("budgetbook").setLevel(level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility), if configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("budgetbook.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_ledger_created(self, month_key: str) -> None:
        self.log(AuditEventBuilder.ledger_created(month_key))

    def log_income_added(self, month_key: str, income_id: UUID, amount: Decimal, note: str) -> None:
        self.log(AuditEventBuilder.income_added(month_key, income_id, amount, note))

    def log_income_deleted(self, month_key: str, income_id: UUID, amount: Decimal) -> None:
        self.log(AuditEventBuilder.income_deleted(month_key, income_id, amount))

    def log_category_added(
        self,
        month_key: str,
        name: str,
        goal: Decimal,
        new_base: Decimal,
        existed: bool,
    ) -> None:
        self.log(AuditEventBuilder.category_added(month_key, name, goal, new_base, existed))

    def log_category_deleted(self, month_key: str, name: str, removed_transactions: int) -> None:
        self.log(AuditEventBuilder.category_deleted(month_key, name, removed_transactions))

    def log_expense_added(self, month_key: str, transaction_id: UUID, category: str, amount: Decimal) -> None:
        self.log(AuditEventBuilder.expense_added(month_key, transaction_id, category, amount))

    def log_transaction_deleted(
        self,
        month_key: str,
        transaction_id: UUID,
        category: str,
        transfer_id: Optional[UUID],
    ) -> None:
        self.log(AuditEventBuilder.transaction_deleted(month_key, transaction_id, category, transfer_id))

    def log_transfer(
        self,
        month_key: str,
        transfer_id: UUID,
        from_category: str,
        to_category: str,
        amount: Decimal,
    ) -> None:
        self.log(AuditEventBuilder.transfer_completed(
            month_key, transfer_id, from_category, to_category, amount,
        ))

    def log_rollover_detected(self, ledger_month: str, calendar_month: str) -> None:
        self.log(AuditEventBuilder.rollover_detected(ledger_month, calendar_month))

    def log_close_previewed(self, month_key: str, actionable: int, total_leftover: Decimal) -> None:
        self.log(AuditEventBuilder.month_close_previewed(month_key, actionable, total_leftover))

    def log_rollover_resolved(
        self,
        month_key: str,
        category: str,
        action: str,
        leftover: Decimal,
        applied: bool,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.rollover_resolved(
            month_key, category, action, leftover, applied, correlation_id,
        ))

    def log_rollover_failed(
        self,
        month_key: str,
        category: str,
        action: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.rollover_resolution_failed(
            month_key, category, action, error_message, correlation_id,
        ))

    def log_month_closed(
        self,
        closed_month: str,
        opened_month: str,
        pooled_total: Decimal,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.month_closed(closed_month, opened_month, pooled_total, correlation_id))

    def log_csv_exported(self, month_key: str, row_count: int) -> None:
        self.log(AuditEventBuilder.csv_exported(month_key, row_count))

    def log_backup_exported(self, month_key: str, month_count: int) -> None:
        self.log(AuditEventBuilder.backup_exported(month_key, month_count))

    def log_backup_restored(self, month_key: str, month_count: int) -> None:
        self.log(AuditEventBuilder.backup_restored(month_key, month_count))

    def log_command_rejected(
        self,
        command: str,
        error_code: str,
        error_message: str,
        month_key: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.command_rejected(command, error_code, error_message, month_key))

    def log_save_failed(self, error_message: str, month_key: Optional[str] = None) -> None:
        self.log(AuditEventBuilder.save_failed(error_message, month_key))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a multi-step action (e.g., a month close).
    Pass it through all subsequent operations.
    """
    return uuid4()
