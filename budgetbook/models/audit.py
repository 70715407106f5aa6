"""
Audit Models for BudgetBook

Every mutation of the ledger is logged for audit purposes.
This provides:
1. Complete traceability of where money moved
2. Debugging information when a balance looks wrong
3. A record of every month-close decision the user made

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from budgetbook.models.ledger import utc_now


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every command exposed to the presentation layer has its own event type.
    """
    # Income
    INCOME_ADDED = "income_added"
    INCOME_DELETED = "income_deleted"

    # Categories
    CATEGORY_ADDED = "category_added"
    CATEGORY_GOAL_INCREASED = "category_goal_increased"
    CATEGORY_DELETED = "category_deleted"

    # Transactions
    EXPENSE_ADDED = "expense_added"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSFER_COMPLETED = "transfer_completed"

    # Month lifecycle
    LEDGER_CREATED = "ledger_created"
    ROLLOVER_DETECTED = "rollover_detected"
    MONTH_CLOSE_PREVIEWED = "month_close_previewed"
    ROLLOVER_RESOLVED = "rollover_resolved"
    ROLLOVER_RESOLUTION_FAILED = "rollover_resolution_failed"
    MONTH_CLOSED = "month_closed"

    # Backup / export
    CSV_EXPORTED = "csv_exported"
    BACKUP_EXPORTED = "backup_exported"
    BACKUP_RESTORED = "backup_restored"

    # Failures
    COMMAND_REJECTED = "command_rejected"
    SAVE_FAILED = "save_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every ledger mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what is this about?
    month_key: Optional[str] = Field(
        default=None,
        description="Ledger month the event applies to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'income', 'transaction', 'category')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID or category name the event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., every resolution in one close)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user command?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "month_key": self.month_key,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.income_added(month_key, income_id, amount, note)
        event = AuditEventBuilder.month_closed(closed, opened, correlation_id)
    """

    @staticmethod
    def ledger_created(month_key: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CREATED,
            month_key=month_key,
            entity_type="ledger",
            description=f"New ledger opened at {month_key}",
        )

    @staticmethod
    def income_added(
        month_key: str,
        income_id: UUID,
        amount: Decimal,
        note: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_ADDED,
            month_key=month_key,
            entity_type="income",
            entity_id=str(income_id),
            description=f"Income added: {note} {amount}",
            details={"amount": str(amount), "note": note},
            is_user_action=True,
        )

    @staticmethod
    def income_deleted(month_key: str, income_id: UUID, amount: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_DELETED,
            month_key=month_key,
            entity_type="income",
            entity_id=str(income_id),
            description=f"Income deleted: {amount}",
            details={"amount": str(amount)},
            is_user_action=True,
        )

    @staticmethod
    def category_added(
        month_key: str,
        name: str,
        goal: Decimal,
        new_base: Decimal,
        existed: bool,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.CATEGORY_GOAL_INCREASED
            if existed
            else AuditEventType.CATEGORY_ADDED
        )
        return AuditEvent(
            event_type=event_type,
            month_key=month_key,
            entity_type="category",
            entity_id=name,
            description=(
                f"Category goal increased: {name} +{goal}"
                if existed
                else f"Category added: {name} ({goal})"
            ),
            details={"goal_added": str(goal), "base": str(new_base)},
            is_user_action=True,
        )

    @staticmethod
    def category_deleted(month_key: str, name: str, removed_transactions: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            severity=AuditSeverity.WARNING,
            month_key=month_key,
            entity_type="category",
            entity_id=name,
            description=f"Category deleted: {name} with {removed_transactions} transactions",
            details={"removed_transactions": removed_transactions},
            is_user_action=True,
        )

    @staticmethod
    def expense_added(month_key: str, transaction_id: UUID, category: str, amount: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            month_key=month_key,
            entity_type="transaction",
            entity_id=str(transaction_id),
            description=f"Expense added to {category}: {amount}",
            details={"category": category, "amount": str(amount)},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        month_key: str,
        transaction_id: UUID,
        category: str,
        transfer_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            month_key=month_key,
            entity_type="transaction",
            entity_id=str(transaction_id),
            description=f"Transaction deleted from {category}",
            details={
                "category": category,
                # The other leg of a transfer is left in place
                "transfer_id": str(transfer_id) if transfer_id else None,
            },
            is_user_action=True,
        )

    @staticmethod
    def transfer_completed(
        month_key: str,
        transfer_id: UUID,
        from_category: str,
        to_category: str,
        amount: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER_COMPLETED,
            month_key=month_key,
            entity_type="transfer",
            entity_id=str(transfer_id),
            description=f"Transferred {amount} from {from_category} to {to_category}",
            details={
                "from": from_category,
                "to": to_category,
                "amount": str(amount),
            },
            is_user_action=True,
        )

    @staticmethod
    def rollover_detected(ledger_month: str, calendar_month: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROLLOVER_DETECTED,
            severity=AuditSeverity.WARNING,
            month_key=ledger_month,
            entity_type="month",
            entity_id=ledger_month,
            description=f"Calendar is at {calendar_month} but {ledger_month} is still open",
            details={"calendar_month": calendar_month},
        )

    @staticmethod
    def month_close_previewed(month_key: str, actionable: int, total_leftover: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_CLOSE_PREVIEWED,
            month_key=month_key,
            entity_type="month",
            entity_id=month_key,
            description=f"Close of {month_key} previewed: {actionable} leftovers",
            details={"actionable": actionable, "total_leftover": str(total_leftover)},
            is_user_action=True,
        )

    @staticmethod
    def rollover_resolved(
        month_key: str,
        category: str,
        action: str,
        leftover: Decimal,
        applied: bool,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROLLOVER_RESOLVED,
            month_key=month_key,
            entity_type="category",
            entity_id=category,
            correlation_id=correlation_id,
            description=f"{category}: leftover {leftover} resolved with {action}",
            details={"action": action, "leftover": str(leftover), "applied": applied},
        )

    @staticmethod
    def rollover_resolution_failed(
        month_key: str,
        category: str,
        action: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROLLOVER_RESOLUTION_FAILED,
            severity=AuditSeverity.WARNING,
            month_key=month_key,
            entity_type="category",
            entity_id=category,
            correlation_id=correlation_id,
            description=f"{category}: {action} could not be applied",
            error_message=error_message,
            details={"action": action},
        )

    @staticmethod
    def month_closed(
        closed_month: str,
        opened_month: str,
        pooled_total: Decimal,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_CLOSED,
            month_key=closed_month,
            entity_type="month",
            entity_id=closed_month,
            correlation_id=correlation_id,
            description=f"Month {closed_month} closed, {opened_month} opened",
            details={"opened_month": opened_month, "pooled_total": str(pooled_total)},
            is_user_action=True,
        )

    @staticmethod
    def csv_exported(month_key: str, row_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CSV_EXPORTED,
            month_key=month_key,
            description=f"CSV exported for {month_key} ({row_count} rows)",
            details={"row_count": row_count},
            is_user_action=True,
        )

    @staticmethod
    def backup_exported(month_key: str, month_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_EXPORTED,
            month_key=month_key,
            description=f"Backup exported ({month_count} months)",
            details={"month_count": month_count},
            is_user_action=True,
        )

    @staticmethod
    def backup_restored(month_key: str, month_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_RESTORED,
            severity=AuditSeverity.WARNING,
            month_key=month_key,
            description=f"Ledger replaced from backup, now at {month_key}",
            details={"month_count": month_count},
            is_user_action=True,
        )

    @staticmethod
    def command_rejected(
        command: str,
        error_code: str,
        error_message: str,
        month_key: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_REJECTED,
            severity=AuditSeverity.WARNING,
            month_key=month_key,
            description=f"Command rejected: {command}",
            error_code=error_code,
            error_message=error_message,
            details={"command": command},
            is_user_action=True,
        )

    @staticmethod
    def save_failed(error_message: str, month_key: Optional[str] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            month_key=month_key,
            description="Ledger could not be saved",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
