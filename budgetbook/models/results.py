"""
Read-side and Month-Close Models

These are what the engine hands back to the presentation layer:
- The close-month preview (what leftovers exist, what can be done with them)
- The per-category choices the user makes and the outcome of applying them
- The read-only snapshot used for display

None of these are persisted. They are rebuilt from the Ledger on demand.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from budgetbook.models.ledger import (
    IncomeRecord,
    LedgerModel,
    Money,
    RolloverAction,
    Transaction,
)


# =============================================================================
# MONTH CLOSE
# =============================================================================

class RolloverChoice(LedgerModel):
    """The user's decision for one category's leftover."""

    action: RolloverAction
    target: Optional[str] = Field(
        default=None,
        description="Destination category, only for the move action"
    )

    @model_validator(mode='after')
    def validate_target(self) -> 'RolloverChoice':
        if self.action != RolloverAction.MOVE and self.target is not None:
            raise ValueError(f"Only the move action takes a target, not {self.action.value}")
        return self


class RolloverStatus(BaseModel):
    """Result of comparing the ledger's open month to the calendar."""

    ledger_month: str
    calendar_month: str
    needs_close: bool = Field(
        ...,
        description="True when the calendar has moved past the open month"
    )

    @property
    def message(self) -> str:
        if not self.needs_close:
            return f"{self.ledger_month} is the current month."
        return (
            f"{self.ledger_month} has ended. Close it to choose what happens "
            f"to each category's leftover before starting {self.calendar_month}."
        )


class LeftoverItem(BaseModel):
    """One row of the close-month preview."""

    category: str
    allocated: Decimal
    spent: Decimal
    leftover: Decimal
    actionable: bool = Field(
        ...,
        description="Only positive leftovers are resolved"
    )
    default_action: RolloverAction
    move_targets: list[str] = Field(default_factory=list)


class CloseMonthPreview(BaseModel):
    """Everything the presentation layer needs to ask for rollover choices."""

    month_key: str
    next_month_key: str
    items: list[LeftoverItem] = Field(default_factory=list)

    @property
    def actionable_items(self) -> list[LeftoverItem]:
        return [item for item in self.items if item.actionable]

    @property
    def total_leftover(self) -> Decimal:
        return sum((item.leftover for item in self.actionable_items), Decimal("0.00"))


class ResolutionOutcome(BaseModel):
    """
    What happened to one category's leftover.

    Failures are isolated: a failed outcome never stops the others.
    """

    category: str
    action: RolloverAction
    leftover: Decimal
    applied: bool
    target: Optional[str] = None
    deltas: dict[str, Money] = Field(
        default_factory=dict,
        description="Next-month rollover added per category"
    )
    error: Optional[str] = None


class CloseMonthResult(BaseModel):
    """Summary of one completed close."""

    closed_month: str
    opened_month: str
    correlation_id: UUID
    outcomes: list[ResolutionOutcome] = Field(default_factory=list)
    pooled_total: Decimal = Decimal("0.00")

    @property
    def failures(self) -> list[ResolutionOutcome]:
        return [o for o in self.outcomes if o.error is not None]


# =============================================================================
# READ SNAPSHOT
# =============================================================================

class CategorySummary(BaseModel):
    """Display state for one category."""

    name: str
    base: Decimal
    rollover: Decimal
    allocated: Decimal
    spent: Decimal
    available: Decimal
    progress_pct: Decimal
    transactions: list[Transaction] = Field(default_factory=list)

    @property
    def over_budget(self) -> bool:
        return self.available < 0


class LedgerSnapshot(BaseModel):
    """
    Read-only view of the open month for the presentation layer.

    Rebuilt by the debounced recompute pass after mutations.
    """

    month_key: str
    as_of: date
    total_income: Decimal
    total_expense: Decimal
    total_available: Decimal
    pool: Decimal
    categories: list[CategorySummary] = Field(default_factory=list)
    income: list[IncomeRecord] = Field(default_factory=list)
    history_keys: list[str] = Field(default_factory=list)
    rollover: RolloverStatus

    def category(self, name: str) -> Optional[CategorySummary]:
        for summary in self.categories:
            if summary.name == name:
                return summary
        return None


class HistorySummary(BaseModel):
    """Totals for an archived month."""

    month_key: str
    total_income: Decimal
    total_expense: Decimal
    spent_by_category: dict[str, Decimal] = Field(default_factory=dict)
    transaction_count: int = Field(ge=0)
    income_count: int = Field(ge=0)
