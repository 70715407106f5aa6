"""
Core Data Models for BudgetBook

These models define the strict schemas for the ledger and everything
persisted with it. They are designed to:
1. Enforce type safety at runtime
2. Keep money exact (Decimal, quantized to cents)
3. Serialize to a single versioned blob for storage and backup

DESIGN DECISION: Balances (spent, available) are NOT fields here.
They are always derived from the transaction log by budgetbook.ledger,
which removes a whole class of "stored total drifted" bugs.
"""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel


LEDGER_SCHEMA_VERSION = 1

MONTH_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Hard ceiling on any single amount. Keeps every quantized value and every
# month total well inside the default 28-digit decimal context.
MAX_AMOUNT = Decimal("1000000000000")

NOTE_MAX_LENGTH = 500
CATEGORY_NAME_MAX_LENGTH = 100


class AmountOutOfRangeError(ValueError):
    """A numeric amount too large to hold as an exact cent value."""


def to_money(value: Any) -> Decimal:
    """
    Convert user or stored input into an exact cent amount.

    Floats go through str() so 0.1 becomes Decimal("0.10"), not
    0.1000000000000000055511151231257827.

    Raises:
        ValueError: For anything that is not a finite amount within MAX_AMOUNT
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be a number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Amount is not a number: {value!r}")
    else:
        raise ValueError(f"Amount is not a number: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    if abs(amount) > MAX_AMOUNT:
        raise AmountOutOfRangeError(f"Amount is too large (maximum {MAX_AMOUNT:,})")

    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise AmountOutOfRangeError(f"Amount cannot be expressed in cents: {value!r}")


Money = Annotated[Decimal, BeforeValidator(to_money)]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a transaction.

    Amounts are always positive. Direction lives here, never in the sign.
    """
    INCOME = "income"
    EXPENSE = "expense"


class RolloverAction(str, Enum):
    """
    What happens to a category's positive leftover when a month is closed.

    Exactly one action applies per category per close.
    """
    CARRY = "carry"                # Same category, next month
    POOL = "pool"                  # Next month's income as one rollover record
    REDISTRIBUTE = "redistribute"  # Split evenly across all other categories
    MOVE = "move"                  # All of it to one named category
    DISCARD = "discard"            # Dropped


# =============================================================================
# LEDGER ENTRIES
# =============================================================================

class LedgerModel(BaseModel):
    """Shared config: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class IncomeRecord(LedgerModel):
    """
    A plain income entry for the month.

    Not tied to any category; total income is the sum of these records.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Stable reference used for deletion"
    )
    amount: Money = Field(
        ...,
        gt=0,
        description="Amount received"
    )
    note: str = Field(
        ...,
        min_length=1,
        max_length=NOTE_MAX_LENGTH,
        description="Where the money came from"
    )
    entry_date: date = Field(
        ...,
        alias="date",
        description="Calendar date (no time-of-day semantics)"
    )


class Transaction(LedgerModel):
    """
    A categorized ledger entry.

    Expenses always name a category. Income-type transactions are the
    inbound leg of a transfer and are categorized too, unlike IncomeRecord.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Stable reference used for deletion"
    )
    amount: Money = Field(
        ...,
        gt=0,
        description="Always positive"
    )
    type: TransactionType = Field(
        ...,
        description="income or expense"
    )
    category: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Category this entry belongs to"
    )
    note: str = Field(
        ...,
        min_length=1,
        max_length=NOTE_MAX_LENGTH,
        description="Free text description"
    )
    entry_date: date = Field(
        ...,
        alias="date",
        description="Calendar date (no time-of-day semantics)"
    )
    transfer_id: Optional[UUID] = Field(
        default=None,
        description="Shared by both legs of a transfer"
    )

    @model_validator(mode='after')
    def validate_category(self) -> 'Transaction':
        if self.type == TransactionType.EXPENSE and not self.category:
            raise ValueError("Expense transactions must name a category")
        return self

    @property
    def is_transfer(self) -> bool:
        return self.transfer_id is not None


class Category(LedgerModel):
    """
    Budget category for one month.

    allocated = base + rollover + inbound transfers. Only base and
    rollover are stored; everything else is derived.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=CATEGORY_NAME_MAX_LENGTH,
        description="Unique key within a month"
    )
    base: Money = Field(
        ...,
        gt=0,
        description="Monthly goal"
    )
    rollover: Money = Field(
        default=ZERO,
        description="Signed delta carried in from the previous month"
    )


# =============================================================================
# MONTHS AND THE LEDGER ROOT
# =============================================================================

class Month(LedgerModel):
    """
    One calendar month of the ledger.

    CRITICAL: A month is mutable only while closed is False. Once closed,
    its transactions and income live in Ledger.history and the month is
    never reopened.
    """

    key: str = Field(
        ...,
        pattern=MONTH_KEY_PATTERN,
        description="Calendar key, YYYY-MM"
    )
    income: list[IncomeRecord] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    categories: dict[str, Category] = Field(default_factory=dict)
    closed: bool = False
    pool: Money = Field(
        default=ZERO,
        description="Surplus pooled into this month by the previous close"
    )
    opened_at: datetime = Field(default_factory=utc_now)
    closed_at: Optional[datetime] = None

    @model_validator(mode='after')
    def validate_category_keys(self) -> 'Month':
        for key, category in self.categories.items():
            if key != category.name:
                raise ValueError(
                    f"Category stored under '{key}' is named '{category.name}'"
                )
        return self

    def get_category(self, name: str) -> Optional[Category]:
        return self.categories.get(name)


class ArchivedMonth(LedgerModel):
    """Immutable record of a closed month's entries."""

    model_config = ConfigDict(frozen=True)

    transactions: list[Transaction] = Field(default_factory=list)
    incomes: list[IncomeRecord] = Field(default_factory=list)
    archived_at: datetime = Field(default_factory=utc_now)


class Ledger(LedgerModel):
    """
    Root of all budget state.

    Exactly one per user and the only unit of persistence: the whole
    ledger is serialized on every mutation.
    """

    version: int = Field(
        default=LEDGER_SCHEMA_VERSION,
        description="Blob schema version"
    )
    current_month: str = Field(
        ...,
        pattern=MONTH_KEY_PATTERN,
        description="Key of the one open month"
    )
    months: dict[str, Month] = Field(default_factory=dict)
    history: dict[str, ArchivedMonth] = Field(default_factory=dict)

    @model_validator(mode='after')
    def validate_current_month(self) -> 'Ledger':
        """Exactly one open month, and it is the one current_month points to."""
        current = self.months.get(self.current_month)
        if current is None:
            raise ValueError(f"Current month {self.current_month} has no month record")
        if current.closed:
            raise ValueError(f"Current month {self.current_month} is closed")

        for key, month in self.months.items():
            if key != month.key:
                raise ValueError(f"Month stored under '{key}' has key '{month.key}'")
            if key != self.current_month and not month.closed:
                raise ValueError(f"Month {key} is open but is not the current month")
        return self

    @property
    def current(self) -> Month:
        return self.months[self.current_month]

    def to_blob(self) -> dict:
        """JSON-safe dict in the persisted (camelCase) format."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_blob(cls, blob: dict) -> 'Ledger':
        return cls.model_validate(blob)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found in a command's input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_category')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )
