"""
Category Ledger Calculations

Pure functions over a Month. Nothing here mutates state or is stored:
spent, credits and available are recomputed from the transaction log
every time they are asked for.

    allocated = base + rollover + credits (inbound transfers)
    available = allocated - spent

Transfers are a paired expense (source) + income-type entry (destination),
so the same aggregation keeps both sides correct with no transfer ledger.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple

from budgetbook.errors import InvalidStateError
from budgetbook.models.ledger import ZERO, Category, Month, TransactionType


class CategoryBalance(NamedTuple):
    """Balances of one category, captured at a single point in time."""
    name: str
    allocated: Decimal
    spent: Decimal

    @property
    def leftover(self) -> Decimal:
        return self.allocated - self.spent


def _require_category(month: Month, name: str) -> Category:
    category = month.get_category(name)
    if category is None:
        raise InvalidStateError(f"Unknown category: {name}", month_key=month.key)
    return category


def _sum_category(month: Month, name: str, tx_type: TransactionType) -> Decimal:
    return sum(
        (t.amount for t in month.transactions if t.category == name and t.type == tx_type),
        ZERO,
    )


def spent(month: Month, name: str) -> Decimal:
    """Sum of expense amounts recorded against the category."""
    _require_category(month, name)
    return _sum_category(month, name, TransactionType.EXPENSE)


def credits(month: Month, name: str) -> Decimal:
    """Sum of categorized income-type entries (transfers in)."""
    _require_category(month, name)
    return _sum_category(month, name, TransactionType.INCOME)


def allocated(month: Month, name: str) -> Decimal:
    category = _require_category(month, name)
    return category.base + category.rollover + credits(month, name)


def available(month: Month, name: str) -> Decimal:
    """Allocated minus spent. Negative means over budget."""
    return allocated(month, name) - spent(month, name)


def total_income(month: Month) -> Decimal:
    return sum((record.amount for record in month.income), ZERO)


def total_expense(month: Month) -> Decimal:
    """
    Net spending across categories.

    The income-type leg of a transfer cancels its expense leg, so moving
    money between categories never changes the month's balance.
    """
    outflow = sum(
        (t.amount for t in month.transactions if t.type == TransactionType.EXPENSE),
        ZERO,
    )
    inflow = sum(
        (t.amount for t in month.transactions if t.type == TransactionType.INCOME),
        ZERO,
    )
    return outflow - inflow


def total_available(month: Month) -> Decimal:
    """Top-level balance, independent of the per-category split."""
    return total_income(month) - total_expense(month)


def balances(month: Month) -> list[CategoryBalance]:
    """
    Snapshot every category's allocated and spent in one pass.

    Month close works from this snapshot only, so resolving one category
    can never change the leftover computed for another.
    """
    return [
        CategoryBalance(name=name, allocated=allocated(month, name), spent=spent(month, name))
        for name in month.categories
    ]


def progress_pct(month: Month, name: str) -> Decimal:
    """Spent as a percentage of allocated, capped at 100 for display."""
    alloc = allocated(month, name)
    used = spent(month, name)
    if alloc <= 0:
        return Decimal("100") if used > 0 else Decimal("0")
    pct = (used / alloc * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return min(pct, Decimal("100"))
