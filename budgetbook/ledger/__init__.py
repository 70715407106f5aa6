"""Category ledger: balances derived from the transaction log."""

from budgetbook.ledger.calculations import (
    CategoryBalance,
    allocated,
    available,
    balances,
    credits,
    progress_pct,
    spent,
    total_available,
    total_expense,
    total_income,
)

__all__ = [
    "CategoryBalance",
    "allocated",
    "available",
    "balances",
    "credits",
    "progress_pct",
    "spent",
    "total_available",
    "total_expense",
    "total_income",
]
