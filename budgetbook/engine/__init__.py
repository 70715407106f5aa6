"""Ledger engine: transaction commands, month lifecycle, recompute scheduling."""

from budgetbook.engine.lifecycle import (
    MonthLifecycleManager,
    month_key_for,
    next_month_key,
    split_evenly,
)
from budgetbook.engine.scheduler import RecomputeScheduler
from budgetbook.engine.transactions import TransactionEngine

__all__ = [
    "MonthLifecycleManager",
    "RecomputeScheduler",
    "TransactionEngine",
    "month_key_for",
    "next_month_key",
    "split_evenly",
]
