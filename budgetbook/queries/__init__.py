"""Read-side query package."""

from budgetbook.queries.snapshot import build_snapshot, history_summary

__all__ = ["build_snapshot", "history_summary"]
