"""Command input validation package."""

from budgetbook.validation.validator import LedgerValidator

__all__ = ["LedgerValidator"]
