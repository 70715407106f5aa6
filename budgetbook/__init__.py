"""
BudgetBook - Source Package

A monthly budgeting ledger: income, categorized expenses, per-category
goals, transfers between categories, and an explicit month close that
resolves leftovers into the next month.

DESIGN PRINCIPLES:
1. Balances are derived from transactions, never stored separately
2. Fail early, fail visibly
3. No silent month close - the user always chooses what happens to leftovers
4. Every mutation is all-or-nothing and auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "BudgetBook Team"
