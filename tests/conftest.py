"""
Shared fixtures for BudgetBook tests.

Everything runs against a fixed calendar date and in-memory storage.
No files are touched unless a test asks for tmp_path.
"""

import pytest
from datetime import date

from budgetbook.audit import AuditLogger
from budgetbook.config import LedgerSettings
from budgetbook.engine import MonthLifecycleManager, TransactionEngine
from budgetbook.orchestrator import BudgetBook
from budgetbook.services.storage import InMemoryAuditStorage, InMemoryLedgerStorage
from budgetbook.validation import LedgerValidator


TODAY = date(2026, 10, 19)


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Calendar:
    """Settable calendar date."""

    def __init__(self, today: date = TODAY):
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def calendar():
    return Calendar()


@pytest.fixture
def ledger_settings():
    return LedgerSettings(
        recompute_delay_ms=50,
        default_rollover_action="carry",
        carry_deficits=False,
    )


@pytest.fixture
def validator(ledger_settings):
    return LedgerValidator(ledger_settings)


@pytest.fixture
def engine(validator, calendar):
    return TransactionEngine(validator, clock=calendar)


@pytest.fixture
def lifecycle(ledger_settings, calendar):
    return MonthLifecycleManager(ledger_settings, clock=calendar)


@pytest.fixture
def ledger(lifecycle):
    """Empty ledger open at 2026-10."""
    return lifecycle.new_ledger()


@pytest.fixture
def storage():
    return InMemoryLedgerStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def scheduler_clock():
    return FakeClock()


@pytest.fixture
def book(storage, audit_storage, ledger_settings, calendar, scheduler_clock):
    """Started BudgetBook on an empty in-memory ledger."""
    budget_book = BudgetBook(
        storage=storage,
        audit_logger=AuditLogger(audit_storage),
        settings=ledger_settings,
        clock=calendar,
        scheduler_clock=scheduler_clock,
    )
    budget_book.start()
    return budget_book
