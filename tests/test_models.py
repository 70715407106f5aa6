"""
Tests for BudgetBook models

Test strategy:
1. Unit tests for individual models (ledger entries, months, results)
2. Blob serialization checks against the persisted camelCase format
3. Audit event construction
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from budgetbook.models.ledger import (
    MAX_AMOUNT,
    NOTE_MAX_LENGTH,
    AmountOutOfRangeError,
    ArchivedMonth,
    Category,
    IncomeRecord,
    Ledger,
    Month,
    RolloverAction,
    Transaction,
    TransactionType,
    to_money,
)
from budgetbook.models.results import (
    CloseMonthPreview,
    LeftoverItem,
    RolloverChoice,
    RolloverStatus,
)
from budgetbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestMoney:
    """Tests for cent-exact money conversion."""

    def test_float_goes_through_str(self):
        """0.1 becomes exactly 0.10, not a binary approximation."""
        assert to_money(0.1) == Decimal("0.10")

    def test_rounds_half_up_to_cents(self):
        assert to_money("2.345") == Decimal("2.35")
        assert to_money(Decimal("2.344")) == Decimal("2.34")

    def test_strips_whitespace(self):
        assert to_money("  12.5 ") == Decimal("12.50")

    @pytest.mark.parametrize("value", ["abc", "", None, True, "NaN", "Infinity", [1]])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValueError):
            to_money(value)

    @pytest.mark.parametrize("value", ["1e30", 10 ** 40, 1e300, "1000000000000.01", "-1e30"])
    def test_rejects_amounts_above_ceiling(self, value):
        """Oversized amounts fail as ValueError, never as a decimal signal."""
        with pytest.raises(AmountOutOfRangeError):
            to_money(value)

    def test_ceiling_itself_is_allowed(self):
        assert to_money(MAX_AMOUNT) == Decimal("1000000000000.00")
        assert to_money("999999999999.999") == Decimal("1000000000000.00")


class TestLedgerEntries:
    """Tests for income records, transactions and categories."""

    def test_income_record_creation(self):
        record = IncomeRecord(amount="1000", note="Salary", entry_date=date(2026, 10, 1))
        assert record.amount == Decimal("1000.00")
        assert record.note == "Salary"
        assert record.id is not None

    def test_income_record_rejects_zero_amount(self):
        with pytest.raises(PydanticValidationError):
            IncomeRecord(amount=0, note="Nothing", entry_date=date(2026, 10, 1))

    def test_income_record_rejects_huge_amount(self):
        with pytest.raises(PydanticValidationError):
            IncomeRecord(amount="1e30", note="Lottery", entry_date=date(2026, 10, 1))

    def test_notes_are_length_limited(self):
        IncomeRecord(amount=1, note="x" * NOTE_MAX_LENGTH, entry_date=date(2026, 10, 1))
        with pytest.raises(PydanticValidationError):
            IncomeRecord(amount=1, note="x" * (NOTE_MAX_LENGTH + 1), entry_date=date(2026, 10, 1))

    def test_income_record_accepts_date_alias(self):
        """The persisted field name is 'date'."""
        record = IncomeRecord.model_validate(
            {"amount": "5.00", "note": "Gift", "date": "2026-10-02"}
        )
        assert record.entry_date == date(2026, 10, 2)

    def test_expense_requires_category(self):
        with pytest.raises(PydanticValidationError):
            Transaction(
                amount=10,
                type=TransactionType.EXPENSE,
                note="Lunch",
                entry_date=date(2026, 10, 1),
            )

    def test_transaction_rejects_negative_amount(self):
        """Direction lives in the type, never in the sign."""
        with pytest.raises(PydanticValidationError):
            Transaction(
                amount=-10,
                type=TransactionType.EXPENSE,
                category="Food",
                note="Refund",
                entry_date=date(2026, 10, 1),
            )

    def test_transfer_leg_flag(self):
        leg = Transaction(
            amount=10,
            type=TransactionType.INCOME,
            category="Food",
            note="Transfer from Fun",
            entry_date=date(2026, 10, 1),
            transfer_id=uuid4(),
        )
        assert leg.is_transfer

    def test_category_defaults_to_no_rollover(self):
        category = Category(name="Rent", base="1200")
        assert category.rollover == Decimal("0.00")

    def test_category_allows_negative_rollover(self):
        """Rollover is a signed delta."""
        category = Category(name="Rent", base="1200", rollover="-50")
        assert category.rollover == Decimal("-50.00")


class TestMonthAndLedger:
    """Tests for the month container and ledger invariants."""

    def test_month_key_format(self):
        with pytest.raises(PydanticValidationError):
            Month(key="2026-13")

    def test_month_category_keys_must_match_names(self):
        with pytest.raises(PydanticValidationError):
            Month(key="2026-10", categories={"Food": Category(name="Fun", base=10)})

    def test_ledger_requires_current_month_record(self):
        with pytest.raises(PydanticValidationError):
            Ledger(current_month="2026-10", months={})

    def test_ledger_rejects_closed_current_month(self):
        with pytest.raises(PydanticValidationError):
            Ledger(
                current_month="2026-10",
                months={"2026-10": Month(key="2026-10", closed=True)},
            )

    def test_ledger_rejects_second_open_month(self):
        with pytest.raises(PydanticValidationError):
            Ledger(
                current_month="2026-10",
                months={
                    "2026-09": Month(key="2026-09"),
                    "2026-10": Month(key="2026-10"),
                },
            )

    def test_blob_uses_camel_case_and_string_money(self):
        ledger = Ledger(
            current_month="2026-10",
            months={
                "2026-10": Month(
                    key="2026-10",
                    income=[IncomeRecord(amount="1000", note="Salary", entry_date=date(2026, 10, 1))],
                    categories={"Food": Category(name="Food", base="300")},
                ),
            },
        )
        blob = ledger.to_blob()

        assert blob["currentMonth"] == "2026-10"
        month = blob["months"]["2026-10"]
        assert month["income"][0]["date"] == "2026-10-01"
        assert month["income"][0]["amount"] == "1000.00"
        assert month["categories"]["Food"]["base"] == "300.00"
        assert "openedAt" in month

    def test_blob_round_trip(self):
        ledger = Ledger(
            current_month="2026-10",
            months={"2026-10": Month(key="2026-10", categories={"Food": Category(name="Food", base=300)})},
        )
        restored = Ledger.from_blob(ledger.to_blob())
        assert restored == ledger

    def test_archived_month_is_frozen(self):
        archived = ArchivedMonth()
        with pytest.raises(PydanticValidationError):
            archived.transactions = []


class TestResultModels:
    """Tests for month-close and read models."""

    def test_rollover_choice_target_only_for_move(self):
        with pytest.raises(PydanticValidationError):
            RolloverChoice(action=RolloverAction.CARRY, target="Food")

    def test_rollover_choice_move_with_target(self):
        choice = RolloverChoice(action="move", target="Savings")
        assert choice.action == RolloverAction.MOVE
        assert choice.target == "Savings"

    def test_rollover_status_message(self):
        status = RolloverStatus(ledger_month="2026-09", calendar_month="2026-10", needs_close=True)
        assert "2026-09 has ended" in status.message

    def test_preview_totals_only_actionable(self):
        preview = CloseMonthPreview(
            month_key="2026-10",
            next_month_key="2026-11",
            items=[
                LeftoverItem(
                    category="Food", allocated=Decimal("300"), spent=Decimal("90"),
                    leftover=Decimal("210"), actionable=True, default_action=RolloverAction.CARRY,
                ),
                LeftoverItem(
                    category="Fun", allocated=Decimal("50"), spent=Decimal("80"),
                    leftover=Decimal("-30"), actionable=False, default_action=RolloverAction.CARRY,
                ),
            ],
        )
        assert [item.category for item in preview.actionable_items] == ["Food"]
        assert preview.total_leftover == Decimal("210")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.INCOME_ADDED,
            description="Income added",
        )
        assert event.event_id is not None
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo == timezone.utc

    def test_audit_event_to_log_dict(self):
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.MONTH_CLOSED,
            month_key="2026-10",
            correlation_id=correlation_id,
            description="Closed",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "month_closed"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert isinstance(log_dict["timestamp"], str)

    def test_builder_category_added_existing(self):
        event = AuditEventBuilder.category_added(
            "2026-10", "Food", Decimal("50"), Decimal("350"), existed=True,
        )
        assert event.event_type == AuditEventType.CATEGORY_GOAL_INCREASED
        assert event.entity_id == "Food"
        assert event.details["base"] == "350"

    def test_builder_command_rejected(self):
        event = AuditEventBuilder.command_rejected(
            "transfer", "INSUFFICIENT_FUNDS", "Not enough", "2026-10",
        )
        assert event.event_type == AuditEventType.COMMAND_REJECTED
        assert event.error_code == "INSUFFICIENT_FUNDS"
        assert event.severity == AuditSeverity.WARNING

    def test_event_json_round_trip(self):
        event = AuditEventBuilder.month_closed("2026-10", "2026-11", Decimal("25.00"), uuid4())
        restored = AuditEvent.model_validate_json(event.model_dump_json())
        assert restored == event
        assert isinstance(restored.timestamp, datetime)
