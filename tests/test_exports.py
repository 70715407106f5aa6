"""
Tests for CSV export and JSON backup/restore.
"""

import csv
import io
import json

import pytest
from datetime import datetime, timezone

from budgetbook.errors import BackupFormatError, InvalidStateError
from budgetbook.exports import (
    BACKUP_VERSION,
    CSV_HEADER,
    dumps_backup,
    export_backup,
    export_csv,
    restore_backup,
)


@pytest.fixture
def populated(engine, ledger):
    engine.add_income(ledger, 1000, "Salary", "2026-10-01")
    engine.add_category(ledger, "Groceries", 300)
    engine.add_category(ledger, "Fun", 100)
    engine.add_expense(ledger, "Groceries", 50, "Market", "2026-10-03")
    engine.add_expense(ledger, "Groceries", "12.5", 'Milk, "organic"', "2026-10-04")
    engine.transfer(ledger, "Fun", "Groceries", 20)
    return ledger


class TestCsvExport:
    """Tests for the CSV format."""

    def test_header_and_rows(self, populated):
        text = export_csv(populated)
        lines = text.splitlines()

        assert lines[0] == "Type,Category,Amount,Note,Date"
        assert lines[1] == "expense,Groceries,50.00,Market,2026-10-03"
        assert lines[-1] == "income,,1000.00,Salary,2026-10-01"

    def test_fields_with_commas_and_quotes_are_escaped(self, populated):
        text = export_csv(populated)
        assert 'expense,Groceries,12.50,"Milk, ""organic""",2026-10-04' in text.splitlines()

    def test_parses_back_with_csv_reader(self, populated):
        rows = list(csv.reader(io.StringIO(export_csv(populated))))

        assert rows[0] == CSV_HEADER
        assert rows[2][3] == 'Milk, "organic"'
        # 4 transactions (2 expenses + 2 transfer legs), 1 income
        assert len(rows) == 6

    def test_transfer_legs_exported(self, populated):
        rows = list(csv.reader(io.StringIO(export_csv(populated))))
        types = [(r[0], r[1], r[3]) for r in rows[3:5]]
        assert types == [
            ("expense", "Fun", "Transfer to Groceries"),
            ("income", "Groceries", "Transfer from Fun"),
        ]

    def test_archived_month_export(self, lifecycle, populated):
        closed, _ = lifecycle.resolve_close_month(populated)
        rows = list(csv.reader(io.StringIO(export_csv(closed, "2026-10"))))
        assert len(rows) == 6

    def test_unknown_month_export(self, populated):
        with pytest.raises(InvalidStateError):
            export_csv(populated, "2020-01")


class TestBackup:
    """Tests for backup export and restore."""

    def test_backup_envelope(self, populated):
        now = datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)
        backup = export_backup(populated, now=now)

        assert backup["version"] == BACKUP_VERSION
        assert backup["exportedAt"] == "2026-10-19T08:30:00+00:00"
        assert backup["data"]["currentMonth"] == "2026-10"

    def test_round_trip(self, populated):
        restored = restore_backup(export_backup(populated))
        assert restored == populated

    def test_round_trip_through_text(self, lifecycle, populated):
        closed, _ = lifecycle.resolve_close_month(populated, {"Groceries": "pool"})
        restored = restore_backup(dumps_backup(closed))

        assert restored == closed
        assert restored.history["2026-10"] == closed.history["2026-10"]

    def test_accepts_incomes_spelling(self, populated):
        backup = export_backup(populated)
        month = backup["data"]["months"]["2026-10"]
        month["incomes"] = month.pop("income")

        restored = restore_backup(backup)
        assert len(restored.current.income) == 1

    def test_rejects_invalid_json(self):
        with pytest.raises(BackupFormatError):
            restore_backup("{not json")

    def test_rejects_non_object(self):
        with pytest.raises(BackupFormatError):
            restore_backup(json.dumps([1, 2, 3]))

    @pytest.mark.parametrize("version", [None, 2, "1", True])
    def test_rejects_bad_version(self, populated, version):
        backup = export_backup(populated)
        if version is None:
            del backup["version"]
        else:
            backup["version"] = version
        with pytest.raises(BackupFormatError):
            restore_backup(backup)

    def test_rejects_missing_months(self, populated):
        backup = export_backup(populated)
        backup["data"]["months"] = {}
        with pytest.raises(BackupFormatError):
            restore_backup(backup)

    @pytest.mark.parametrize("field", ["transactions", "income", "categories"])
    def test_rejects_month_missing_field(self, populated, field):
        backup = export_backup(populated)
        del backup["data"]["months"]["2026-10"][field]
        with pytest.raises(BackupFormatError):
            restore_backup(backup)

    def test_rejects_history_missing_incomes(self, lifecycle, populated):
        closed, _ = lifecycle.resolve_close_month(populated)
        backup = export_backup(closed)
        del backup["data"]["history"]["2026-10"]["incomes"]
        with pytest.raises(BackupFormatError):
            restore_backup(backup)

    def test_rejects_invalid_entries(self, populated):
        backup = export_backup(populated)
        backup["data"]["months"]["2026-10"]["transactions"][0]["amount"] = "-5"
        with pytest.raises(BackupFormatError) as exc_info:
            restore_backup(backup)
        assert "amount" in exc_info.value.message

    @pytest.mark.parametrize("amount", ["1e30", "1e300", "1000000000000.01"])
    def test_rejects_oversized_amounts(self, populated, amount):
        backup = export_backup(populated)
        backup["data"]["months"]["2026-10"]["income"][0]["amount"] = amount
        with pytest.raises(BackupFormatError) as exc_info:
            restore_backup(backup)
        assert "amount" in exc_info.value.message

    def test_rejects_oversized_goal(self, populated):
        backup = export_backup(populated)
        backup["data"]["months"]["2026-10"]["categories"]["Fun"]["base"] = "1e30"
        with pytest.raises(BackupFormatError):
            restore_backup(backup)

    def test_rejects_overlong_note(self, populated):
        backup = export_backup(populated)
        backup["data"]["months"]["2026-10"]["transactions"][0]["note"] = "x" * 600
        with pytest.raises(BackupFormatError) as exc_info:
            restore_backup(backup)
        assert "note" in exc_info.value.message
