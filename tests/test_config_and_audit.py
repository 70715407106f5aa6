"""
Tests for configuration and the audit logger.
"""

import pytest
from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError

from budgetbook.audit import AuditLogger, create_correlation_id
from budgetbook.config import LedgerSettings, StorageSettings, validate_all_settings
from budgetbook.models.audit import AuditEventBuilder, AuditEventType
from budgetbook.services.storage import InMemoryAuditStorage


class ExplodingAuditStorage(InMemoryAuditStorage):
    def append_event(self, event) -> bool:
        raise RuntimeError("audit backend down")


class TestSettings:
    """Tests for pydantic-settings configuration."""

    def test_ledger_defaults(self):
        settings = LedgerSettings()
        assert settings.recompute_delay_ms >= 0
        assert settings.default_rollover_action in ("carry", "pool", "redistribute", "discard")

    def test_default_action_normalized(self):
        assert LedgerSettings(default_rollover_action=" Pool ").default_rollover_action == "pool"

    @pytest.mark.parametrize("action", ["move", "keep"])
    def test_default_action_rejected(self, action):
        with pytest.raises(PydanticValidationError):
            LedgerSettings(default_rollover_action=action)

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("BUDGETBOOK_LEDGER_CARRY_DEFICITS", "true")
        monkeypatch.setenv("BUDGETBOOK_LEDGER_RECOMPUTE_DELAY_MS", "10")
        settings = LedgerSettings()
        assert settings.carry_deficits is True
        assert settings.recompute_delay_ms == 10

    def test_storage_settings(self, tmp_path):
        settings = StorageSettings(data_path=str(tmp_path / "data.json"), write_retries=2)
        assert settings.storage_key == "budgetData"
        assert settings.write_retries == 2

    def test_missing_data_dir_warns(self, tmp_path):
        with pytest.warns(UserWarning):
            StorageSettings(data_path=str(tmp_path / "missing" / "data.json"))

    def test_validate_all_settings(self):
        results = validate_all_settings()
        assert results["ledger"] is True


class TestAuditLogger:
    """Tests for the audit logger."""

    def test_log_persists_event(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)

        logger.log_expense_added("2026-10", create_correlation_id(), "Food", Decimal("5.00"))

        assert storage.events[0].event_type == AuditEventType.EXPENSE_ADDED
        assert storage.events[0].details["amount"] == "5.00"

    def test_without_storage(self):
        assert AuditLogger().log(AuditEventBuilder.ledger_created("2026-10"))

    def test_storage_failure_never_raises(self):
        logger = AuditLogger(ExplodingAuditStorage())
        assert logger.log(AuditEventBuilder.ledger_created("2026-10")) is False
