"""
Configuration Management for BudgetBook

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage location, rollover defaults and the recompute delay are all
validated at startup instead of being scattered through the engine.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ROLLOVER_ACTIONS = ("carry", "pool", "redistribute", "move", "discard")


class StorageSettings(BaseSettings):
    """Where the ledger blob and the audit trail live."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGETBOOK_STORAGE_",
        extra="ignore"
    )

    data_path: str = Field(
        default="budget_data.json",
        description="Path to the JSON key-value file holding the ledger blob"
    )
    storage_key: str = Field(
        default="budgetData",
        min_length=1,
        description="Key under which the ledger blob is stored"
    )
    audit_log_path: Optional[str] = Field(
        default=None,
        description="Path to the append-only audit log (JSON lines). None = local logging only"
    )
    write_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a ledger write before giving up"
    )

    @field_validator('data_path')
    @classmethod
    def validate_data_path(cls, v: str) -> str:
        """Warn if the parent directory doesn't exist (it may be mounted later)."""
        parent = Path(v).expanduser().parent
        if not parent.exists():
            import warnings
            warnings.warn(
                f"Ledger data directory not found at {parent}. "
                "It will be created on first save."
            )
        return v


class LedgerSettings(BaseSettings):
    """Business rules that are deliberately configurable."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGETBOOK_LEDGER_",
        extra="ignore"
    )

    recompute_delay_ms: int = Field(
        default=50,
        ge=0,
        le=5000,
        description="Debounce window for recomputing the read snapshot"
    )
    default_rollover_action: str = Field(
        default="carry",
        description="Action applied to a leftover when the caller gives no choice"
    )
    carry_deficits: bool = Field(
        default=False,
        description="Carry overspending into next month as a negative rollover"
    )
    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Symbol used in user-facing messages"
    )

    # Sanity checking (warning only, never blocks)
    max_reasonable_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Amounts above this produce a warning"
    )
    future_date_tolerance_days: int = Field(
        default=31,
        ge=0,
        description="How far in the future an entry may be dated before warning"
    )

    @field_validator('default_rollover_action')
    @classmethod
    def validate_default_action(cls, v: str) -> str:
        v = v.strip().lower()
        # move needs a target, so it can never be a default
        if v not in ROLLOVER_ACTIONS or v == "move":
            raise ValueError(
                f"Unsupported default rollover action: {v}. "
                f"Allowed: carry, pool, redistribute, discard"
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for local structured logs"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry for each section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "ledger", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
