"""Configuration package."""

from budgetbook.config.settings import (
    ROLLOVER_ACTIONS,
    AppSettings,
    LedgerSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ROLLOVER_ACTIONS",
    "AppSettings",
    "LedgerSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
