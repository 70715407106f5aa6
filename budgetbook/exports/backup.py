"""
JSON Backup and Restore

Backup format:

    {
      "version": 1,
      "exportedAt": "2026-10-19T08:30:00+00:00",
      "data": <full ledger blob>
    }

DESIGN DECISION: Restore is all-or-nothing. The backup is checked for
structure first (every month has transactions, income and categories;
every history entry has transactions and incomes), then parsed into a
Ledger. Only a fully valid Ledger ever replaces state. There is no merge.
"""

import json
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from budgetbook.errors import BackupFormatError
from budgetbook.models.ledger import LEDGER_SCHEMA_VERSION, Ledger, utc_now


BACKUP_VERSION = LEDGER_SCHEMA_VERSION


def export_backup(ledger: Ledger, now: Optional[datetime] = None) -> dict:
    """Wrap the full ledger blob with a version and export timestamp."""
    return {
        "version": BACKUP_VERSION,
        "exportedAt": (now or utc_now()).isoformat(),
        "data": ledger.to_blob(),
    }


def dumps_backup(ledger: Ledger, now: Optional[datetime] = None) -> str:
    return json.dumps(export_backup(ledger, now), indent=2, ensure_ascii=False)


def _check_month(key: str, month: Any) -> dict:
    if not isinstance(month, dict):
        raise BackupFormatError(f"Month {key} is not an object")
    if not isinstance(month.get("transactions"), list):
        raise BackupFormatError(f"Month {key} is missing its transactions list")

    # Accept either spelling for the month's income list
    if "income" not in month and "incomes" in month:
        month = {**month, "income": month["incomes"]}
        del month["incomes"]
    if not isinstance(month.get("income"), list):
        raise BackupFormatError(f"Month {key} is missing its income list")

    if not isinstance(month.get("categories"), dict):
        raise BackupFormatError(f"Month {key} is missing its category map")
    return month


def _check_history(key: str, entry: Any) -> None:
    if not isinstance(entry, dict):
        raise BackupFormatError(f"History entry {key} is not an object")
    if not isinstance(entry.get("transactions"), list):
        raise BackupFormatError(f"History entry {key} is missing its transactions list")
    if not isinstance(entry.get("incomes"), list):
        raise BackupFormatError(f"History entry {key} is missing its incomes list")


def _describe(error: PydanticValidationError) -> str:
    parts = []
    for detail in error.errors()[:3]:
        location = ".".join(str(p) for p in detail["loc"]) or "data"
        parts.append(f"{location}: {detail['msg']}")
    more = error.error_count() - len(parts)
    if more > 0:
        parts.append(f"and {more} more")
    return "; ".join(parts)


def restore_backup(backup: Union[dict, str, bytes]) -> Ledger:
    """
    Validate a backup and build the Ledger it describes.

    Args:
        backup: Parsed backup dict, or its JSON text

    Returns:
        The restored Ledger. The caller decides when to swap it in.

    Raises:
        BackupFormatError: With a descriptive message, for any problem
    """
    if isinstance(backup, (str, bytes)):
        try:
            backup = json.loads(backup)
        except json.JSONDecodeError as e:
            raise BackupFormatError(f"Backup is not valid JSON: {e}")

    if not isinstance(backup, dict):
        raise BackupFormatError("Backup must be a JSON object")

    version = backup.get("version")
    if version is None:
        raise BackupFormatError("Backup has no version")
    if not isinstance(version, int) or isinstance(version, bool) or version != BACKUP_VERSION:
        raise BackupFormatError(
            f"Unsupported backup version: {version!r} (expected {BACKUP_VERSION})"
        )

    data = backup.get("data")
    if not isinstance(data, dict):
        raise BackupFormatError("Backup has no ledger data")

    months = data.get("months")
    if not isinstance(months, dict) or not months:
        raise BackupFormatError("Backup has no months")
    history = data.get("history", {})
    if not isinstance(history, dict):
        raise BackupFormatError("Backup history is not an object")

    normalized = {
        **data,
        "months": {key: _check_month(key, month) for key, month in months.items()},
    }
    for key, entry in history.items():
        _check_history(key, entry)

    try:
        return Ledger.from_blob(normalized)
    except PydanticValidationError as e:
        raise BackupFormatError(f"Backup data is invalid: {_describe(e)}")
