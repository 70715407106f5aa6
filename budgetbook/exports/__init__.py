"""CSV export and JSON backup/restore."""

from budgetbook.exports.backup import (
    BACKUP_VERSION,
    dumps_backup,
    export_backup,
    restore_backup,
)
from budgetbook.exports.csv_export import CSV_HEADER, csv_rows, export_csv

__all__ = [
    "BACKUP_VERSION",
    "CSV_HEADER",
    "csv_rows",
    "dumps_backup",
    "export_backup",
    "export_csv",
    "restore_backup",
]
