"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements a JSON key-value file as the backend, but designed to
be swappable.
"""

from budgetbook.services.storage.interface import (
    AuditStorageInterface,
    CorruptStorageError,
    LedgerStorageInterface,
    StorageError,
)
from budgetbook.services.storage.json_file import (
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
)
from budgetbook.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "CorruptStorageError",
    "StorageError",
    # JSON file implementation
    "JsonFileLedgerStorage",
    "JsonLinesAuditStorage",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
]
