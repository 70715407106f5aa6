"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger in a local JSON file today
2. Use in-memory storage for testing
3. Swap in another key-value backend later
4. Keep the engine decoupled from where bytes end up

The ledger store is deliberately dumb: it reads and writes one opaque,
serializable blob. All business rules live in budgetbook.engine.
"""

from abc import ABC, abstractmethod
from typing import Optional

from budgetbook.models.audit import AuditEvent


class LedgerStorageInterface(ABC):
    """
    Abstract interface for the ledger blob.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self) -> Optional[dict]:
        """
        Read the stored ledger blob.

        Returns:
            The blob, or None if nothing has been saved yet

        Raises:
            CorruptStorageError: If stored data cannot be decoded
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save(self, blob: dict) -> bool:
        """
        Replace the stored ledger blob wholesale.

        Args:
            blob: JSON-safe ledger blob

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored blob."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(self, correlation_id) -> list[AuditEvent]:
        """Get all events for a correlation ID, in chronological order."""
        pass

    @abstractmethod
    def get_events_by_month(self, month_key: str) -> list[AuditEvent]:
        """Get all events for a ledger month, in chronological order."""
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptStorageError(StorageError):
    """Stored data exists but cannot be decoded."""
    pass
