"""
In-Memory Storage

Suitable for tests and for running without a configured data file.
All state is lost when the process exits.
"""

import copy
import json
from typing import Optional

from budgetbook.models.audit import AuditEvent
from budgetbook.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    StorageError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """
    Holds the ledger blob in process memory.

    Blobs are round-tripped through JSON on save so that anything a file
    backend would reject is rejected here too.
    """

    def __init__(self, blob: Optional[dict] = None):
        self._blob = copy.deepcopy(blob) if blob is not None else None
        self.save_count = 0

    def load(self) -> Optional[dict]:
        return copy.deepcopy(self._blob)

    def save(self, blob: dict) -> bool:
        try:
            self._blob = json.loads(json.dumps(blob))
        except (TypeError, ValueError) as e:
            raise StorageError(f"Failed to save ledger: {e}")
        self.save_count += 1
        return True

    def clear(self) -> None:
        self._blob = None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event.model_copy(deep=True))
        return True

    def get_events_by_correlation_id(self, correlation_id) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    def get_events_by_month(self, month_key: str) -> list[AuditEvent]:
        events = [e for e in self._events if e.month_key == month_key]
        return sorted(events, key=lambda e: e.timestamp)

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
