"""
JSON File Storage Implementation

DESIGN DECISION: The ledger lives in a local JSON file used as a key-value
store: {storage_key: ledger_blob}. This is the same shape as a browser's
localStorage entry, so a single file can hold the blob next to anything
else the host application wants to keep.

TRADEOFFS:
- The whole blob is rewritten on every mutation (fine for personal data)
- Writes go to a temp file and are renamed into place, so a crash mid-write
  never leaves a truncated ledger behind
- Transient OS errors are retried with tenacity before giving up

The audit trail is a separate append-only JSON lines file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from budgetbook.config import get_settings
from budgetbook.models.audit import AuditEvent
from budgetbook.services.storage.interface import (
    AuditStorageInterface,
    CorruptStorageError,
    LedgerStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


def _write_retry(attempts: int):
    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )


class JsonFileLedgerStorage(LedgerStorageInterface):
    """
    Ledger blob stored under one key of a JSON file.

    Other keys in the file are preserved on save.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        storage_key: Optional[str] = None,
        write_retries: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._path = Path(path or settings.data_path).expanduser()
        self._key = storage_key or settings.storage_key
        self._write = _write_retry(write_retries or settings.write_retries)(self._write_file)

    @property
    def path(self) -> Path:
        return self._path

    def _read_file(self) -> dict:
        """Read the whole key-value file. Missing file = empty store."""
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as f:
                content = json.load(f)
        except json.JSONDecodeError as e:
            raise CorruptStorageError(f"Ledger file is not valid JSON: {self._path}: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read ledger file {self._path}: {e}")

        if not isinstance(content, dict):
            raise CorruptStorageError(f"Ledger file does not hold a key-value object: {self._path}")
        return content

    def _write_file(self, content: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=str(self._path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(content, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            # Never leave temp files behind
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def load(self) -> Optional[dict]:
        """Read the ledger blob, or None on first run."""
        blob = self._read_file().get(self._key)
        if blob is None:
            return None
        if not isinstance(blob, dict):
            raise CorruptStorageError(
                f"Value under '{self._key}' in {self._path} is not a ledger blob"
            )
        return blob

    def save(self, blob: dict) -> bool:
        """Replace the ledger blob, keeping any other keys in the file."""
        content = self._read_file()
        content[self._key] = blob
        try:
            self._write(content)
        except (OSError, TypeError, ValueError) as e:
            logger.error("ledger_save_failed", path=str(self._path), error=str(e))
            raise StorageError(f"Failed to save ledger: {e}")
        return True

    def clear(self) -> None:
        content = self._read_file()
        if content.pop(self._key, None) is None:
            return
        try:
            self._write(content)
        except OSError as e:
            raise StorageError(f"Failed to clear ledger: {e}")


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON object per line.

    Reading always parses the whole file. Malformed lines are skipped.
    """

    def __init__(self, path: Optional[str] = None):
        settings = get_settings().storage
        resolved = path or settings.audit_log_path
        if not resolved:
            raise StorageError("No audit log path configured")
        self._path = Path(resolved).expanduser()

    @_write_retry(3)
    def _append_line(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._append_line(event.model_dump_json())
            return True
        except OSError as e:
            # Audit logging must never break the main flow
            logger.warning("audit_write_failed", path=str(self._path), error=str(e))
            return False

    def _read_events(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        events = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        events.append(AuditEvent.model_validate_json(line))
                    except ValueError:
                        continue
        except OSError as e:
            raise StorageError(f"Failed to read audit log: {e}")
        return events

    def get_events_by_correlation_id(self, correlation_id) -> list[AuditEvent]:
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_events_by_month(self, month_key: str) -> list[AuditEvent]:
        events = [e for e in self._read_events() if e.month_key == month_key]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = self._read_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
