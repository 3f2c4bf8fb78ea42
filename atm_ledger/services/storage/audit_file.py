"""
JSON-Lines Audit Storage

Audit events are appended to a text file, one JSON object per line.
The file is append-only; nothing in the application rewrites it.
"""

from pathlib import Path

import structlog
from pydantic import ValidationError as PydanticValidationError

from atm_ledger.exceptions import StorageIOError
from atm_ledger.models.audit import AuditEvent
from atm_ledger.services.storage.interface import AuditStorageInterface


logger = structlog.get_logger(__name__)


class JsonLinesAuditStorage(AuditStorageInterface):
    """Append-only audit trail in a JSON-lines file."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def append_event(self, event: AuditEvent) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "a", encoding="utf-8") as handle:
                handle.write(event.to_json_line() + "\n")
            return True
        except OSError as e:
            # Audit logging must not break the main flow
            logger.warning(
                "audit_append_failed",
                path=str(self._path),
                event_id=str(event.event_id),
                error=str(e),
            )
            return False

    def _read_all(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        try:
            with open(self._path, "r", encoding="utf-8") as handle:
                lines = handle.readlines()
        except OSError as e:
            raise StorageIOError(f"Cannot read audit trail {self._path}: {e}") from e

        events = []
        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                events.append(AuditEvent.from_json_line(line))
            except PydanticValidationError:
                logger.warning(
                    "audit_line_skipped",
                    path=str(self._path),
                    line_number=line_number,
                )
        return events

    def get_events_by_actor(self, actor: str) -> list[AuditEvent]:
        events = [event for event in self._read_all() if event.actor == actor]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = self._read_all()[::-1]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
