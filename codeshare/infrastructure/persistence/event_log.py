"""Persistent, capped log of errors, warnings and notable events."""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, List, Optional

from ...domain.clock import to_iso
from ...domain.errors import StorageError
from .database import DatabaseManager

logger = logging.getLogger(__name__)

EVENT_TYPES = ("error", "warning", "info")


class EventLog:
    """Keeps the most recent ``max_entries`` events under the events key."""

    def __init__(self, database: DatabaseManager, max_entries: int = 100) -> None:
        self._db = database
        self._max_entries = max_entries

    def log_error(self, error: Exception | str, context: Optional[Dict[str, Any]] = None, user_id: Optional[str] = None) -> None:
        self._record("error", str(error), context, user_id)

    def log_warning(self, message: str, context: Optional[Dict[str, Any]] = None, user_id: Optional[str] = None) -> None:
        self._record("warning", message, context, user_id)

    def log_info(self, message: str, context: Optional[Dict[str, Any]] = None, user_id: Optional[str] = None) -> None:
        self._record("info", message, context, user_id)

    def get_logs(self) -> List[Dict[str, Any]]:
        return self._db.read_events()

    def get_logs_by_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [entry for entry in self.get_logs() if entry.get("type") == event_type]

    def recent(self, limit: int = 10) -> List[Dict[str, Any]]:
        return sorted(self.get_logs(), key=lambda entry: entry.get("timestamp", ""), reverse=True)[:limit]

    def clear(self) -> None:
        self._db.clear_events()

    def export_json(self) -> str:
        return json.dumps(self.get_logs(), indent=2, ensure_ascii=False)

    def stats(self) -> Dict[str, int]:
        logs = self.get_logs()
        counts = {event_type: 0 for event_type in EVENT_TYPES}
        for entry in logs:
            if entry.get("type") in counts:
                counts[entry["type"]] += 1
        return {"total": len(logs), "errors": counts["error"], "warnings": counts["warning"], "info": counts["info"]}

    def _record(self, event_type: str, message: str, context: Optional[Dict[str, Any]], user_id: Optional[str]) -> None:
        entry: Dict[str, Any] = {
            "id": uuid.uuid4().hex,
            "timestamp": to_iso(self._db.clock()),
            "type": event_type,
            "message": message,
        }
        if context:
            entry["context"] = json.loads(json.dumps(context, default=str))
        if user_id:
            entry["userId"] = user_id

        def append(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
            entries.append(entry)
            return entries[-self._max_entries:]

        try:
            self._db.update_events(append)
        except StorageError:
            logger.exception("Failed to persist %s event: %s", event_type, message)
