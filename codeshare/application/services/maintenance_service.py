from __future__ import annotations

import logging
from typing import Any, Dict, List

from ...domain.errors import MigrationError, OperationResult
from ...domain.models import DatabaseStats
from ...infrastructure.persistence.database import DatabaseManager
from ...infrastructure.persistence.event_log import EventLog
from ...infrastructure.persistence.migrations import MigrationRunner
from .auth_service import AuthService
from .operation import run_operation

logger = logging.getLogger(__name__)


class MaintenanceService:
    """Administrative operations: statistics, backups, export/import and cleanup."""

    def __init__(
        self,
        database: DatabaseManager,
        migrations: MigrationRunner,
        auth_service: AuthService,
        events: EventLog,
    ) -> None:
        self._db = database
        self._migrations = migrations
        self._auth = auth_service
        self._events = events

    def stats(self) -> DatabaseStats:
        return self._db.stats()

    def info(self) -> Dict[str, Any]:
        return self._migrations.info()

    def create_backup(self) -> OperationResult:
        return run_operation(self._events, "create_backup", self._db.create_backup)

    def restore_from_backup(self) -> OperationResult:
        return run_operation(self._events, "restore_from_backup", self._db.restore_from_backup)

    def clear_all(self) -> OperationResult:
        return run_operation(self._events, "clear_all", self._db.clear_all)

    def export_json(self) -> str:
        return self._migrations.export_json()

    def import_json(self, payload: str | Dict[str, Any]) -> OperationResult:
        try:
            counts = self._migrations.import_json(payload)
        except MigrationError as exc:
            self._events.log_error(f"Import failed: {exc}", {"operation": "import_json"})
            return OperationResult.fail(str(exc), exc.kind)
        return OperationResult.ok(counts)

    def reset(self) -> OperationResult:
        try:
            ran = self._migrations.reset()
        except MigrationError as exc:
            self._events.log_error(f"Reset failed: {exc}", {"operation": "reset"})
            return OperationResult.fail(str(exc), exc.kind)
        return OperationResult.ok({"migrations": ran})

    def cleanup(self) -> Dict[str, int]:
        """Prune state that has outlived its expiry."""
        result = {
            "resetTokens": self._auth.cleanup_expired_tokens(),
            "sessions": self._auth.purge_expired_sessions(),
            "loginAttempts": self._auth.purge_login_attempts(),
        }
        logger.info("Maintenance cleanup finished: %s", result)
        return result

    def recent_events(self, limit: int = 10) -> List[Dict[str, Any]]:
        return self._events.recent(limit)

    def event_stats(self) -> Dict[str, int]:
        return self._events.stats()

    def clear_events(self) -> None:
        self._events.clear()

    def export_events(self) -> str:
        return self._events.export_json()
