"""Versioned data migrations applied at startup."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ...domain.clock import to_iso
from ...domain.errors import MigrationError, StorageError
from ...domain.models import Snippet, User
from ...domain.validators import validate_snippet_record, validate_user_record
from ...services.password_hasher import PasswordHasher
from .database import DatabaseManager
from .sample_data import create_sample_data

logger = logging.getLogger(__name__)

CURRENT_VERSION = "1.0.0"


def parse_version(version: str) -> Tuple[int, int, int]:
    parts = [int(part) for part in version.strip().split(".") if part != ""]
    if len(parts) > 3:
        raise ValueError(f"Unsupported version format: {version}")
    parts += [0] * (3 - len(parts))
    return parts[0], parts[1], parts[2]


def compare_versions(a: str, b: str) -> int:
    left, right = parse_version(a), parse_version(b)
    return (left > right) - (left < right)


@dataclass(slots=True)
class Migration:
    version: str
    description: str
    up: Callable[[DatabaseManager], None]
    down: Callable[[DatabaseManager], None]


def default_migrations(hasher: PasswordHasher, seed_sample_data: bool = True) -> List[Migration]:
    def seed(database: DatabaseManager) -> None:
        if seed_sample_data:
            create_sample_data(database, hasher)

    return [
        Migration(
            version="1.0.0",
            description="Initial database setup with sample data",
            up=seed,
            down=lambda database: database.clear_all(),
        ),
    ]


class MigrationRunner:
    """Brings the stored schema version marker up to ``target_version``."""

    def __init__(
        self,
        database: DatabaseManager,
        migrations: Sequence[Migration],
        target_version: str = CURRENT_VERSION,
    ) -> None:
        self._db = database
        self._migrations = sorted(migrations, key=lambda item: parse_version(item.version))
        self._target_version = target_version

    @property
    def target_version(self) -> str:
        return self._target_version

    def initialize(self) -> int:
        """Run pending migrations and verify integrity. Returns how many ran."""
        try:
            current = self._db.get_schema_version()
            if not current:
                logger.info("Fresh installation detected, setting up database")
                ran = self._run_migrations()
                self._db.set_schema_version(self._target_version)
            elif compare_versions(current, self._target_version) != 0:
                logger.info(
                    "Database version mismatch. Current: %s, Required: %s",
                    current,
                    self._target_version,
                )
                ran = self._run_migrations(current)
                self._db.set_schema_version(self._target_version)
            else:
                logger.info("Database is up to date (%s)", current)
                ran = 0
            self.verify_integrity()
        except MigrationError:
            raise
        except (StorageError, ValueError) as exc:
            logger.exception("Failed to initialize database")
            raise MigrationError("Database initialization failed") from exc
        return ran

    def _run_migrations(self, from_version: Optional[str] = None) -> int:
        pending = [
            migration
            for migration in self._migrations
            if compare_versions(migration.version, self._target_version) <= 0
            and (from_version is None or compare_versions(migration.version, from_version) > 0)
        ]
        for migration in pending:
            logger.info("Running migration %s - %s", migration.version, migration.description)
            migration.up(self._db)
        logger.info("Ran %d migrations", len(pending))
        return len(pending)

    def rollback(self, to_version: str) -> int:
        newer = [m for m in self._migrations if compare_versions(m.version, to_version) > 0]
        for migration in reversed(newer):
            logger.info("Rolling back migration %s", migration.version)
            migration.down(self._db)
        self._db.set_schema_version(to_version)
        logger.info("Rolled back to version %s", to_version)
        return len(newer)

    def verify_integrity(self) -> None:
        stats = self._db.stats()
        logger.info("Database statistics: %s", stats.to_dict())
        if stats.users < 0 or stats.snippets < 0:
            raise MigrationError("Invalid database state detected")

    def reset(self) -> int:
        logger.info("Resetting database")
        self._db.clear_all()
        self._db.clear_schema_version()
        return self.initialize()

    def export_json(self) -> str:
        data = {
            "version": self._target_version,
            "timestamp": to_iso(self._db.clock()),
            "users": self._db.get_user_records(),
            "snippets": self._db.get_snippet_records(),
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def import_json(self, payload: str | Dict[str, Any]) -> Dict[str, int]:
        """Replace users and snippets with the exported ``payload``.

        Records that fail validation are skipped; the counts of imported
        records are returned.
        """
        try:
            data = json.loads(payload) if isinstance(payload, str) else payload
        except ValueError as exc:
            raise MigrationError("Invalid import data format") from exc
        if (
            not isinstance(data, dict)
            or not isinstance(data.get("users"), list)
            or not isinstance(data.get("snippets"), list)
        ):
            raise MigrationError("Invalid import data format")

        self._db.clear_all()
        users = sum(
            1
            for record in data["users"]
            if validate_user_record(record) and self._db.save_user(User.from_record(record))
        )
        snippets = sum(
            1
            for record in data["snippets"]
            if validate_snippet_record(record) and self._db.save_snippet(Snippet.from_record(record))
        )
        logger.info("Imported %d users and %d snippets", users, snippets)
        return {"users": users, "snippets": snippets}

    def info(self) -> Dict[str, Any]:
        return {
            "version": self._db.get_schema_version() or "unknown",
            "targetVersion": self._target_version,
            "stats": self._db.stats().to_dict(),
            "migrations": [
                {"version": migration.version, "description": migration.description}
                for migration in self._migrations
            ],
        }
