"""Collection-oriented document database over a string key-value store.

Users and snippets are each stored as one JSON array under a fixed key. Every
mutation reads the whole collection, changes it in memory and writes it back,
so each collection has its own lock around that read-modify-write.
"""

from __future__ import annotations

import json
import logging
import math
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from ...domain.clock import Clock, to_iso, utc_now
from ...domain.errors import StorageError
from ...domain.models import DatabaseStats, ResetToken, Session, Snippet, User
from ...domain.ports.persistence import KeyValueStore
from ...domain.validators import (
    validate_reset_token_record,
    validate_session_record,
    validate_snippet_record,
    validate_user_record,
)

logger = logging.getLogger(__name__)

USERS_KEY = "codeshare_users"
SNIPPETS_KEY = "codeshare_snippets"
SESSIONS_KEY = "codeshare_sessions"
VERSION_KEY = "codeshare_db_version"
RESET_TOKENS_KEY = "codeshare_reset_tokens"
EVENTS_KEY = "codeshare_events"
BACKUP_KEY = "codeshare_backup"
_SELF_TEST_KEY = "codeshare_self_test"


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    index = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / math.pow(1024, index), 2)
    return f"{value:g} {units[index]}"


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


class DatabaseManager:
    """Owns every persisted key; nothing else talks to the store directly."""

    def __init__(self, store: KeyValueStore, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock
        self._users_lock = threading.RLock()
        self._snippets_lock = threading.RLock()
        self._sessions_lock = threading.RLock()
        self._tokens_lock = threading.RLock()
        self._events_lock = threading.RLock()
        self._self_test()

    def _self_test(self) -> None:
        try:
            self._store.set(_SELF_TEST_KEY, "test")
            value = self._store.get(_SELF_TEST_KEY)
            self._store.remove(_SELF_TEST_KEY)
        except StorageError:
            logger.exception("Database initialization failed")
            raise
        if value != "test":
            raise StorageError("Key-value store is not working properly")
        logger.info("Database initialized successfully")

    @property
    def clock(self) -> Clock:
        return self._clock

    # Raw helpers --------------------------------------------------------------
    def _read_json(self, key: str) -> Any:
        raw = self._store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Stored value under %s is not valid JSON", key)
            return _CORRUPT

    def _write_json(self, key: str, value: Any) -> None:
        self._store.set(key, _dumps(value))

    def _load_list(self, key: str, validator: Callable[[Any], bool], label: str) -> List[Dict[str, Any]]:
        data = self._read_json(key)
        if data is None:
            self._write_json(key, [])
            return []
        if not isinstance(data, list):
            logger.warning("Invalid %s data format, resetting", label)
            self._write_json(key, [])
            return []
        valid = [item for item in data if validator(item)]
        if len(valid) != len(data):
            logger.debug("Dropped %d invalid %s records", len(data) - len(valid), label)
        return valid

    def _merge(self, model: Type, record: Dict[str, Any], changes: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        merged = dict(record)
        for attr, value in changes.items():
            if attr == "id":
                continue
            key = model.FIELDS.get(attr)
            if key is None:
                logger.error("Unknown %s field %s", model.__name__, attr)
                return None
            merged[key] = list(value) if attr == "tags" else value
        merged["updatedAt"] = to_iso(self._clock())
        return merged

    # Users --------------------------------------------------------------------
    def get_user_records(self) -> List[Dict[str, Any]]:
        with self._users_lock:
            return self._load_list(USERS_KEY, validate_user_record, "users")

    def get_users(self) -> List[User]:
        return [User.from_record(record) for record in self.get_user_records()]

    def get_user(self, user_id: str) -> Optional[User]:
        return next((user for user in self.get_users() if user.id == user_id), None)

    def find_user_by_email(self, email: str) -> Optional[User]:
        needle = email.strip().lower()
        return next((user for user in self.get_users() if user.email.lower() == needle), None)

    def save_user(self, user: User) -> bool:
        record = user.to_record()
        if not validate_user_record(record):
            logger.error("Invalid user data for %s", user.id)
            return False
        with self._users_lock:
            records = self._load_list(USERS_KEY, validate_user_record, "users")
            if any(item["id"] == record["id"] for item in records):
                logger.error("User %s already exists", record["id"])
                return False
            if self._email_taken(records, record["email"], record["id"]):
                logger.error("User with this email already exists")
                return False
            records.append(record)
            self._write_json(USERS_KEY, records)
        logger.info("User %s saved", record["id"])
        return True

    def update_user(self, user_id: str, changes: Mapping[str, Any]) -> bool:
        with self._users_lock:
            records = self._load_list(USERS_KEY, validate_user_record, "users")
            index = next((i for i, item in enumerate(records) if item["id"] == user_id), None)
            if index is None:
                logger.error("User %s not found", user_id)
                return False
            merged = self._merge(User, records[index], changes)
            if merged is None or not validate_user_record(merged):
                logger.error("Invalid updated user data for %s", user_id)
                return False
            if self._email_taken(records, merged["email"], user_id):
                logger.error("User with this email already exists")
                return False
            records[index] = merged
            self._write_json(USERS_KEY, records)
        logger.info("User %s updated", user_id)
        return True

    @staticmethod
    def _email_taken(records: List[Dict[str, Any]], email: str, user_id: str) -> bool:
        needle = email.lower()
        return any(item["email"].lower() == needle and item["id"] != user_id for item in records)

    # Snippets -----------------------------------------------------------------
    def get_snippet_records(self) -> List[Dict[str, Any]]:
        with self._snippets_lock:
            return self._load_list(SNIPPETS_KEY, validate_snippet_record, "snippets")

    def get_snippets(self) -> List[Snippet]:
        return [Snippet.from_record(record) for record in self.get_snippet_records()]

    def get_snippet(self, snippet_id: str) -> Optional[Snippet]:
        return next((snippet for snippet in self.get_snippets() if snippet.id == snippet_id), None)

    def save_snippet(self, snippet: Snippet) -> bool:
        record = snippet.to_record()
        if not validate_snippet_record(record):
            logger.error("Invalid snippet data for %s", snippet.id)
            return False
        with self._snippets_lock:
            records = self._load_list(SNIPPETS_KEY, validate_snippet_record, "snippets")
            if any(item["id"] == record["id"] for item in records):
                logger.error("Snippet %s already exists", record["id"])
                return False
            records.append(record)
            self._write_json(SNIPPETS_KEY, records)
        logger.info("Snippet %s saved", record["id"])
        return True

    def update_snippet(self, snippet_id: str, changes: Mapping[str, Any]) -> bool:
        with self._snippets_lock:
            records = self._load_list(SNIPPETS_KEY, validate_snippet_record, "snippets")
            index = next((i for i, item in enumerate(records) if item["id"] == snippet_id), None)
            if index is None:
                logger.error("Snippet %s not found", snippet_id)
                return False
            merged = self._merge(Snippet, records[index], changes)
            if merged is None or not validate_snippet_record(merged):
                logger.error("Invalid updated snippet data for %s", snippet_id)
                return False
            records[index] = merged
            self._write_json(SNIPPETS_KEY, records)
        logger.info("Snippet %s updated", snippet_id)
        return True

    def adjust_snippet_likes(self, snippet_id: str, delta: int) -> Optional[Snippet]:
        """Add ``delta`` to the like counter, clamped at zero. Leaves ``updatedAt`` alone."""
        with self._snippets_lock:
            records = self._load_list(SNIPPETS_KEY, validate_snippet_record, "snippets")
            record = next((item for item in records if item["id"] == snippet_id), None)
            if record is None:
                logger.error("Snippet %s not found", snippet_id)
                return None
            record["likes"] = max(0, record["likes"] + delta)
            self._write_json(SNIPPETS_KEY, records)
        return Snippet.from_record(record)

    def delete_snippet(self, snippet_id: str) -> bool:
        with self._snippets_lock:
            records = self._load_list(SNIPPETS_KEY, validate_snippet_record, "snippets")
            remaining = [item for item in records if item["id"] != snippet_id]
            if len(remaining) == len(records):
                logger.error("Snippet %s not found", snippet_id)
                return False
            self._write_json(SNIPPETS_KEY, remaining)
        logger.info("Snippet %s deleted", snippet_id)
        return True

    # Sessions -----------------------------------------------------------------
    def _load_sessions(self) -> Dict[str, Any]:
        data = self._read_json(SESSIONS_KEY)
        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning("Invalid sessions data format, resetting")
            self._write_json(SESSIONS_KEY, {})
            return {}
        return data

    def get_session_record(self, token: str) -> Optional[Any]:
        """Raw stored value for ``token``; callers decide whether it is usable."""
        with self._sessions_lock:
            return self._load_sessions().get(token)

    def list_sessions(self) -> List[Session]:
        with self._sessions_lock:
            records = self._load_sessions().values()
            return [Session.from_record(item) for item in records if validate_session_record(item)]

    def put_session(self, session: Session) -> None:
        with self._sessions_lock:
            sessions = self._load_sessions()
            sessions[session.token] = session.to_record()
            self._write_json(SESSIONS_KEY, sessions)

    def remove_sessions(self, tokens: List[str]) -> int:
        with self._sessions_lock:
            sessions = self._load_sessions()
            removed = [token for token in tokens if sessions.pop(token, None) is not None]
            if removed:
                self._write_json(SESSIONS_KEY, sessions)
        return len(removed)

    def remove_session(self, token: str) -> bool:
        return self.remove_sessions([token]) == 1

    # Reset tokens -------------------------------------------------------------
    def get_reset_tokens(self) -> List[ResetToken]:
        with self._tokens_lock:
            records = self._load_list(RESET_TOKENS_KEY, validate_reset_token_record, "reset tokens")
        return [ResetToken.from_record(record) for record in records]

    def update_reset_tokens(self, mutator: Callable[[List[ResetToken]], List[ResetToken]]) -> List[ResetToken]:
        """Apply ``mutator`` to the token list and persist its result atomically."""
        with self._tokens_lock:
            records = self._load_list(RESET_TOKENS_KEY, validate_reset_token_record, "reset tokens")
            tokens = mutator([ResetToken.from_record(record) for record in records])
            self._write_json(RESET_TOKENS_KEY, [token.to_record() for token in tokens])
        return tokens

    # Schema version -----------------------------------------------------------
    def get_schema_version(self) -> Optional[str]:
        return self._store.get(VERSION_KEY)

    def set_schema_version(self, version: str) -> None:
        self._store.set(VERSION_KEY, version)

    def clear_schema_version(self) -> None:
        self._store.remove(VERSION_KEY)

    # Events -------------------------------------------------------------------
    def read_events(self) -> List[Dict[str, Any]]:
        with self._events_lock:
            data = self._read_json(EVENTS_KEY)
        return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []

    def update_events(self, mutator: Callable[[List[Dict[str, Any]]], List[Dict[str, Any]]]) -> None:
        with self._events_lock:
            self._write_json(EVENTS_KEY, mutator(self.read_events()))

    def clear_events(self) -> None:
        with self._events_lock:
            self._store.remove(EVENTS_KEY)

    # Maintenance --------------------------------------------------------------
    def clear_all(self) -> None:
        with self._users_lock, self._snippets_lock, self._sessions_lock, self._events_lock:
            for key in (USERS_KEY, SNIPPETS_KEY, SESSIONS_KEY, EVENTS_KEY):
                self._store.remove(key)
        logger.info("All data cleared")

    def is_empty(self) -> bool:
        return not self.get_user_records() and not self.get_snippet_records()

    def stats(self) -> DatabaseStats:
        users = self.get_user_records()
        snippets = self.get_snippet_records()
        size = len(_dumps(users)) + len(_dumps(snippets))
        return DatabaseStats(
            users=len(users),
            snippets=len(snippets),
            public_snippets=sum(1 for item in snippets if item["isPublic"]),
            total_size=format_bytes(size),
        )

    def create_backup(self) -> None:
        with self._users_lock, self._snippets_lock:
            backup = {
                "users": self.get_user_records(),
                "snippets": self.get_snippet_records(),
                "timestamp": to_iso(self._clock()),
            }
            self._write_json(BACKUP_KEY, backup)
        logger.info("Backup created")

    def restore_from_backup(self) -> bool:
        backup = self._read_json(BACKUP_KEY)
        if backup is None:
            logger.warning("No backup found")
            return False
        if not isinstance(backup, dict):
            logger.error("Backup is corrupted, nothing restored")
            return False
        with self._users_lock, self._snippets_lock:
            if isinstance(backup.get("users"), list):
                self._write_json(USERS_KEY, backup["users"])
            if isinstance(backup.get("snippets"), list):
                self._write_json(SNIPPETS_KEY, backup["snippets"])
        logger.info("Data restored from backup taken at %s", backup.get("timestamp"))
        return True


class _Corrupt:
    def __repr__(self) -> str:
        return "<corrupt>"


_CORRUPT = _Corrupt()
