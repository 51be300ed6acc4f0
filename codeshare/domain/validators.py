"""Structural checks applied to records before they are persisted or trusted."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, List

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email))


def password_policy_violations(password: Any) -> List[str]:
    """Return every broken password rule, empty when the password is acceptable."""
    if not isinstance(password, str):
        password = ""
    errors: List[str] = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not re.search(r"[a-zA-Z]", password):
        errors.append("Password must contain at least one letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    return errors


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def _is_timestamp(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_user_record(record: Any) -> bool:
    return (
        isinstance(record, dict)
        and _is_non_empty_str(record.get("id"))
        and _is_non_empty_str(record.get("name"))
        and is_valid_email(record.get("email"))
        and _is_non_empty_str(record.get("passwordHash"))
        and _is_timestamp(record.get("createdAt"))
        and _is_timestamp(record.get("updatedAt"))
    )


def validate_snippet_record(record: Any) -> bool:
    if not isinstance(record, dict):
        return False
    tags = record.get("tags")
    return (
        _is_non_empty_str(record.get("id"))
        and _is_non_empty_str(record.get("title"))
        and isinstance(record.get("description"), str)
        and _is_non_empty_str(record.get("code"))
        and _is_non_empty_str(record.get("language"))
        and isinstance(record.get("userId"), str)
        and isinstance(record.get("isPublic"), bool)
        and _is_int(record.get("likes"))
        and record["likes"] >= 0
        and isinstance(tags, list)
        and all(_is_non_empty_str(tag) for tag in tags)
        and _is_timestamp(record.get("createdAt"))
        and _is_timestamp(record.get("updatedAt"))
    )


def validate_session_record(record: Any) -> bool:
    return (
        isinstance(record, dict)
        and _is_non_empty_str(record.get("token"))
        and isinstance(record.get("user"), dict)
        and _is_non_empty_str(record["user"].get("id"))
        and _is_int(record.get("expiresAt"))
    )


def validate_reset_token_record(record: Any) -> bool:
    return (
        isinstance(record, dict)
        and isinstance(record.get("email"), str)
        and _is_non_empty_str(record.get("token"))
        and _is_int(record.get("expiresAt"))
    )
