"""Session, reset token and maintenance value objects."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(slots=True)
class Session:
    """Time-boxed proof of authentication keyed by an opaque token."""

    token: str
    user: Dict[str, Any]
    expires_at: int

    @property
    def user_id(self) -> str:
        return self.user["id"]

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expires_at

    def to_record(self) -> Dict[str, Any]:
        return {"token": self.token, "user": dict(self.user), "expiresAt": self.expires_at}

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Session":
        return cls(token=record["token"], user=dict(record["user"]), expires_at=record["expiresAt"])


@dataclass(slots=True)
class ResetToken:
    email: str
    token: str
    expires_at: int
    used: bool = False

    def to_record(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "token": self.token,
            "expiresAt": self.expires_at,
            "used": self.used,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ResetToken":
        return cls(
            email=record["email"],
            token=record["token"],
            expires_at=record["expiresAt"],
            used=bool(record.get("used", False)),
        )


@dataclass(slots=True)
class ResetTokenCheck:
    valid: bool
    email: Optional[str] = None
    error: Optional[str] = None


@dataclass(slots=True)
class RateLimitDecision:
    allowed: bool
    retry_after: Optional[datetime] = None


@dataclass(slots=True)
class DatabaseStats:
    users: int
    snippets: int
    public_snippets: int
    total_size: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "users": self.users,
            "snippets": self.snippets,
            "publicSnippets": self.public_snippets,
            "totalSize": self.total_size,
        }
