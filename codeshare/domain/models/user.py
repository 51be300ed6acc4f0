"""User domain model for registered accounts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(slots=True)
class User:
    """
    Registered account.

    Attributes:
        id: Opaque unique identifier
        name: Display name, never blank
        email: Lower-cased login address, unique across users
        password_hash: bcrypt hash of the password
        created_at: ISO-8601 creation timestamp
        updated_at: ISO-8601 timestamp of the last profile or password change
    """

    id: str
    name: str
    email: str
    password_hash: str
    created_at: str
    updated_at: str

    # Mapping between attribute names and stored record keys.
    FIELDS = {
        "id": "id",
        "name": "name",
        "email": "email",
        "password_hash": "passwordHash",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
    }

    def to_record(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in self.FIELDS.items()}

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "User":
        return cls(**{attr: record[key] for attr, key in cls.FIELDS.items()})

    def public_view(self) -> Dict[str, Any]:
        """Record without the password hash, safe for sessions and responses."""
        record = self.to_record()
        record.pop("passwordHash", None)
        return record

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email}>"
