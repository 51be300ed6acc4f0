"""Snippet domain model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(slots=True)
class Snippet:
    """
    Piece of shared code owned by a user.

    ``user_id`` is not checked against the users collection, so a snippet
    whose owner record is gone is still a valid snippet.
    """

    id: str
    title: str
    description: str
    code: str
    language: str
    user_id: str
    created_at: str
    updated_at: str
    is_public: bool = False
    likes: int = 0
    tags: List[str] = field(default_factory=list)

    FIELDS = {
        "id": "id",
        "title": "title",
        "description": "description",
        "code": "code",
        "language": "language",
        "tags": "tags",
        "is_public": "isPublic",
        "likes": "likes",
        "user_id": "userId",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
    }

    def to_record(self) -> Dict[str, Any]:
        record = {key: getattr(self, attr) for attr, key in self.FIELDS.items()}
        record["tags"] = list(self.tags)
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Snippet":
        values = {attr: record[key] for attr, key in cls.FIELDS.items()}
        values["tags"] = list(values["tags"])
        return cls(**values)


@dataclass(slots=True)
class PublicSnippet:
    """Public feed entry: a snippet annotated with its author's name."""

    snippet: Snippet
    user_name: str

    def to_record(self) -> Dict[str, Any]:
        record = self.snippet.to_record()
        record["userName"] = self.user_name
        return record
