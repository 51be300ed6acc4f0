from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...domain.clock import to_iso
from ...domain.errors import CodeShareError, NotFoundError, OperationResult, ValidationError
from ...domain.models import Snippet
from ...infrastructure.persistence.database import DatabaseManager
from ...infrastructure.persistence.event_log import EventLog
from .operation import run_operation

logger = logging.getLogger(__name__)

NOT_FOUND_OR_UNAUTHORIZED = "Snippet not found or unauthorized"


@dataclass(slots=True)
class SnippetInput:
    title: str
    code: str
    language: str
    description: Optional[str] = ""
    is_public: bool = False
    tags: List[str] = field(default_factory=list)

    def sanitized(self) -> Dict[str, Any]:
        """Trimmed field values. Empty tags are dropped, repeated tags are kept."""
        title = (self.title or "").strip()
        code = (self.code or "").strip()
        language = (self.language or "").strip()
        if not title or not code or not language:
            raise ValidationError("Missing required fields")
        return {
            "title": title,
            "description": (self.description or "").strip(),
            "code": code,
            "language": language,
            "is_public": bool(self.is_public),
            "tags": [tag.strip() for tag in (self.tags or []) if isinstance(tag, str) and tag.strip()],
        }


class SnippetService:
    """Upload, edit, delete, like and duplicate snippets."""

    def __init__(self, database: DatabaseManager, events: EventLog) -> None:
        self._db = database
        self._events = events

    def create_snippet(self, user_id: str, data: SnippetInput) -> OperationResult:
        return run_operation(self._events, "create_snippet", lambda: self._create(user_id, data), user_id)

    def _create(self, user_id: str, data: SnippetInput) -> Snippet:
        if not user_id:
            raise ValidationError("Missing required fields")
        values = data.sanitized()
        now = to_iso(self._db.clock())
        snippet = Snippet(
            id=uuid.uuid4().hex,
            user_id=user_id,
            likes=0,
            created_at=now,
            updated_at=now,
            **values,
        )
        if not self._db.save_snippet(snippet):
            raise CodeShareError("Failed to save snippet to database")
        logger.info("Snippet created: %s", snippet.id)
        return snippet

    def update_snippet(self, user_id: str, snippet_id: str, data: SnippetInput) -> OperationResult:
        return run_operation(
            self._events,
            "update_snippet",
            lambda: self._update(user_id, snippet_id, data),
            user_id,
        )

    def _update(self, user_id: str, snippet_id: str, data: SnippetInput) -> Snippet:
        if not user_id or not snippet_id:
            raise ValidationError("Missing required fields")
        values = data.sanitized()
        self._owned(user_id, snippet_id)
        if not self._db.update_snippet(snippet_id, values):
            raise CodeShareError("Failed to update snippet in database")
        logger.info("Snippet updated: %s", snippet_id)
        return self._owned(user_id, snippet_id)

    def delete_snippet(self, user_id: str, snippet_id: str) -> OperationResult:
        return run_operation(self._events, "delete_snippet", lambda: self._delete(user_id, snippet_id), user_id)

    def _delete(self, user_id: str, snippet_id: str) -> None:
        if not user_id or not snippet_id:
            raise ValidationError("Missing required parameters")
        self._owned(user_id, snippet_id)
        if not self._db.delete_snippet(snippet_id):
            raise NotFoundError(NOT_FOUND_OR_UNAUTHORIZED)
        logger.info("Snippet deleted: %s", snippet_id)

    def get_snippet(self, user_id: Optional[str], snippet_id: str) -> OperationResult:
        """Owners see any of their snippets; everyone else only public ones."""
        return run_operation(self._events, "get_snippet", lambda: self._get(user_id, snippet_id), user_id)

    def _get(self, user_id: Optional[str], snippet_id: str) -> Snippet:
        if not snippet_id:
            raise ValidationError("Missing required parameters")
        snippet = self._db.get_snippet(snippet_id)
        if snippet is None or (snippet.user_id != user_id and not snippet.is_public):
            raise NotFoundError("Snippet not found")
        return snippet

    def like_snippet(self, snippet_id: str) -> OperationResult:
        return run_operation(self._events, "like_snippet", lambda: self._adjust_likes(snippet_id, 1))

    def unlike_snippet(self, snippet_id: str) -> OperationResult:
        return run_operation(self._events, "unlike_snippet", lambda: self._adjust_likes(snippet_id, -1))

    def _adjust_likes(self, snippet_id: str, delta: int) -> Snippet:
        if not snippet_id:
            raise ValidationError("Missing snippet ID")
        updated = self._db.adjust_snippet_likes(snippet_id, delta)
        if updated is None:
            raise NotFoundError("Snippet not found")
        logger.info("Snippet %s likes now %d", snippet_id, updated.likes)
        return updated

    def duplicate_snippet(self, user_id: str, snippet_id: str, new_title: Optional[str] = None) -> OperationResult:
        return run_operation(
            self._events,
            "duplicate_snippet",
            lambda: self._duplicate(user_id, snippet_id, new_title),
            user_id,
        )

    def _duplicate(self, user_id: str, snippet_id: str, new_title: Optional[str]) -> Snippet:
        original = self._get(user_id, snippet_id)
        copy = SnippetInput(
            title=new_title or f"{original.title} (Copy)",
            description=original.description,
            code=original.code,
            language=original.language,
            is_public=False,
            tags=list(original.tags),
        )
        return self._create(user_id, copy)

    def _owned(self, user_id: str, snippet_id: str) -> Snippet:
        snippet = self._db.get_snippet(snippet_id)
        if snippet is None or snippet.user_id != user_id:
            raise NotFoundError(NOT_FOUND_OR_UNAUTHORIZED)
        return snippet
