from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from ...domain.clock import from_iso
from ...domain.models import PublicSnippet, Snippet
from ...infrastructure.persistence.database import DatabaseManager

UNKNOWN_USER = "Unknown User"
SEARCH_SCOPES = ("user", "public")


def _created(snippet: Snippet) -> datetime:
    return from_iso(snippet.created_at)


def _matches(snippet: Snippet, needle: str) -> bool:
    return (
        needle in snippet.title.lower()
        or needle in snippet.language.lower()
        or needle in snippet.description.lower()
        or any(needle in tag.lower() for tag in snippet.tags)
    )


class SnippetQueryService:
    """Read-only views over the snippet and user collections."""

    def __init__(self, database: DatabaseManager) -> None:
        self._db = database

    def user_snippets(self, user_id: str) -> List[Snippet]:
        return [snippet for snippet in self._db.get_snippets() if snippet.user_id == user_id]

    def recent_snippets(self, user_id: str, limit: int = 4) -> List[Snippet]:
        return sorted(self.user_snippets(user_id), key=_created, reverse=True)[:limit]

    def public_snippets(self) -> List[PublicSnippet]:
        names = {user.id: user.name for user in self._db.get_users()}
        entries = [
            PublicSnippet(snippet=snippet, user_name=names.get(snippet.user_id) or UNKNOWN_USER)
            for snippet in self._db.get_snippets()
            if snippet.is_public
        ]
        return sorted(entries, key=lambda entry: _created(entry.snippet), reverse=True)

    def search(self, scope: str, query: str, user_id: Optional[str] = None) -> List[Snippet] | List[PublicSnippet]:
        """Case-insensitive substring search. A blank query matches nothing."""
        if scope not in SEARCH_SCOPES:
            raise ValueError(f"Unknown search scope: {scope}")
        needle = (query or "").strip().lower()
        if not needle:
            return []
        if scope == "user":
            return [snippet for snippet in self.user_snippets(user_id or "") if _matches(snippet, needle)]
        return [
            entry
            for entry in self.public_snippets()
            if _matches(entry.snippet, needle) or needle in entry.user_name.lower()
        ]

    def public_feed(self, query: Optional[str] = None, language: Optional[str] = None) -> List[PublicSnippet]:
        """Public snippets, optionally searched and narrowed to one language (case-insensitive)."""
        if query is not None and query.strip():
            entries = self.search("public", query)
        else:
            entries = self.public_snippets()
        if language and language.strip():
            wanted = language.strip().lower()
            entries = [entry for entry in entries if entry.snippet.language.lower() == wanted]
        return entries

    def popular_snippets(self, limit: int = 10) -> List[PublicSnippet]:
        return sorted(self.public_snippets(), key=lambda entry: entry.snippet.likes, reverse=True)[:limit]

    def language_stats(self) -> Dict[str, int]:
        return dict(Counter(snippet.language for snippet in self._db.get_snippets()))
