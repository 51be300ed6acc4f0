"""Domain models for the CodeShare application."""

from .session import DatabaseStats, RateLimitDecision, ResetToken, ResetTokenCheck, Session
from .snippet import PublicSnippet, Snippet
from .user import User

__all__ = [
    "DatabaseStats",
    "PublicSnippet",
    "RateLimitDecision",
    "ResetToken",
    "ResetTokenCheck",
    "Session",
    "Snippet",
    "User",
]
