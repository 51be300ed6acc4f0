from datetime import datetime, timedelta, timezone

import pytest

from codeshare.application.services.auth_service import AuthService
from codeshare.application.services.query_service import SnippetQueryService
from codeshare.application.services.rate_limiter import LoginRateLimiter
from codeshare.application.services.snippet_service import SnippetInput, SnippetService
from codeshare.domain.clock import to_iso
from codeshare.domain.models import Snippet, User
from codeshare.infrastructure.persistence.database import DatabaseManager
from codeshare.infrastructure.persistence.event_log import EventLog
from codeshare.infrastructure.persistence.memory import InMemoryKeyValueStore
from codeshare.services.password_hasher import PasswordHasher


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def database(store, clock):
    return DatabaseManager(store, clock=clock)


@pytest.fixture
def events(database):
    return EventLog(database)


@pytest.fixture(scope="session")
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def rate_limiter(clock):
    return LoginRateLimiter(clock=clock)


@pytest.fixture
def auth_service(database, hasher, events, rate_limiter):
    return AuthService(database, hasher, events, rate_limiter)


@pytest.fixture
def snippet_service(database, events):
    return SnippetService(database, events)


@pytest.fixture
def query_service(database):
    return SnippetQueryService(database)


@pytest.fixture
def make_user(database, clock):
    counter = {"n": 0}

    def _make(name: str = "Ada", email=None, password_hash: str = "$2b$04$placeholderhash") -> User:
        counter["n"] += 1
        stamp = to_iso(clock())
        user = User(
            id=f"u{counter['n']}",
            name=name,
            email=email or f"user{counter['n']}@example.com",
            password_hash=password_hash,
            created_at=stamp,
            updated_at=stamp,
        )
        assert database.save_user(user)
        return user

    return _make


@pytest.fixture
def make_snippet(snippet_service, clock):
    def _make(user_id: str, title: str = "Snippet", **overrides) -> Snippet:
        values = {"code": "print('hi')", "language": "Python", "description": "", "is_public": False, "tags": []}
        values.update(overrides)
        result = snippet_service.create_snippet(user_id, SnippetInput(title=title, **values))
        assert result.success, result.error
        clock.advance(seconds=1)
        return result.data

    return _make
