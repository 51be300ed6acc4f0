import json

import pytest

from codeshare.domain.errors import StorageError
from codeshare.domain.models import Session
from codeshare.infrastructure.persistence.database import (
    BACKUP_KEY,
    SESSIONS_KEY,
    SNIPPETS_KEY,
    USERS_KEY,
    DatabaseManager,
    format_bytes,
)
from codeshare.infrastructure.persistence.memory import InMemoryKeyValueStore
from codeshare.infrastructure.persistence.sqlite import SQLiteKeyValueStore


def test_duplicate_email_in_any_case_is_rejected(database, make_user):
    first = make_user(email="dev@example.com")

    duplicate = database.get_user(first.id)
    duplicate.id = "other"
    duplicate.email = "DEV@Example.com"
    assert database.save_user(duplicate) is False

    users = database.get_users()
    assert [user.id for user in users] == [first.id]
    assert users[0].email == "dev@example.com"


def test_update_user_cannot_take_another_users_email(database, make_user):
    make_user(email="one@example.com")
    second = make_user(email="two@example.com")

    assert database.update_user(second.id, {"email": "ONE@example.com"}) is False
    assert database.get_user(second.id).email == "two@example.com"


def test_saved_records_round_trip(database, make_user, make_snippet):
    user = make_user()
    snippet = make_snippet(user.id, "Sorting", tags=["algo"], is_public=True)

    assert database.get_user(user.id) == user
    assert database.get_snippet(snippet.id) == snippet


def test_update_merges_changes_and_stamps_updated_at(database, make_user, make_snippet, clock):
    user = make_user()
    snippet = make_snippet(user.id, "Before")
    clock.advance(minutes=5)

    assert database.update_snippet(snippet.id, {"title": "After", "id": "ignored"})

    stored = database.get_snippet(snippet.id)
    assert stored.id == snippet.id
    assert stored.title == "After"
    assert stored.created_at == snippet.created_at
    assert stored.updated_at > snippet.updated_at


def test_update_rejects_unknown_fields_and_missing_records(database, make_user, make_snippet):
    snippet = make_snippet(make_user().id)

    assert database.update_snippet(snippet.id, {"colour": "red"}) is False
    assert database.update_snippet("missing", {"title": "x"}) is False
    assert database.update_user("missing", {"name": "x"}) is False


def test_adjust_likes_clamps_at_zero_and_keeps_updated_at(database, make_user, make_snippet, clock):
    snippet = make_snippet(make_user().id)
    clock.advance(hours=1)

    assert database.adjust_snippet_likes(snippet.id, 1).likes == 1
    assert database.adjust_snippet_likes(snippet.id, -1).likes == 0
    assert database.adjust_snippet_likes(snippet.id, -1).likes == 0
    assert database.get_snippet(snippet.id).updated_at == snippet.updated_at
    assert database.adjust_snippet_likes("missing", 1) is None


def test_delete_snippet(database, make_user, make_snippet):
    snippet = make_snippet(make_user().id)

    assert database.delete_snippet(snippet.id) is True
    assert database.delete_snippet(snippet.id) is False
    assert database.get_snippets() == []


def test_clear_all_is_idempotent(database, make_user, make_snippet, store):
    make_snippet(make_user().id)
    database.put_session(Session(token="t", user={"id": "u1"}, expires_at=1))

    database.clear_all()
    after_once = {key: store.get(key) for key in (USERS_KEY, SNIPPETS_KEY, SESSIONS_KEY)}
    database.clear_all()

    assert {key: store.get(key) for key in (USERS_KEY, SNIPPETS_KEY, SESSIONS_KEY)} == after_once
    assert database.get_users() == []
    assert database.get_snippets() == []
    assert database.list_sessions() == []


def test_missing_collection_is_initialised_empty(database, store):
    assert database.get_users() == []
    assert store.get(USERS_KEY) == "[]"


def test_corrupt_collection_is_reset(database, store):
    store.set(SNIPPETS_KEY, "{not json")
    assert database.get_snippets() == []
    assert store.get(SNIPPETS_KEY) == "[]"

    store.set(USERS_KEY, json.dumps({"id": "u1"}))
    assert database.get_users() == []
    assert store.get(USERS_KEY) == "[]"


def test_invalid_records_are_skipped_on_read(database, make_user, store):
    user = make_user()
    records = json.loads(store.get(USERS_KEY))
    records.append({"id": "bad", "email": "nope"})
    store.set(USERS_KEY, json.dumps(records))

    assert [item.id for item in database.get_users()] == [user.id]


def test_sessions_are_keyed_by_token(database, store):
    database.put_session(Session(token="a", user={"id": "u1"}, expires_at=10))
    database.put_session(Session(token="b", user={"id": "u2"}, expires_at=20))

    assert set(json.loads(store.get(SESSIONS_KEY))) == {"a", "b"}
    assert database.remove_session("a") is True
    assert database.remove_session("a") is False
    assert [session.token for session in database.list_sessions()] == ["b"]


def test_backup_and_restore(database, make_user, make_snippet, store):
    user = make_user()
    make_snippet(user.id)
    database.create_backup()
    database.clear_all()

    assert json.loads(store.get(BACKUP_KEY))["timestamp"]
    assert database.restore_from_backup() is True
    assert [item.id for item in database.get_users()] == [user.id]
    assert len(database.get_snippets()) == 1


def test_restore_without_backup_returns_false(database, store):
    assert database.restore_from_backup() is False
    store.set(BACKUP_KEY, "garbage")
    assert database.restore_from_backup() is False


def test_stats(database, make_user, make_snippet):
    user = make_user()
    make_snippet(user.id, is_public=True)
    make_snippet(user.id)

    stats = database.stats()

    assert (stats.users, stats.snippets, stats.public_snippets) == (1, 2, 1)
    assert stats.total_size.endswith("KB") or stats.total_size.endswith(" B")


@pytest.mark.parametrize(
    "size, expected",
    [(0, "0 B"), (512, "512 B"), (1024, "1 KB"), (1536, "1.5 KB"), (3 * 1024 * 1024, "3 MB")],
)
def test_format_bytes(size, expected):
    assert format_bytes(size) == expected


def test_self_test_failure_raises_storage_error():
    class BrokenStore(InMemoryKeyValueStore):
        def get(self, key):
            return None

    with pytest.raises(StorageError):
        DatabaseManager(BrokenStore())


def test_sqlite_store_persists_between_connections(tmp_path, clock):
    path = tmp_path / "nested" / "codeshare.db"
    first = SQLiteKeyValueStore(path)
    DatabaseManager(first, clock=clock).put_session(Session(token="t", user={"id": "u1"}, expires_at=5))
    first.close()

    second = SQLiteKeyValueStore(path)
    try:
        sessions = DatabaseManager(second, clock=clock).list_sessions()
    finally:
        second.close()
    assert [session.token for session in sessions] == ["t"]
