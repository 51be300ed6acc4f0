import pytest

from codeshare.domain.validators import (
    is_valid_email,
    password_policy_violations,
    validate_reset_token_record,
    validate_session_record,
    validate_snippet_record,
    validate_user_record,
)


def _snippet_record(**overrides):
    record = {
        "id": "s1",
        "title": "Title",
        "description": "",
        "code": "x = 1",
        "language": "Python",
        "tags": ["a"],
        "isPublic": False,
        "likes": 0,
        "userId": "u1",
        "createdAt": "2024-01-15T12:00:00.000+00:00",
        "updatedAt": "2024-01-15T12:00:00.000+00:00",
    }
    record.update(overrides)
    return record


def _user_record(**overrides):
    record = {
        "id": "u1",
        "name": "Ada",
        "email": "ada@example.com",
        "passwordHash": "hash",
        "createdAt": "2024-01-15T12:00:00.000+00:00",
        "updatedAt": "2024-01-15T12:00:00.000+00:00",
    }
    record.update(overrides)
    return record


@pytest.mark.parametrize(
    "email, expected",
    [
        ("a@b.co", True),
        ("first.last@example.org", True),
        ("no-at-sign.com", False),
        ("a@b", False),
        ("a b@c.de", False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_email(email, expected):
    assert is_valid_email(email) is expected


def test_password_policy_reports_every_violation():
    assert password_policy_violations("") == [
        "Password must be at least 6 characters long",
        "Password must contain at least one letter",
        "Password must contain at least one number",
    ]
    assert password_policy_violations("abcdef") == ["Password must contain at least one number"]
    assert password_policy_violations("abc123") == []


def test_user_record_requires_valid_fields():
    assert validate_user_record(_user_record())
    assert not validate_user_record(_user_record(name="   "))
    assert not validate_user_record(_user_record(email="broken"))
    assert not validate_user_record(_user_record(createdAt="yesterday"))
    assert not validate_user_record("not a dict")


def test_snippet_record_rejects_bool_likes_and_negative_likes():
    assert validate_snippet_record(_snippet_record())
    assert not validate_snippet_record(_snippet_record(likes=True))
    assert not validate_snippet_record(_snippet_record(likes=-1))
    assert not validate_snippet_record(_snippet_record(likes=1.5))


def test_snippet_record_checks_tags_and_flags():
    assert not validate_snippet_record(_snippet_record(tags=["ok", ""]))
    assert not validate_snippet_record(_snippet_record(tags="python"))
    assert not validate_snippet_record(_snippet_record(isPublic="yes"))
    assert not validate_snippet_record(_snippet_record(code=" "))
    assert validate_snippet_record(_snippet_record(userId=""))


def test_session_and_reset_token_records():
    assert validate_session_record({"token": "t", "user": {"id": "u1"}, "expiresAt": 1})
    assert not validate_session_record({"token": "t", "user": {}, "expiresAt": 1})
    assert not validate_session_record({"token": "t", "user": {"id": "u1"}, "expiresAt": "1"})
    assert validate_reset_token_record({"email": "a@b.co", "token": "reset_x", "expiresAt": 5, "used": False})
    assert not validate_reset_token_record({"email": "a@b.co", "token": "", "expiresAt": 5})
