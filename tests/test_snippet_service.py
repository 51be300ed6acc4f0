import pytest

from codeshare.application.services.snippet_service import NOT_FOUND_OR_UNAUTHORIZED, SnippetInput


@pytest.fixture
def owner(make_user):
    return make_user(name="Owner", email="owner@example.com")


@pytest.fixture
def stranger(make_user):
    return make_user(name="Stranger", email="stranger@example.com")


def test_create_trims_fields_and_filters_empty_tags(snippet_service, owner, database):
    result = snippet_service.create_snippet(
        owner.id,
        SnippetInput(title="  Hello ", code=" print(1) ", language="Python", tags=["x", "x", "", "  "]),
    )

    assert result.success
    snippet = database.get_snippet(result.data.id)
    assert snippet.title == "Hello"
    assert snippet.code == "print(1)"
    assert snippet.tags == ["x", "x"]
    assert snippet.likes == 0
    assert snippet.is_public is False
    assert snippet.created_at == snippet.updated_at


def test_create_requires_title_code_and_language(snippet_service, owner, database):
    result = snippet_service.create_snippet(owner.id, SnippetInput(title="T", code="  ", language="Go"))

    assert not result.success
    assert result.error == "Missing required fields"
    assert database.get_snippets() == []


def test_update_by_owner(snippet_service, make_snippet, owner, clock):
    snippet = make_snippet(owner.id, "Old")
    clock.advance(minutes=1)

    result = snippet_service.update_snippet(
        owner.id, snippet.id, SnippetInput(title="New", code="x", language="Go", is_public=True, tags=["go"])
    )

    assert result.success
    assert result.data.title == "New"
    assert result.data.is_public is True
    assert result.data.updated_at > snippet.updated_at


def test_only_owner_can_update_or_delete(snippet_service, make_snippet, owner, stranger, database):
    snippet = make_snippet(owner.id)

    update = snippet_service.update_snippet(stranger.id, snippet.id, SnippetInput(title="X", code="x", language="Go"))
    delete = snippet_service.delete_snippet(stranger.id, snippet.id)

    assert update.error == NOT_FOUND_OR_UNAUTHORIZED
    assert delete.error == NOT_FOUND_OR_UNAUTHORIZED
    assert database.get_snippet(snippet.id) == snippet


def test_delete_by_owner(snippet_service, make_snippet, owner, database):
    snippet = make_snippet(owner.id)

    assert snippet_service.delete_snippet(owner.id, snippet.id).success
    assert database.get_snippet(snippet.id) is None
    assert snippet_service.delete_snippet(owner.id, snippet.id).error_type == "not_found"


def test_private_snippets_hidden_from_others(snippet_service, make_snippet, owner, stranger):
    private = make_snippet(owner.id, "Secret")
    public = make_snippet(owner.id, "Shared", is_public=True)

    assert snippet_service.get_snippet(owner.id, private.id).success
    assert snippet_service.get_snippet(stranger.id, private.id).error_type == "not_found"
    assert snippet_service.get_snippet(None, public.id).data == public


def test_likes_never_go_negative(snippet_service, make_snippet, owner):
    snippet = make_snippet(owner.id)

    assert snippet_service.like_snippet(snippet.id).data.likes == 1
    assert snippet_service.unlike_snippet(snippet.id).data.likes == 0
    assert snippet_service.unlike_snippet(snippet.id).data.likes == 0
    assert snippet_service.like_snippet("missing").error == "Snippet not found"


def test_duplicate_creates_private_copy(snippet_service, make_snippet, owner, stranger):
    public = make_snippet(owner.id, "Shared", is_public=True, tags=["a"])
    public = snippet_service.like_snippet(public.id).data

    copy = snippet_service.duplicate_snippet(stranger.id, public.id).data

    assert copy.id != public.id
    assert copy.title == "Shared (Copy)"
    assert copy.user_id == stranger.id
    assert copy.is_public is False
    assert copy.likes == 0
    assert copy.tags == ["a"]

    renamed = snippet_service.duplicate_snippet(owner.id, public.id, "Mine").data
    assert renamed.title == "Mine"


def test_validation_failures_are_logged_as_warnings(snippet_service, owner, events):
    snippet_service.create_snippet(owner.id, SnippetInput(title="", code="", language=""))

    warnings = events.get_logs_by_type("warning")
    assert len(warnings) == 1
    assert warnings[0]["context"]["operation"] == "create_snippet"
    assert warnings[0]["userId"] == owner.id
