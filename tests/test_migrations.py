import json

import pytest

from codeshare.domain.errors import MigrationError, StorageError
from codeshare.infrastructure.persistence.migrations import (
    CURRENT_VERSION,
    Migration,
    MigrationRunner,
    compare_versions,
    default_migrations,
    parse_version,
)
from codeshare.infrastructure.persistence.sample_data import DEMO_PASSWORD, SAMPLE_SNIPPETS, SAMPLE_USERS


@pytest.fixture
def runner(database, hasher):
    return MigrationRunner(database, default_migrations(hasher))


def test_fresh_database_is_seeded_once_and_marked(runner, database):
    assert runner.initialize() == 1

    assert database.get_schema_version() == CURRENT_VERSION
    assert len(database.get_users()) == len(SAMPLE_USERS)
    assert len(database.get_snippets()) == len(SAMPLE_SNIPPETS)

    assert runner.initialize() == 0
    assert len(database.get_users()) == len(SAMPLE_USERS)
    assert len(database.get_snippets()) == len(SAMPLE_SNIPPETS)


def test_sample_accounts_use_demo_password(runner, database, hasher):
    runner.initialize()

    user = database.find_user_by_email("alex@example.com")
    assert user is not None
    assert hasher.verify(DEMO_PASSWORD, user.password_hash)
    assert all(snippet.is_public for snippet in database.get_snippets())


def test_existing_data_is_not_overwritten_by_seed(runner, database, make_user):
    user = make_user()

    runner.initialize()

    assert [item.id for item in database.get_users()] == [user.id]
    assert database.get_snippets() == []
    assert database.get_schema_version() == CURRENT_VERSION


def test_seeding_can_be_disabled(database, hasher):
    MigrationRunner(database, default_migrations(hasher, seed_sample_data=False)).initialize()

    assert database.is_empty()
    assert database.get_schema_version() == CURRENT_VERSION


def test_only_pending_steps_up_to_target_run(database):
    ran = []

    def step(version):
        return Migration(version=version, description=version, up=lambda db: ran.append(version), down=lambda db: None)

    database.set_schema_version("1.0.0")
    runner = MigrationRunner(database, [step("1.2.0"), step("1.0.0"), step("1.1.0"), step("2.0.0")], "1.2.0")

    assert runner.initialize() == 2
    assert ran == ["1.1.0", "1.2.0"]
    assert database.get_schema_version() == "1.2.0"


def test_newer_stored_version_only_rewrites_marker(database, hasher):
    database.set_schema_version("2.0.0")

    assert MigrationRunner(database, default_migrations(hasher)).initialize() == 0
    assert database.get_schema_version() == CURRENT_VERSION
    assert database.is_empty()


def test_rollback_runs_down_steps(runner, database):
    runner.initialize()

    assert runner.rollback("0.0.0") == 1
    assert database.is_empty()
    assert database.get_schema_version() == "0.0.0"


def test_reset_reseeds(runner, database, make_user):
    runner.initialize()
    make_user(email="extra@example.com")

    runner.reset()

    assert database.find_user_by_email("extra@example.com") is None
    assert len(database.get_users()) == len(SAMPLE_USERS)


def test_storage_failure_becomes_migration_error(database):
    def broken(db):
        raise StorageError("disk full")

    runner = MigrationRunner(database, [Migration("1.0.0", "broken", broken, lambda db: None)])
    with pytest.raises(MigrationError):
        runner.initialize()
    assert database.get_schema_version() is None


@pytest.mark.parametrize(
    "left, right, expected",
    [("1.0.0", "1.0.0", 0), ("1.0", "1.0.0", 0), ("1.2.0", "1.10.0", -1), ("2.0.0", "1.9.9", 1)],
)
def test_compare_versions(left, right, expected):
    assert compare_versions(left, right) == expected


def test_parse_version_rejects_four_parts():
    assert parse_version("3") == (3, 0, 0)
    with pytest.raises(ValueError):
        parse_version("1.2.3.4")


def test_export_then_import_restores_collections(runner, database):
    runner.initialize()
    exported = runner.export_json()
    database.clear_all()

    counts = runner.import_json(exported)

    assert counts == {"users": len(SAMPLE_USERS), "snippets": len(SAMPLE_SNIPPETS)}
    assert json.loads(exported)["version"] == CURRENT_VERSION


def test_import_skips_invalid_records(runner, database):
    runner.initialize()
    data = json.loads(runner.export_json())
    data["snippets"].append({"id": "broken"})

    counts = runner.import_json(data)

    assert counts["snippets"] == len(SAMPLE_SNIPPETS)


@pytest.mark.parametrize("payload", ["not json", json.dumps({"users": []}), json.dumps([1, 2])])
def test_import_rejects_malformed_payload(runner, payload):
    with pytest.raises(MigrationError, match="Invalid import data format"):
        runner.import_json(payload)


def test_info_reports_version_and_stats(runner):
    runner.initialize()
    info = runner.info()

    assert info["version"] == CURRENT_VERSION
    assert info["stats"]["users"] == len(SAMPLE_USERS)
    assert info["migrations"][0]["version"] == "1.0.0"
