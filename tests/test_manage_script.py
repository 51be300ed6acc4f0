import json

import pytest

from scripts.manage import main


@pytest.fixture
def database_env(monkeypatch, tmp_path):
    monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "codeshare.db"))
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("SEED_SAMPLE_DATA", "true")
    return tmp_path


def test_stats_command(database_env, capsys):
    assert main(["stats"]) == 0

    assert json.loads(capsys.readouterr().out)["users"] == 3


def test_export_and_import_round_trip(database_env, capsys):
    target = database_env / "export.json"

    assert main(["export", str(target)]) == 0
    assert main(["import", str(target)]) == 0

    assert "Imported 3 users and 7 snippets." in capsys.readouterr().out


def test_restore_without_backup_fails(database_env, capsys):
    assert main(["restore"]) == 1
    assert main(["backup"]) == 0
    assert main(["restore"]) == 0


def test_import_without_file_is_a_usage_error(database_env, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["import"])

    assert exc_info.value.code == 2
    assert "import requires a FILE argument" in capsys.readouterr().err
