"""
Tests for BackupService: backup file naming, listing, path safety and auditing.

The dump/restore commands themselves need a PostgreSQL server and are
replaced by recording stubs here.
"""

import os

import pytest

import services.backup_service as backup_module
from db.backup import strip_meta_commands
from models.constants import LOG_BACKUP_CREATED, LOG_BACKUP_RESTORED
from repositories.log_repo import LogRepository
from services.backup_service import BackupService
from services.errors import NotFoundError, ValidationError


@pytest.fixture
def backup_dir(tmp_path):
    return tmp_path / "backups"


@pytest.fixture
def calls(monkeypatch):
    recorded = {"dump": [], "load": []}

    def fake_dump(db, dsn, path):
        recorded["dump"].append(path)
        with open(path, "w", encoding="utf-8") as f:
            f.write("-- dump\n")
        return "programmatic"

    def fake_load(db, dsn, path):
        recorded["load"].append(path)
        return "programmatic"

    monkeypatch.setattr(backup_module, "dump_database", fake_dump)
    monkeypatch.setattr(backup_module, "load_database", fake_load)
    return recorded


@pytest.fixture
def service(db, backup_dir, calls):
    return BackupService(db, backup_dir=str(backup_dir), dsn="postgresql://test")


def test_create_backup(db, service, backup_dir, calls, admin):
    backup = service.create_backup(admin["id"])
    assert backup["fileName"].startswith("backup-")
    assert backup["fileName"].endswith(".sql")
    assert os.path.isfile(backup["path"])
    assert backup["size"] > 0
    assert calls["dump"] == [backup["path"]]

    entry = LogRepository(db).find_by_action(LOG_BACKUP_CREATED)[0]
    assert entry["userId"] == admin["id"]
    assert entry["details"] == {"method": "programmatic"}


def test_list_backups_newest_first(service, backup_dir):
    backup_dir.mkdir()
    for i, name in enumerate(["backup-a.sql", "backup-b.sql"]):
        path = backup_dir / name
        path.write_text("--")
        os.utime(path, (1_000_000 + i * 100, 1_000_000 + i * 100))
    (backup_dir / "notes.txt").write_text("ignored")

    assert [b["fileName"] for b in service.list_backups()] == ["backup-b.sql", "backup-a.sql"]


def test_list_without_directory(service):
    assert service.list_backups() == []


def test_restore(db, service, backup_dir, calls, admin):
    backup_dir.mkdir()
    (backup_dir / "backup-x.sql").write_text("--")
    result = service.restore_backup("backup-x.sql", admin["id"])
    assert result == {"fileName": "backup-x.sql", "method": "programmatic"}
    assert calls["load"] == [str(backup_dir / "backup-x.sql")]
    assert LogRepository(db).find_by_action(LOG_BACKUP_RESTORED)[0]["userId"] == admin["id"]


def test_restore_audits_when_account_is_gone(db, service, backup_dir):
    backup_dir.mkdir()
    (backup_dir / "backup-y.sql").write_text("--")
    service.restore_backup("backup-y.sql", 98765)
    entry = LogRepository(db).find_by_action(LOG_BACKUP_RESTORED)[0]
    assert entry["userId"] is None
    assert entry["details"]["restoredBy"] == 98765


@pytest.mark.parametrize("name", [
    "../secrets.sql",
    "../../etc/passwd",
    "/etc/passwd",
    "sub/../../outside.sql",
    "",
    "   ",
])
def test_paths_outside_the_directory_are_refused(service, backup_dir, calls, name):
    backup_dir.mkdir()
    (backup_dir.parent / "secrets.sql").write_text("--")
    with pytest.raises(ValidationError):
        service.restore_backup(name)
    assert calls["load"] == []


def test_only_sql_files(service, backup_dir):
    backup_dir.mkdir()
    (backup_dir / "notes.txt").write_text("--")
    with pytest.raises(ValidationError):
        service.resolve("notes.txt")


def test_missing_backup(service, backup_dir):
    backup_dir.mkdir()
    with pytest.raises(NotFoundError):
        service.resolve("backup-missing.sql")


def test_meta_commands_are_stripped():
    script = "\\connect students\nSET x = 1;\n  \\restrict abc\nINSERT INTO t VALUES (1);\n"
    assert strip_meta_commands(script) == "SET x = 1;\nINSERT INTO t VALUES (1);\n"
