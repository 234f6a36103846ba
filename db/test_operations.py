"""
Tests for the persistence gateway, settings and the SQLite log handler.
Run with: pytest db/test_operations.py
"""

import logging

import pytest

from db import operations as db_ops
from db.operations import (
    clear_snapshot, get_connection, get_schema_info, get_store_stats,
    load_snapshot, save_snapshot,
)
from services.log_config import SQLiteLogHandler, cleanup_old_logs, get_log_summary, get_logs
from services.settings import (
    get_all_settings, get_ingest_extensions, get_setting,
    get_settings_by_category, init_settings, require_setting, set_setting,
)
from shared.exceptions import PersistenceError, SettingsError


# =============================================================================
# KEY-VALUE STORE
# =============================================================================

def test_snapshot_round_trip():
    snapshot = {
        "files": {"a.md": {"name": "a.md", "content": "ünïcode"}},
        "currentFile": "a.md",
        "statistics": {},
        "projects": {},
        "projectIdCounter": 3,
    }
    save_snapshot(snapshot)
    assert load_snapshot() == snapshot


def test_snapshot_overwrites_keys():
    save_snapshot({"currentFile": "a.md", "projects": {}})
    save_snapshot({"currentFile": "b.md"})
    assert load_snapshot() == {"currentFile": "b.md", "projects": {}}


def test_load_snapshot_only_returns_requested_keys():
    save_snapshot({"files": {}, "unrelated": 1})
    assert load_snapshot() == {"files": {}}
    assert load_snapshot(["unrelated"]) == {"unrelated": 1}


def test_undecodable_value_is_skipped():
    with get_connection() as conn:
        conn.execute(
            "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
            ("files", "{broken", "2024-01-01T00:00:00"),
        )
        conn.commit()
    assert load_snapshot() == {}


def test_unserializable_snapshot_writes_nothing():
    save_snapshot({"currentFile": "a.md"})
    with pytest.raises(PersistenceError):
        save_snapshot({"currentFile": "b.md", "files": object()})
    assert load_snapshot() == {"currentFile": "a.md"}


def test_unusable_database_path_raises(tmp_path, monkeypatch):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    monkeypatch.setattr(db_ops, "DB_PATH", blocker / "sub" / "x.db")
    with pytest.raises(PersistenceError):
        save_snapshot({"files": {}})


def test_clear_snapshot():
    save_snapshot({"files": {}, "currentFile": ""})
    assert clear_snapshot() == 2
    assert load_snapshot() == {}


def test_schema_and_store_stats():
    save_snapshot({"files": {"a.md": {}}})
    tables = get_schema_info()["tables"]
    assert {"kv_store", "settings", "app_logs"} <= set(tables)
    stats = get_store_stats()
    assert stats["keys"]["files"] == len('{"a.md": {}}')
    assert stats["total_bytes"] == stats["keys"]["files"]
    assert stats["last_write"]


# =============================================================================
# SETTINGS
# =============================================================================

def test_settings_defaults_and_updates():
    init_settings()
    assert get_setting("calendar_first_weekday") == "0"
    assert set_setting("calendar_first_weekday", "6") == ""
    assert get_setting("calendar_first_weekday") == "6"
    assert get_all_settings()["calendar_first_weekday"] == "6"
    assert set(get_settings_by_category("system")) == {"log_level", "log_retention_days"}


def test_settings_validation():
    assert set_setting("calendar_first_weekday", "9")
    assert set_setting("log_level", "LOUD")
    assert set_setting("ingest_extensions", "md, txt")
    assert set_setting("log_retention_days", "-3")
    assert get_setting("log_level") == "INFO"


def test_ingest_extensions_setting():
    assert get_ingest_extensions() == (".md", ".markdown", ".txt")
    set_setting("ingest_extensions", ".MD, .rst")
    assert get_ingest_extensions() == (".md", ".rst")


def test_unknown_setting():
    assert get_setting("no_such_key") == ""
    with pytest.raises(SettingsError):
        require_setting("no_such_key")
    assert require_setting("export_dir") == "~/ReadSpace/exports"


# =============================================================================
# LOGS
# =============================================================================

def test_log_handler_writes_and_filters():
    logger = logging.getLogger("readspace.test")
    handler = SQLiteLogHandler()
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        logger.info("opened a.md")
        logger.warning("import rejected")
    finally:
        logger.removeHandler(handler)
        handler.close()

    rows = get_logs()
    assert [r["message"] for r in rows] == ["import rejected", "opened a.md"]
    assert [r["level"] for r in get_logs(level="WARNING")] == ["WARNING"]
    assert get_logs(module="test_operations")
    assert get_logs(module="nothing_like_this") == []


def test_cleanup_old_logs():
    with get_connection() as conn:
        conn.execute(
            "INSERT INTO app_logs (timestamp, level, module, function, message)"
            " VALUES ('2000-01-01T00:00:00', 'INFO', 'm', 'f', 'old')"
        )
        conn.commit()
    assert cleanup_old_logs(30) == 1
    assert get_logs() == []


def test_workspace_changes_are_logged_with_metadata(library):
    logger = logging.getLogger("workspace.controller")
    handler = SQLiteLogHandler()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        pid = library.create_project("Shelf").project_id
        library.insert_file(pid, [], None, "a.md")
        library.insert_file(pid, [], None, "a.md")
    finally:
        logger.removeHandler(handler)
        handler.close()
        logger.setLevel(logging.NOTSET)

    inserted = get_logs(action="insert_file")
    assert [r["level"] for r in inserted] == ["WARNING", "INFO"]
    assert inserted[1]["metadata"] == {"action": "insert_file", "project_id": pid, "files": ["a.md"]}
    assert get_log_summary()["WARNING"] == 1
