"""
Database operations for ReadSpace.

The persistence gateway: a SQLite key-value table holding one JSON
snapshot per AppState field, plus the settings and app_logs tables.
Snapshots are always written whole, inside a single transaction.
"""

import sqlite3
import json
import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from shared.constants import SNAPSHOT_KEYS
from shared.exceptions import PersistenceError

logger = logging.getLogger(__name__)

# Database path
DB_PATH = Path(__file__).parent / "readspace.db"

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT,
    updated_at TEXT DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS app_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    level TEXT NOT NULL,
    module TEXT,
    function TEXT,
    message TEXT,
    metadata TEXT DEFAULT '{}'
);

CREATE INDEX IF NOT EXISTS idx_app_logs_timestamp ON app_logs (timestamp);
"""


@contextmanager
def get_connection():
    """Get database connection with proper settings."""
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(DB_PATH), timeout=5)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA busy_timeout = 3000")
    try:
        yield conn
    finally:
        conn.close()


def init_database():
    """Create tables if they don't exist. Safe to call multiple times."""
    try:
        with get_connection() as conn:
            conn.executescript(SCHEMA)
            conn.commit()
    except (sqlite3.Error, OSError) as e:
        raise PersistenceError(f"Could not initialize {DB_PATH}: {e}") from e


# =============================================================================
# KEY-VALUE STORE
# =============================================================================

def save_snapshot(snapshot: dict) -> None:
    """
    Write every key of `snapshot` in one transaction.

    Either all keys are replaced or none are, so a failed write never
    leaves a half-updated workspace behind.

    Args:
        snapshot: Mapping of store key -> JSON-serializable value

    Raises:
        PersistenceError: On serialization or SQLite failure
    """
    now = datetime.utcnow().isoformat(timespec="seconds")
    try:
        rows = [(key, json.dumps(value, ensure_ascii=False), now) for key, value in snapshot.items()]
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Snapshot is not serializable: {e}") from e

    try:
        init_database()
        with get_connection() as conn:
            with conn:
                conn.executemany(
                    """INSERT INTO kv_store (key, value, updated_at)
                       VALUES (?, ?, ?)
                       ON CONFLICT(key) DO UPDATE SET
                           value = excluded.value,
                           updated_at = excluded.updated_at""",
                    rows,
                )
    except (sqlite3.Error, OSError) as e:
        raise PersistenceError(f"Snapshot write failed: {e}") from e


def load_snapshot(keys: list[str] | None = None) -> dict:
    """
    Read the stored snapshot.

    Args:
        keys: Keys to read (defaults to every AppState key)

    Returns:
        Dict of key -> decoded value; missing or undecodable keys are absent
    """
    keys = keys or SNAPSHOT_KEYS
    try:
        init_database()
        with get_connection() as conn:
            placeholders = ", ".join("?" for _ in keys)
            rows = conn.execute(
                f"SELECT key, value FROM kv_store WHERE key IN ({placeholders})", keys
            ).fetchall()
    except (sqlite3.Error, OSError) as e:
        raise PersistenceError(f"Snapshot read failed: {e}") from e

    snapshot = {}
    for row in rows:
        try:
            snapshot[row["key"]] = json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning("Skipping undecodable stored key '%s'", row["key"])
    return snapshot


def clear_snapshot() -> int:
    """
    Delete every stored workspace key.

    Returns:
        Number of keys removed
    """
    try:
        init_database()
        with get_connection() as conn:
            with conn:
                cursor = conn.execute("DELETE FROM kv_store")
                return cursor.rowcount
    except (sqlite3.Error, OSError) as e:
        raise PersistenceError(f"Clear failed: {e}") from e


# =============================================================================
# SCHEMA & STATS
# =============================================================================

def get_schema_info() -> dict:
    """
    Get database table and column information for the Data tab.

    Returns:
        Dict with tables and their columns
    """
    init_database()
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT name FROM sqlite_master
            WHERE type='table' AND name NOT LIKE 'sqlite_%'
            ORDER BY name
        """)
        tables = {}
        for row in cursor.fetchall():
            table_name = row['name']
            cursor.execute(f"PRAGMA table_info({table_name})")
            tables[table_name] = {
                'columns': [{'name': col['name'], 'type': col['type']} for col in cursor.fetchall()]
            }
        return {'tables': tables}


def get_store_stats() -> dict:
    """
    Get storage statistics.

    Returns:
        Dict with per-key payload sizes and the last write time
    """
    init_database()
    with get_connection() as conn:
        rows = conn.execute(
            "SELECT key, LENGTH(value) AS size, updated_at FROM kv_store ORDER BY key"
        ).fetchall()
    return {
        'keys': {row['key']: row['size'] for row in rows},
        'total_bytes': sum(row['size'] for row in rows),
        'last_write': max((row['updated_at'] for row in rows), default=""),
    }
