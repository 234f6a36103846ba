"""Application logging — console output plus a queryable SQLite trail.

setup_logging() attaches two handlers to the root logger: a StreamHandler
for the terminal and SQLiteLogHandler, which appends to the app_logs table
so the Data tab can browse recent activity. Workspace changes carry their
action, project and files as JSON in the `metadata` column (pass them as
`extra={"log_metadata": {...}}`), which get_logs() can filter on.
"""

import json
import logging
import sqlite3
import threading
from datetime import datetime, timedelta

from db import operations as db_ops

_BATCH_SIZE = 10

CONSOLE_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s.%(funcName)s  %(message)s"

# Third-party loggers that drown out workspace activity at INFO
QUIET_LOGGERS = (
    "httpx", "httpcore", "urllib3", "gradio", "uvicorn", "uvicorn.access",
    "uvicorn.error", "watchfiles", "multipart", "asyncio", "markdown_it",
)


def _connect() -> sqlite3.Connection:
    # DB_PATH is looked up on every call; tests point it at a temp file
    conn = sqlite3.connect(str(db_ops.DB_PATH), timeout=5)
    conn.execute("PRAGMA busy_timeout = 3000")
    return conn


def _resolve_level(level) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level or "").upper())
    return value if isinstance(value, int) else logging.INFO


class SQLiteLogHandler(logging.Handler):
    """Buffers log records and writes them to app_logs in batches.

    The buffer is flushed once it holds _BATCH_SIZE rows, and right away
    for WARNING and above so rejected operations show up immediately.
    """

    def __init__(self):
        super().__init__()
        self._buffer: list[tuple] = []
        self._lock = threading.Lock()

    def _row(self, record: logging.LogRecord) -> tuple:
        metadata = getattr(record, "log_metadata", None) or {}
        return (
            datetime.utcnow().isoformat(timespec="seconds"),
            record.levelname,
            record.module,
            record.funcName or "",
            self.format(record),
            json.dumps(metadata, default=str),
        )

    def emit(self, record: logging.LogRecord):
        try:
            row = self._row(record)
            with self._lock:
                self._buffer.append(row)
                if record.levelno >= logging.WARNING or len(self._buffer) >= _BATCH_SIZE:
                    self._flush_buffer()
        except Exception:
            self.handleError(record)

    def _flush_buffer(self):
        """Insert buffered rows. Caller holds self._lock."""
        if not self._buffer:
            return
        rows, self._buffer = self._buffer, []
        try:
            conn = _connect()
            try:
                conn.executemany(
                    "INSERT INTO app_logs (timestamp, level, module, function, message, metadata)"
                    " VALUES (?, ?, ?, ?, ?, ?)",
                    rows,
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error:
            # app_logs missing until init_database() has run; rows are dropped
            pass

    def flush(self):
        with self._lock:
            self._flush_buffer()

    def close(self):
        self.flush()
        super().close()


def setup_logging(level=None):
    """Install the console and SQLite handlers on the root logger.

    Calling it again is harmless: an existing SQLiteLogHandler means
    logging is already configured.

    Args:
        level: int or level name. Defaults to the `log_level` setting.
    """
    root = logging.getLogger()
    if any(isinstance(h, SQLiteLogHandler) for h in root.handlers):
        return

    if level is None:
        from services.settings import get_setting
        level = get_setting("log_level")
    level = _resolve_level(level)
    root.setLevel(level)

    formatter = logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S")
    for handler in (logging.StreamHandler(), SQLiteLogHandler()):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _flush_root_handlers():
    for handler in logging.getLogger().handlers:
        if isinstance(handler, SQLiteLogHandler):
            handler.flush()


def get_logs(
    level: str = "",
    module: str = "",
    action: str = "",
    limit: int = 100,
    since: str = "",
) -> list[dict]:
    """Recent log rows for the Data tab, newest first.

    Args:
        level: Exact level name ('WARNING'); empty for all.
        module: Substring of the emitting module ('controller').
        action: Workspace action recorded in metadata ('move_file').
        limit: Maximum number of rows.
        since: ISO timestamp lower bound.

    Returns:
        List of dicts; `metadata` is decoded back into a dict.
    """
    _flush_root_handlers()

    filters = {
        "level = ?": level,
        "module LIKE ?": f"%{module}%" if module else "",
        "json_extract(metadata, '$.action') = ?": action,
        "timestamp >= ?": since,
    }
    clauses = [sql for sql, value in filters.items() if value]
    params: list = [value for value in filters.values() if value]
    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

    try:
        conn = _connect()
        conn.row_factory = sqlite3.Row
        try:
            rows = conn.execute(
                f"SELECT * FROM app_logs{where} ORDER BY id DESC LIMIT ?", [*params, limit],
            ).fetchall()
        finally:
            conn.close()
    except sqlite3.Error:
        return []

    logs = []
    for row in rows:
        entry = dict(row)
        try:
            entry["metadata"] = json.loads(entry.get("metadata") or "{}")
        except json.JSONDecodeError:
            entry["metadata"] = {}
        logs.append(entry)
    return logs


def get_log_summary() -> dict:
    """Row count per level, e.g. {'INFO': 120, 'WARNING': 3}."""
    _flush_root_handlers()
    try:
        conn = _connect()
        try:
            rows = conn.execute(
                "SELECT level, COUNT(*) FROM app_logs GROUP BY level ORDER BY level"
            ).fetchall()
        finally:
            conn.close()
    except sqlite3.Error:
        return {}
    return {level: count for level, count in rows}


def cleanup_old_logs(days: int = 30) -> int:
    """Delete rows older than `days` days; returns how many were removed."""
    cutoff = (datetime.utcnow() - timedelta(days=days)).isoformat(timespec="seconds")
    try:
        conn = _connect()
        try:
            cursor = conn.execute("DELETE FROM app_logs WHERE timestamp < ?", (cutoff,))
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()
    except sqlite3.Error:
        return 0
