"""Settings service — persistent key-value configuration.

Settings are stored in the SQLite `settings` table. The SETTINGS_REGISTRY
defines all known settings with their defaults, categories, and optional
validators.
"""
import logging
from datetime import datetime

from db.operations import get_connection, init_database
from shared.exceptions import SettingsError

logger = logging.getLogger(__name__)


# --- Validators ---

def _validate_positive_int(value: str) -> str | None:
    """Validate that value is a positive integer string.

    Args:
        value: String to validate.

    Returns:
        Error message string if invalid, None if valid.
    """
    if value and not value.strip().isdigit():
        return f"Must be a positive integer, got '{value}'"
    return None


def _validate_log_level(value: str) -> str | None:
    """Validate Python logging level name.

    Args:
        value: Log level string to validate.

    Returns:
        Error message string if invalid, None if valid.
    """
    valid = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    if value and value.upper() not in valid:
        return f"Invalid log level '{value}'. Must be one of: {', '.join(valid)}"
    return None


def _validate_extensions(value: str) -> str | None:
    """Validate a comma-separated list of file extensions like '.md,.txt'."""
    parts = [p.strip() for p in value.split(",") if p.strip()]
    if not parts:
        return "At least one extension is required"
    bad = [p for p in parts if not p.startswith(".") or len(p) < 2]
    if bad:
        return f"Extensions must start with a dot: {', '.join(bad)}"
    return None


def _validate_weekday(value: str) -> str | None:
    """Validate first calendar weekday (0 = Monday ... 6 = Sunday)."""
    if value not in {str(i) for i in range(7)}:
        return f"Must be 0 (Monday) to 6 (Sunday), got '{value}'"
    return None


# --- Settings Registry ---
# Each entry: (default, category, validator_fn_or_None)

SETTINGS_REGISTRY = {
    # Files
    "export_dir":              ("~/ReadSpace/exports", "files", None),
    "ingest_extensions":       (".md,.markdown,.txt", "files", _validate_extensions),

    # Calendar
    "calendar_first_weekday":  ("0", "calendar", _validate_weekday),

    # System
    "log_level":               ("INFO", "system", _validate_log_level),
    "log_retention_days":      ("30", "system", _validate_positive_int),
}


def init_settings():
    """Insert default settings if they don't exist yet. Call on app startup."""
    init_database()
    with get_connection() as conn:
        for key, (default_value, _cat, _val) in SETTINGS_REGISTRY.items():
            conn.execute(
                "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?)",
                (key, default_value)
            )
        conn.commit()


def get_setting(key: str) -> str:
    """Get a setting value.

    Args:
        key: Setting key name.

    Returns:
        The setting value as a string, or the default if not found.
    """
    init_database()
    with get_connection() as conn:
        row = conn.execute(
            "SELECT value FROM settings WHERE key = ?", (key,)
        ).fetchone()
    if row is None or row["value"] is None:
        reg = SETTINGS_REGISTRY.get(key)
        return reg[0] if reg else ""
    return row["value"]


def set_setting(key: str, value: str) -> str:
    """Set a setting value after validating it.

    Args:
        key: Setting key name.
        value: New value to store.

    Returns:
        Empty string on success, error message string on validation failure.
    """
    reg = SETTINGS_REGISTRY.get(key)
    if reg:
        _default, _cat, validator = reg
        if validator:
            error = validator(value)
            if error:
                logger.warning("Setting validation failed for '%s': %s", key, error)
                return error

    init_database()
    with get_connection() as conn:
        conn.execute(
            """INSERT INTO settings (key, value, updated_at)
               VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value,
                   updated_at = excluded.updated_at""",
            (key, value, datetime.utcnow().isoformat(timespec="seconds"))
        )
        conn.commit()
    logger.info("Setting '%s' updated", key)
    return ""


def require_setting(key: str) -> str:
    """Like get_setting, but unknown keys are an error.

    Raises:
        SettingsError: If `key` is not in SETTINGS_REGISTRY.
    """
    if key not in SETTINGS_REGISTRY:
        raise SettingsError(f"Unknown setting '{key}'")
    return get_setting(key)


def get_all_settings() -> dict:
    """Get all settings as a dict, registry defaults filled in."""
    result = {key: reg[0] for key, reg in SETTINGS_REGISTRY.items()}
    init_database()
    with get_connection() as conn:
        rows = conn.execute("SELECT key, value FROM settings").fetchall()
    for row in rows:
        if row["value"] is not None:
            result[row["key"]] = row["value"]
    return result


def get_settings_by_category(category: str) -> dict:
    """Get all settings for a given category.

    Args:
        category: One of 'files', 'calendar', 'system'.

    Returns:
        Dict of {key: value} for settings in that category.
    """
    keys = [k for k, v in SETTINGS_REGISTRY.items() if v[1] == category]
    return {key: get_setting(key) for key in keys}


def get_ingest_extensions() -> tuple[str, ...]:
    """Configured document extensions, lower-cased."""
    raw = get_setting("ingest_extensions")
    return tuple(p.strip().lower() for p in raw.split(",") if p.strip())
