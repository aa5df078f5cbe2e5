"""SQLite-backed key-value store. Typed loaders return Pydantic models.

Every top-level collection lives under its own string key as a JSON document
and is read and written wholesale. A missing or unreadable key loads as the
collection's default value.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from pathlib import Path
from typing import Optional, TypeVar

from pydantic import TypeAdapter, ValidationError

from nesha.config import get_db_path as _config_get_db_path
from nesha.models import AppSettings, ConfessionState, Habit, Note, Task

log = logging.getLogger(__name__)

T = TypeVar("T")

SETTINGS_KEY = "settings"
HABITS_KEY = "habits"
TASKS_KEY = "tasks"
NOTES_KEY = "notes"
CONFESSION_DATE_KEY = "confession-date"
LAST_CONFESSION_DATE_KEY = "last-confession-date"
ADVICE_KEY_PREFIX = "advice-cache-"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key    TEXT PRIMARY KEY,
    value  TEXT NOT NULL
);
"""

_HABITS = TypeAdapter(list[Habit])
_TASKS = TypeAdapter(list[Task])
_NOTES = TypeAdapter(list[Note])
_SETTINGS = TypeAdapter(AppSettings)
_DATE = TypeAdapter(date)
_TEXT = TypeAdapter(str)


def _get_db_path() -> Path:
    """Return the store file path from config (or default)."""
    return _config_get_db_path()


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open a connection and ensure the schema exists."""
    path = db_path or _get_db_path()
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.executescript(_SCHEMA)
    return conn


# ---------------------------------------------------------------------------
# Raw string store
# ---------------------------------------------------------------------------


def get_item(conn: sqlite3.Connection, key: str) -> Optional[str]:
    """Return the raw value stored under ``key``, or None."""
    row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else None


def set_item(conn: sqlite3.Connection, key: str, value: str) -> None:
    """Store ``value`` under ``key``, replacing any previous value."""
    conn.execute(
        """INSERT INTO kv (key, value) VALUES (?, ?)
           ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
        (key, value),
    )
    conn.commit()


def remove_item(conn: sqlite3.Connection, key: str) -> None:
    """Delete ``key``. Missing keys are ignored."""
    conn.execute("DELETE FROM kv WHERE key = ?", (key,))
    conn.commit()


def list_keys(conn: sqlite3.Connection, prefix: str = "") -> list[str]:
    """List stored keys starting with ``prefix``, sorted."""
    rows = conn.execute(
        "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
        (len(prefix), prefix),
    ).fetchall()
    return [r["key"] for r in rows]


def _load(conn: sqlite3.Connection, key: str, adapter: TypeAdapter[T], default: T) -> T:
    raw = get_item(conn, key)
    if raw is None:
        return default
    try:
        return adapter.validate_json(raw)
    except ValidationError as exc:
        log.warning("Discarding malformed %r entry: %s", key, exc.errors()[:1])
        return default


def _save(conn: sqlite3.Connection, key: str, adapter: TypeAdapter[T], value: T) -> None:
    set_item(conn, key, adapter.dump_json(value).decode("utf-8"))


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


def load_settings(conn: sqlite3.Connection) -> AppSettings:
    return _load(conn, SETTINGS_KEY, _SETTINGS, AppSettings())


def save_settings(conn: sqlite3.Connection, settings: AppSettings) -> None:
    _save(conn, SETTINGS_KEY, _SETTINGS, settings)


def load_habits(conn: sqlite3.Connection) -> list[Habit]:
    return _load(conn, HABITS_KEY, _HABITS, [])


def save_habits(conn: sqlite3.Connection, habits: list[Habit]) -> None:
    _save(conn, HABITS_KEY, _HABITS, list(habits))


def load_tasks(conn: sqlite3.Connection) -> list[Task]:
    return _load(conn, TASKS_KEY, _TASKS, [])


def save_tasks(conn: sqlite3.Connection, tasks: list[Task]) -> None:
    _save(conn, TASKS_KEY, _TASKS, list(tasks))


def load_notes(conn: sqlite3.Connection) -> list[Note]:
    return _load(conn, NOTES_KEY, _NOTES, [])


def save_notes(conn: sqlite3.Connection, notes: list[Note]) -> None:
    _save(conn, NOTES_KEY, _NOTES, list(notes))


# ---------------------------------------------------------------------------
# Confession dates
# ---------------------------------------------------------------------------


def _load_optional_date(conn: sqlite3.Connection, key: str) -> Optional[date]:
    return _load(conn, key, _DATE, None)


def _save_optional_date(conn: sqlite3.Connection, key: str, value: Optional[date]) -> None:
    """Store a date, or drop the key entirely when ``value`` is None."""
    if value is None:
        remove_item(conn, key)
    else:
        _save(conn, key, _DATE, value)


def load_confession(conn: sqlite3.Connection) -> ConfessionState:
    """Load both confession dates; each is independently optional."""
    return ConfessionState(
        confession_date=_load_optional_date(conn, CONFESSION_DATE_KEY),
        last_confession_date=_load_optional_date(conn, LAST_CONFESSION_DATE_KEY),
    )


def save_confession_date(conn: sqlite3.Connection, value: Optional[date]) -> None:
    _save_optional_date(conn, CONFESSION_DATE_KEY, value)


def save_last_confession_date(conn: sqlite3.Connection, value: Optional[date]) -> None:
    _save_optional_date(conn, LAST_CONFESSION_DATE_KEY, value)


# ---------------------------------------------------------------------------
# Daily advice cache
# ---------------------------------------------------------------------------


def advice_key(day: date) -> str:
    """Cache key for the advice shown on ``day``."""
    return f"{ADVICE_KEY_PREFIX}{day.isoformat()}"


def load_advice(conn: sqlite3.Connection, day: date) -> Optional[str]:
    return _load(conn, advice_key(day), _TEXT, None)


def save_advice(conn: sqlite3.Connection, day: date, text: str) -> None:
    _save(conn, advice_key(day), _TEXT, text)
