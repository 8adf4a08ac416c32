"""Shared SQLite helpers: WAL mode, row access, JSON columns."""

import json
import sqlite3
from datetime import datetime
from pathlib import Path


def wal_connect(db_path: str | Path, row_factory: bool = False) -> sqlite3.Connection:
    """Open SQLite connection with WAL journal mode.

    Args:
        db_path: Path to database file.
        row_factory: If True, set conn.row_factory = sqlite3.Row.
    """
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA journal_mode=WAL")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


def dump_list(values) -> str:
    return json.dumps(list(values or []))


def load_list(raw: str | None) -> list:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return []
    return value if isinstance(value, list) else []


def to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def from_iso(raw: str | None) -> datetime | None:
    return datetime.fromisoformat(raw) if raw else None
