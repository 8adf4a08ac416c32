"""SQLite persistence for check-ins, the progress ledger and manual overrides.

Progress entries are append-only and keyed by a fresh id, so concurrent
writers never touch the same row.
"""

import sqlite3
import uuid
from datetime import datetime
from pathlib import Path

import structlog

from db import from_iso, to_iso, wal_connect
from shared_types import UpdateType

from .calculator import date_key as day_key_of
from .models import CheckIn, ManualProgressOverride, ProgressEntry

logger = structlog.get_logger()


def _prepare(db_path: str | Path) -> Path:
    path = Path(db_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


class ProgressStore:
    """Append-only ledger of progress entries."""

    def __init__(self, db_path: str | Path):
        self.db_path = _prepare(db_path)
        self._init_db()

    def _init_db(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS progress_entries (
                    id TEXT PRIMARY KEY,
                    created_at TIMESTAMP NOT NULL,
                    took_place_at TIMESTAMP,
                    date_key TEXT NOT NULL,
                    intention_set_id TEXT NOT NULL,
                    intention_id TEXT NOT NULL,
                    update_type TEXT NOT NULL,
                    amount REAL NOT NULL,
                    unit TEXT NOT NULL,
                    confidence REAL NOT NULL DEFAULT 1.0,
                    evidence TEXT,
                    source_check_in_id TEXT NOT NULL DEFAULT ''
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_progress_day
                ON progress_entries(date_key, intention_set_id)
            """)

    def append(self, entry: ProgressEntry) -> ProgressEntry:
        if not entry.id:
            entry.id = uuid.uuid4().hex[:16]
        with wal_connect(self.db_path) as conn:
            conn.execute(
                """INSERT INTO progress_entries
                   (id, created_at, took_place_at, date_key, intention_set_id, intention_id,
                    update_type, amount, unit, confidence, evidence, source_check_in_id)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    entry.id,
                    entry.created_at.isoformat(),
                    to_iso(entry.took_place_at),
                    entry.date_key,
                    entry.intention_set_id,
                    entry.intention_id,
                    UpdateType(entry.update_type).value,
                    entry.amount,
                    entry.unit,
                    entry.confidence,
                    entry.evidence,
                    entry.source_check_in_id,
                ),
            )
        return entry

    def entries_for_day(self, date_key: str, intention_set_id: str | None = None) -> list[ProgressEntry]:
        query = "SELECT * FROM progress_entries WHERE date_key = ?"
        params: list = [date_key]
        if intention_set_id:
            query += " AND intention_set_id = ?"
            params.append(intention_set_id)
        query += " ORDER BY created_at"
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_entry(r) for r in rows]

    def entries_between(self, start_key: str, end_key: str) -> list[ProgressEntry]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM progress_entries WHERE date_key BETWEEN ? AND ? ORDER BY created_at",
                (start_key, end_key),
            ).fetchall()
        return [self._row_to_entry(r) for r in rows]

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> ProgressEntry:
        return ProgressEntry(
            id=row["id"],
            created_at=from_iso(row["created_at"]),
            took_place_at=from_iso(row["took_place_at"]),
            date_key=row["date_key"],
            intention_set_id=row["intention_set_id"],
            intention_id=row["intention_id"],
            update_type=UpdateType.parse(row["update_type"]),
            amount=row["amount"],
            unit=row["unit"],
            confidence=row["confidence"],
            evidence=row["evidence"],
            source_check_in_id=row["source_check_in_id"],
        )


class OverrideStore:
    """Manual per-day totals typed in by the user; one per (day, intention)."""

    def __init__(self, db_path: str | Path):
        self.db_path = _prepare(db_path)
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS progress_overrides (
                    date_key TEXT NOT NULL,
                    intention_id TEXT NOT NULL,
                    amount REAL NOT NULL,
                    unit TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL,
                    PRIMARY KEY (date_key, intention_id)
                )
            """)

    def set(self, override: ManualProgressOverride):
        override.updated_at = datetime.now()
        with wal_connect(self.db_path) as conn:
            conn.execute(
                """INSERT OR REPLACE INTO progress_overrides
                   (date_key, intention_id, amount, unit, updated_at) VALUES (?, ?, ?, ?, ?)""",
                (
                    override.date_key,
                    override.intention_id,
                    override.amount,
                    override.unit,
                    override.updated_at.isoformat(),
                ),
            )

    def clear(self, date_key: str, intention_id: str) -> bool:
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM progress_overrides WHERE date_key = ? AND intention_id = ?",
                (date_key, intention_id),
            )
        return cursor.rowcount > 0

    def for_day(self, date_key: str) -> list[ManualProgressOverride]:
        return self.between(date_key, date_key)

    def between(self, start_key: str, end_key: str) -> list[ManualProgressOverride]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM progress_overrides WHERE date_key BETWEEN ? AND ?",
                (start_key, end_key),
            ).fetchall()
        return [
            ManualProgressOverride(
                date_key=r["date_key"],
                intention_id=r["intention_id"],
                amount=r["amount"],
                unit=r["unit"],
                updated_at=from_iso(r["updated_at"]),
            )
            for r in rows
        ]


class CheckInStore:
    def __init__(self, db_path: str | Path):
        self.db_path = _prepare(db_path)
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS check_ins (
                    id TEXT PRIMARY KEY,
                    created_at TIMESTAMP NOT NULL,
                    date_key TEXT NOT NULL,
                    intention_set_id TEXT NOT NULL,
                    transcript TEXT NOT NULL DEFAULT '',
                    audio_file_name TEXT
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_check_ins_day ON check_ins(date_key)")

    def save(self, check_in: CheckIn) -> CheckIn:
        if not check_in.id:
            check_in.id = uuid.uuid4().hex[:16]
        with wal_connect(self.db_path) as conn:
            conn.execute(
                """INSERT OR REPLACE INTO check_ins
                   (id, created_at, date_key, intention_set_id, transcript, audio_file_name)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    check_in.id,
                    check_in.created_at.isoformat(),
                    day_key_of(check_in.created_at),
                    check_in.intention_set_id,
                    check_in.transcript,
                    check_in.audio_file_name,
                ),
            )
        return check_in

    def get(self, check_in_id: str) -> CheckIn | None:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM check_ins WHERE id = ?", (check_in_id,)).fetchone()
        return self._row_to_check_in(row) if row else None

    def for_day(self, date_key: str) -> list[CheckIn]:
        return self.between(date_key, date_key)

    def between(self, start_key: str, end_key: str) -> list[CheckIn]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM check_ins WHERE date_key BETWEEN ? AND ? ORDER BY created_at",
                (start_key, end_key),
            ).fetchall()
        return [self._row_to_check_in(r) for r in rows]

    @staticmethod
    def _row_to_check_in(row: sqlite3.Row) -> CheckIn:
        return CheckIn(
            id=row["id"],
            created_at=from_iso(row["created_at"]),
            intention_set_id=row["intention_set_id"],
            transcript=row["transcript"],
            audio_file_name=row["audio_file_name"],
        )
