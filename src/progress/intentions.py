"""SQLite storage for intentions and the intention sets they belong to.

Editing intentions starts a new set; the previous one is closed so history
keeps pointing at the targets that were in force on each day.
"""

import sqlite3
import uuid
from datetime import date, datetime, time, timedelta
from pathlib import Path

import structlog

from db import dump_list, from_iso, load_list, wal_connect

from .models import Intention, IntentionSet

logger = structlog.get_logger()


def set_active_on(intention_set: IntentionSet, day: date) -> bool:
    """Whether the set was in force at any point during `day`."""
    start_of_day = datetime.combine(day, time.min)
    end_of_day = start_of_day + timedelta(days=1)
    if intention_set.started_at >= end_of_day:
        return False
    return intention_set.ended_at is None or intention_set.ended_at > start_of_day


class IntentionStore:
    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS intentions (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    target_value REAL NOT NULL,
                    unit TEXT NOT NULL,
                    timeframe TEXT NOT NULL DEFAULT 'daily',
                    category TEXT,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    created_at TIMESTAMP NOT NULL,
                    aliases TEXT NOT NULL DEFAULT '[]'
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS intention_sets (
                    id TEXT PRIMARY KEY,
                    started_at TIMESTAMP NOT NULL,
                    ended_at TIMESTAMP,
                    intention_ids TEXT NOT NULL DEFAULT '[]'
                )
            """)

    # --- Intentions ---

    def save_intention(self, intention: Intention) -> Intention:
        if not intention.id:
            intention.id = uuid.uuid4().hex[:16]
        with wal_connect(self.db_path) as conn:
            conn.execute(
                """INSERT OR REPLACE INTO intentions
                   (id, title, target_value, unit, timeframe, category, is_active, created_at, aliases)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    intention.id,
                    intention.title,
                    intention.target_value,
                    intention.unit,
                    str(intention.timeframe).lower(),
                    intention.category,
                    int(intention.is_active),
                    intention.created_at.isoformat(),
                    dump_list(intention.aliases),
                ),
            )
        return intention

    def get_intention(self, intention_id: str) -> Intention | None:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM intentions WHERE id = ?", (intention_id,)).fetchone()
        return self._row_to_intention(row) if row else None

    def list_intentions(self, active_only: bool = False) -> list[Intention]:
        query = "SELECT * FROM intentions"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY created_at"
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(query).fetchall()
        return [self._row_to_intention(r) for r in rows]

    def intentions_for_set(self, intention_set: IntentionSet, active_only: bool = True) -> list[Intention]:
        """Intentions of a set, in the set's order."""
        by_id = {i.id: i for i in self.list_intentions()}
        result = [by_id[i] for i in intention_set.intention_ids if i in by_id]
        if active_only:
            result = [i for i in result if i.is_active]
        return result

    # --- Sets ---

    def start_set(self, intention_ids: list[str], started_at: datetime | None = None) -> IntentionSet:
        """Close the current set (if any) and open a new one."""
        started_at = started_at or datetime.now()
        current = self.current_set()
        new_set = IntentionSet(
            id=uuid.uuid4().hex[:16],
            started_at=started_at,
            intention_ids=list(intention_ids),
        )
        with wal_connect(self.db_path) as conn:
            if current:
                conn.execute(
                    "UPDATE intention_sets SET ended_at = ? WHERE id = ?",
                    (started_at.isoformat(), current.id),
                )
            conn.execute(
                "INSERT INTO intention_sets (id, started_at, ended_at, intention_ids) VALUES (?, ?, ?, ?)",
                (new_set.id, new_set.started_at.isoformat(), None, dump_list(new_set.intention_ids)),
            )
        logger.info(
            "intentions.set_started",
            set_id=new_set.id,
            closed=current.id if current else None,
            intentions=len(intention_ids),
        )
        return new_set

    def current_set(self) -> IntentionSet | None:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute(
                "SELECT * FROM intention_sets WHERE ended_at IS NULL ORDER BY started_at DESC LIMIT 1"
            ).fetchone()
        return self._row_to_set(row) if row else None

    def get_set(self, set_id: str) -> IntentionSet | None:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM intention_sets WHERE id = ?", (set_id,)).fetchone()
        return self._row_to_set(row) if row else None

    def list_sets(self) -> list[IntentionSet]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute("SELECT * FROM intention_sets ORDER BY started_at").fetchall()
        return [self._row_to_set(r) for r in rows]

    def active_set_on(self, day: date) -> IntentionSet | None:
        """The latest-started set in force on `day`."""
        active = [s for s in self.list_sets() if set_active_on(s, day)]
        return active[-1] if active else None

    @staticmethod
    def _row_to_intention(row: sqlite3.Row) -> Intention:
        return Intention(
            id=row["id"],
            title=row["title"],
            target_value=row["target_value"],
            unit=row["unit"],
            timeframe=row["timeframe"],
            category=row["category"],
            is_active=bool(row["is_active"]),
            created_at=from_iso(row["created_at"]),
            aliases=load_list(row["aliases"]),
        )

    @staticmethod
    def _row_to_set(row: sqlite3.Row) -> IntentionSet:
        return IntentionSet(
            id=row["id"],
            started_at=from_iso(row["started_at"]),
            ended_at=from_iso(row["ended_at"]),
            intention_ids=load_list(row["intention_ids"]),
        )
