"""Daily mood: one record per day, check-ins never overwrite a manual mood."""

import sqlite3
from datetime import datetime
from pathlib import Path

import structlog

from db import from_iso, wal_connect
from shared_types import Tier

from .models import DailyMood

logger = structlog.get_logger()

MOOD_SCORE_MIN = 0
MOOD_SCORE_MAX = 10

TIER_LABELS = {
    Tier.VERY_LOW: "Stressed",
    Tier.LOW: "Low",
    Tier.NEUTRAL: "Neutral",
    Tier.GOOD: "Good",
    Tier.GREAT: "Happy",
}


def clamp_mood_score(score: int | None) -> int | None:
    if score is None:
        return None
    return min(MOOD_SCORE_MAX, max(MOOD_SCORE_MIN, int(score)))


def mood_tier(score: int) -> Tier:
    score = clamp_mood_score(score)
    if score <= 2:
        return Tier.VERY_LOW
    if score <= 4:
        return Tier.LOW
    if score <= 6:
        return Tier.NEUTRAL
    if score <= 8:
        return Tier.GOOD
    return Tier.GREAT


def mood_tier_label(score: int) -> str:
    return TIER_LABELS[mood_tier(score)]


class DailyMoodStore:
    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS daily_moods (
                    date_key TEXT PRIMARY KEY,
                    mood_label TEXT,
                    mood_score INTEGER,
                    updated_at TIMESTAMP NOT NULL,
                    source_check_in_id TEXT,
                    is_manual_override INTEGER NOT NULL DEFAULT 0
                )
            """)

    def get(self, date_key: str) -> DailyMood | None:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM daily_moods WHERE date_key = ?", (date_key,)).fetchone()
        return self._row_to_mood(row) if row else None

    def list_range(self, start_key: str, end_key: str) -> list[DailyMood]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                "SELECT * FROM daily_moods WHERE date_key BETWEEN ? AND ? ORDER BY date_key",
                (start_key, end_key),
            ).fetchall()
        return [self._row_to_mood(r) for r in rows]

    def save(self, mood: DailyMood):
        with wal_connect(self.db_path) as conn:
            conn.execute(
                """INSERT OR REPLACE INTO daily_moods
                   (date_key, mood_label, mood_score, updated_at, source_check_in_id, is_manual_override)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    mood.date_key,
                    mood.mood_label,
                    clamp_mood_score(mood.mood_score),
                    mood.updated_at.isoformat(),
                    mood.source_check_in_id,
                    int(mood.is_manual_override),
                ),
            )
        logger.info("mood.saved", date_key=mood.date_key, manual=mood.is_manual_override)

    def set_from_check_in_if_not_overridden(
        self, date_key: str, mood_label: str | None, mood_score: int | None, source_check_in_id: str
    ) -> bool:
        """Latest check-in wins unless the user set the mood by hand."""
        existing = self.get(date_key)
        if existing and existing.is_manual_override:
            return False
        self.save(
            DailyMood(
                date_key=date_key,
                mood_label=mood_label,
                mood_score=mood_score,
                updated_at=datetime.now(),
                source_check_in_id=source_check_in_id,
            )
        )
        return True

    def set_manual(self, date_key: str, mood_label: str | None, mood_score: int | None):
        self.save(
            DailyMood(
                date_key=date_key,
                mood_label=mood_label,
                mood_score=mood_score,
                updated_at=datetime.now(),
                is_manual_override=True,
            )
        )

    def clear_manual_override(self, date_key: str):
        self.save(DailyMood(date_key=date_key, updated_at=datetime.now()))

    @staticmethod
    def _row_to_mood(row: sqlite3.Row) -> DailyMood:
        return DailyMood(
            date_key=row["date_key"],
            mood_label=row["mood_label"],
            mood_score=row["mood_score"],
            updated_at=from_iso(row["updated_at"]),
            source_check_in_id=row["source_check_in_id"],
            is_manual_override=bool(row["is_manual_override"]),
        )
