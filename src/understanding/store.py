"""SQLite persistence for extracted items, review state and corrections."""

import json
import sqlite3
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

import structlog

from db import dump_list, from_iso, load_list, to_iso, wal_connect
from shared_types import ItemType, ReviewState

from .models import CalendarCandidate, ExtractedItem, ItemCorrection

logger = structlog.get_logger()


def effective_title(item: ExtractedItem, correction: ItemCorrection | None) -> str:
    if correction and correction.corrected_title and correction.corrected_title.strip():
        return correction.corrected_title.strip()
    return item.title


def effective_categories(item: ExtractedItem, correction: ItemCorrection | None) -> list[str]:
    if correction and correction.corrected_categories is not None:
        return list(correction.corrected_categories)
    return list(item.categories)


def effective_type(item: ExtractedItem, correction: ItemCorrection | None) -> ItemType:
    if correction and correction.corrected_type is not None:
        return correction.corrected_type
    return item.type


class ExtractionStore:
    """Extracted items keyed by id, plus the user's correction overlay."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS extracted_items (
                    id TEXT PRIMARY KEY,
                    session_id TEXT NOT NULL,
                    segment_id TEXT NOT NULL,
                    segment_index INTEGER NOT NULL DEFAULT 0,
                    type TEXT NOT NULL,
                    title TEXT NOT NULL,
                    summary TEXT NOT NULL DEFAULT '',
                    categories TEXT NOT NULL DEFAULT '[]',
                    confidence REAL NOT NULL,
                    strength REAL NOT NULL,
                    source_quote TEXT NOT NULL DEFAULT '',
                    context_before TEXT,
                    context_after TEXT,
                    fingerprint TEXT NOT NULL,
                    review_state TEXT NOT NULL DEFAULT 'new',
                    reviewed_at TIMESTAMP,
                    calendar_candidate TEXT,
                    created_at TIMESTAMP NOT NULL,
                    extracted_at TIMESTAMP NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_items_session
                ON extracted_items(session_id, segment_index)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_items_fingerprint
                ON extracted_items(fingerprint)
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS item_corrections (
                    item_id TEXT PRIMARY KEY,
                    is_incorrect INTEGER NOT NULL DEFAULT 0,
                    corrected_title TEXT,
                    corrected_type TEXT,
                    corrected_categories TEXT,
                    note TEXT,
                    updated_at TIMESTAMP NOT NULL
                )
            """)

    # --- Items ---

    def save_items(self, items: list[ExtractedItem]):
        with wal_connect(self.db_path) as conn:
            conn.executemany(
                """INSERT OR REPLACE INTO extracted_items
                   (id, session_id, segment_id, segment_index, type, title, summary, categories,
                    confidence, strength, source_quote, context_before, context_after, fingerprint,
                    review_state, reviewed_at, calendar_candidate, created_at, extracted_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [self._to_row(item) for item in items],
            )

    def get_item(self, item_id: str) -> ExtractedItem | None:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM extracted_items WHERE id = ?", (item_id,)).fetchone()
        return self._row_to_item(row) if row else None

    def list_items(self, session_id: str | None = None) -> list[ExtractedItem]:
        query = "SELECT * FROM extracted_items"
        params: tuple = ()
        if session_id:
            query += " WHERE session_id = ?"
            params = (session_id,)
        query += " ORDER BY created_at, segment_index"
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_item(r) for r in rows]

    def resolve_items(self, item_ids: list[str]) -> list[ExtractedItem]:
        """Items for the given ids in input order; orphaned ids are skipped."""
        if not item_ids:
            return []
        placeholders = ",".join("?" * len(item_ids))
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(
                f"SELECT * FROM extracted_items WHERE id IN ({placeholders})", item_ids
            ).fetchall()
        by_id = {r["id"]: self._row_to_item(r) for r in rows}
        resolved = [by_id[i] for i in item_ids if i in by_id]
        orphaned = len(item_ids) - len(resolved)
        if orphaned:
            logger.info("understanding.store.orphaned_items", count=orphaned)
        return resolved

    def set_review_state(self, item_id: str, state: ReviewState) -> bool:
        with wal_connect(self.db_path) as conn:
            cursor = conn.execute(
                "UPDATE extracted_items SET review_state = ?, reviewed_at = ? WHERE id = ?",
                (ReviewState(state).value, datetime.now().isoformat(), item_id),
            )
        return cursor.rowcount > 0

    # --- Corrections ---

    def save_correction(self, correction: ItemCorrection):
        correction.updated_at = datetime.now()
        with wal_connect(self.db_path) as conn:
            conn.execute(
                """INSERT OR REPLACE INTO item_corrections
                   (item_id, is_incorrect, corrected_title, corrected_type,
                    corrected_categories, note, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    correction.item_id,
                    int(correction.is_incorrect),
                    correction.corrected_title,
                    correction.corrected_type.value if correction.corrected_type else None,
                    None
                    if correction.corrected_categories is None
                    else dump_list(correction.corrected_categories),
                    correction.note,
                    correction.updated_at.isoformat(),
                ),
            )

    def get_correction(self, item_id: str) -> ItemCorrection | None:
        return self.load_corrections().get(item_id)

    def load_corrections(self) -> dict[str, ItemCorrection]:
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute("SELECT * FROM item_corrections").fetchall()
        corrections = {}
        for r in rows:
            corrections[r["item_id"]] = ItemCorrection(
                item_id=r["item_id"],
                is_incorrect=bool(r["is_incorrect"]),
                corrected_title=r["corrected_title"],
                corrected_type=ItemType.parse(r["corrected_type"]) if r["corrected_type"] else None,
                corrected_categories=(
                    load_list(r["corrected_categories"])
                    if r["corrected_categories"] is not None
                    else None
                ),
                note=r["note"],
                updated_at=from_iso(r["updated_at"]),
            )
        return corrections

    @staticmethod
    def _to_row(item: ExtractedItem) -> tuple:
        calendar = json.dumps(asdict(item.calendar_candidate)) if item.calendar_candidate else None
        return (
            item.id,
            item.session_id,
            item.segment_id,
            item.segment_index,
            ItemType(item.type).value,
            item.title,
            item.summary,
            dump_list(item.categories),
            item.confidence,
            item.strength,
            item.source_quote,
            item.context_before,
            item.context_after,
            item.fingerprint,
            ReviewState(item.review_state).value,
            to_iso(item.reviewed_at),
            calendar,
            item.created_at.isoformat(),
            item.extracted_at.isoformat(),
        )

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> ExtractedItem:
        calendar = None
        if row["calendar_candidate"]:
            calendar = CalendarCandidate(**json.loads(row["calendar_candidate"]))
        return ExtractedItem(
            id=row["id"],
            session_id=row["session_id"],
            segment_id=row["segment_id"],
            segment_index=row["segment_index"],
            type=ItemType.parse(row["type"]),
            title=row["title"],
            summary=row["summary"],
            categories=load_list(row["categories"]),
            confidence=row["confidence"],
            strength=row["strength"],
            source_quote=row["source_quote"],
            context_before=row["context_before"],
            context_after=row["context_after"],
            fingerprint=row["fingerprint"],
            review_state=ReviewState(row["review_state"]),
            reviewed_at=from_iso(row["reviewed_at"]),
            calendar_candidate=calendar,
            created_at=from_iso(row["created_at"]),
            extracted_at=from_iso(row["extracted_at"]),
        )
