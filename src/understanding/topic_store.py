"""Topic aggregates: recurring concepts merged across sessions.

Topics are only ever created or merged into, never deleted. Two items with
different fingerprints landing on the same topic key are a collision; they
are merged anyway and logged so a human can sort them out.
"""

import sqlite3
from pathlib import Path

import structlog

from db import dump_list, from_iso, load_list, wal_connect

from .canonicalizer import canonical_title, is_better_title, stem_from_key
from .models import ExtractedItem, ItemCorrection, TopicAggregate, TopicUpdateStats
from .store import effective_categories, effective_title
from .topic_keys import primary_category, topic_key

logger = structlog.get_logger()


class TopicStore:
    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS topics (
                    topic_key TEXT PRIMARY KEY,
                    canonical_key TEXT NOT NULL,
                    display_title TEXT NOT NULL,
                    primary_category TEXT NOT NULL,
                    first_seen_at TIMESTAMP NOT NULL,
                    last_seen_at TIMESTAMP NOT NULL,
                    categories TEXT NOT NULL DEFAULT '[]',
                    occurrence_count INTEGER NOT NULL DEFAULT 1,
                    item_ids TEXT NOT NULL DEFAULT '[]'
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_topics_last_seen ON topics(last_seen_at)"
            )

    def get(self, key: str) -> TopicAggregate | None:
        with wal_connect(self.db_path, row_factory=True) as conn:
            row = conn.execute("SELECT * FROM topics WHERE topic_key = ?", (key,)).fetchone()
        return self._row_to_topic(row) if row else None

    def list_topics(self, category: str | None = None, limit: int | None = None) -> list[TopicAggregate]:
        query = "SELECT * FROM topics"
        params: list = []
        if category:
            query += " WHERE primary_category = ?"
            params.append(category)
        query += " ORDER BY occurrence_count DESC, last_seen_at DESC"
        if limit:
            query += " LIMIT ?"
            params.append(limit)
        with wal_connect(self.db_path, row_factory=True) as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_topic(r) for r in rows]

    def update(
        self,
        items: list[ExtractedItem],
        corrections: dict[str, ItemCorrection] | None = None,
    ) -> TopicUpdateStats:
        """Merge canonical items into their topics.

        Re-running with the same items is a no-op: items already recorded on
        a topic are skipped.
        """
        corrections = corrections or {}
        topics = {t.topic_key: t for t in self.list_topics()}
        touched: dict[str, TopicAggregate] = {}
        stats = TopicUpdateStats()

        for item in items:
            correction = corrections.get(item.id)
            if correction and correction.is_incorrect:
                stats.skipped_incorrect += 1
                continue

            title = effective_title(item, correction)
            categories = effective_categories(item, correction)
            key = topic_key(item.title)
            topic = topics.get(key)

            if topic is None:
                topic = TopicAggregate(
                    topic_key=key,
                    canonical_key=item.fingerprint,
                    display_title=canonical_title(stem_from_key(item.fingerprint), title),
                    primary_category=primary_category(categories),
                    first_seen_at=item.created_at,
                    last_seen_at=item.created_at,
                    categories=sorted({c for c in categories if c}),
                    occurrence_count=1,
                    item_ids=[item.id],
                )
                topics[key] = topic
                touched[key] = topic
                stats.created += 1
                continue

            if item.id in topic.item_ids:
                stats.skipped_existing += 1
                continue

            if topic.canonical_key != item.fingerprint:
                stats.collisions += 1
                logger.error(
                    "topics.collision",
                    topic_key=key,
                    existing=topic.canonical_key,
                    incoming=item.fingerprint,
                    item_id=item.id,
                )
            topic.add_mention(item.id, item.created_at, categories)
            if is_better_title(topic.display_title, title):
                topic.display_title = title
            touched[key] = topic
            stats.updated += 1

        if touched:
            self._save_all(list(touched.values()))
        stats.total = len(topics)
        logger.info(
            "topics.updated",
            created=stats.created,
            updated=stats.updated,
            skipped_incorrect=stats.skipped_incorrect,
            collisions=stats.collisions,
            total=stats.total,
        )
        return stats

    def _save_all(self, topics: list[TopicAggregate]):
        with wal_connect(self.db_path) as conn:
            conn.executemany(
                """INSERT OR REPLACE INTO topics
                   (topic_key, canonical_key, display_title, primary_category, first_seen_at,
                    last_seen_at, categories, occurrence_count, item_ids)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        t.topic_key,
                        t.canonical_key,
                        t.display_title,
                        t.primary_category,
                        t.first_seen_at.isoformat(),
                        t.last_seen_at.isoformat(),
                        dump_list(t.categories),
                        t.occurrence_count,
                        dump_list(t.item_ids),
                    )
                    for t in topics
                ],
            )

    @staticmethod
    def _row_to_topic(row: sqlite3.Row) -> TopicAggregate:
        return TopicAggregate(
            topic_key=row["topic_key"],
            canonical_key=row["canonical_key"],
            display_title=row["display_title"],
            primary_category=row["primary_category"],
            first_seen_at=from_iso(row["first_seen_at"]),
            last_seen_at=from_iso(row["last_seen_at"]),
            categories=load_list(row["categories"]),
            occurrence_count=row["occurrence_count"],
            item_ids=load_list(row["item_ids"]),
        )
