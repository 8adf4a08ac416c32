"""Understanding pipeline: orchestrates queue -> extract -> item store -> topics."""

import asyncio
import re
import sqlite3

import structlog

from observability import metrics

from .extractor import ItemExtractor, SegmentWork
from .models import ExtractedItem, TopicUpdateStats
from .queue import ExtractionQueue
from .store import ExtractionStore
from .topic_store import TopicStore

logger = structlog.get_logger()

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def prior_context(text: str, max_sentences: int = 3, max_chars: int = 400) -> str:
    """Tail of the previous segment, handed to the extractor as context."""
    sentences = [s for s in _SENTENCE_END.split(text.strip()) if s]
    tail = " ".join(sentences[-max_sentences:])
    return tail[-max_chars:]


def build_segments(session_id: str, transcript: str, prior_context_chars: int = 400) -> list[SegmentWork]:
    """Split a session transcript on blank lines into ordered segment work."""
    chunks = [c.strip() for c in re.split(r"\n\s*\n", transcript or "") if c.strip()]
    segments = []
    previous = None
    for index, chunk in enumerate(chunks):
        segments.append(
            SegmentWork(
                session_id=session_id,
                segment_id=f"seg{index:03d}",
                segment_index=index,
                transcript_text=chunk,
                prior_context_text=(
                    prior_context(previous, max_chars=prior_context_chars) if previous else None
                ),
            )
        )
        previous = chunk
    return segments


class UnderstandingPipeline:
    """Runs segments through the extraction queue and persists the results.

    Topic updates are read-modify-write on shared rows, so every write
    triggered by a completed segment goes through one lock.
    """

    def __init__(
        self,
        item_store: ExtractionStore,
        topic_store: TopicStore,
        extractor: ItemExtractor | None = None,
    ):
        self.item_store = item_store
        self.topic_store = topic_store
        self.extractor = extractor or ItemExtractor()
        self.queue = ExtractionQueue(self.extractor.extract_segment)
        self._write_lock = asyncio.Lock()

    def submit(self, work: SegmentWork) -> asyncio.Future:
        """Queue a segment; duplicates share the first submission's future."""
        return self.queue.enqueue(work, on_complete=self._persist)

    async def process_segment(self, work: SegmentWork) -> list[ExtractedItem]:
        return await self.submit(work)

    async def process_session(
        self, session_id: str, transcript: str, prior_context_chars: int = 400
    ) -> list[ExtractedItem]:
        segments = build_segments(session_id, transcript, prior_context_chars)
        futures = [self.submit(work) for work in segments]
        results = await asyncio.gather(*futures)
        return [item for items in results for item in items]

    async def rebuild_topics(self) -> TopicUpdateStats:
        """Re-apply every stored item to the topic store (idempotent)."""
        async with self._write_lock:
            return self.topic_store.update(
                self.item_store.list_items(), self.item_store.load_corrections()
            )

    async def _persist(self, work: SegmentWork, items: list[ExtractedItem]):
        if not items:
            return

        async with self._write_lock:
            try:
                self.item_store.save_items(items)
            except sqlite3.Error as e:
                logger.error("understanding.items_save_failed", key=work.key, error=str(e))
                metrics.counter("understanding.save_failures")
                return

            try:
                stats = self.topic_store.update(items, self.item_store.load_corrections())
            except sqlite3.Error as e:
                logger.error("understanding.topics_save_failed", key=work.key, error=str(e))
                metrics.counter("understanding.save_failures")
                return

        metrics.counter("understanding.items_saved", len(items))
        logger.info(
            "understanding.segment_processed",
            key=work.key,
            items=len(items),
            topics_created=stats.created,
            topics_updated=stats.updated,
            collisions=stats.collisions,
        )
