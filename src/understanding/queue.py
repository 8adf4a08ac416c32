"""Single-flight serial work queue around segment extraction.

Each (session, segment) key is processed at most once while it is queued
or in flight. Duplicate enqueues get the same future back instead of a
second LLM call. Items run one at a time in FIFO order; the drain task
exits when the queue is empty and a later enqueue starts a fresh one.
"""

import asyncio
import inspect
from collections import deque
from typing import Any, Awaitable, Callable

import structlog

from observability import metrics

from .extractor import SegmentWork
from .models import ExtractedItem

logger = structlog.get_logger()

ProcessFn = Callable[[SegmentWork], Awaitable[list[ExtractedItem]]]
CompletionFn = Callable[[SegmentWork, list[ExtractedItem]], Any]


class ExtractionQueue:
    def __init__(self, process: ProcessFn):
        self._process = process
        self._queue: deque[SegmentWork] = deque()
        self._pending: dict[str, asyncio.Future] = {}
        self._callbacks: dict[str, CompletionFn | None] = {}
        self._inflight_key: str | None = None
        self._running = False
        self._drain_task: asyncio.Task | None = None

    @property
    def pending_count(self) -> int:
        """Items waiting to start (the in-flight one is not counted)."""
        return len(self._queue)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def inflight_key(self) -> str | None:
        return self._inflight_key

    def enqueue(self, work: SegmentWork, on_complete: CompletionFn | None = None) -> asyncio.Future:
        """Queue a segment; returns a future resolving to its extracted items.

        Must be called from within a running event loop.
        """
        key = work.key
        existing = self._pending.get(key)
        if existing is not None:
            state = "already_inflight" if key == self._inflight_key else "already_queued"
            logger.info("understanding.queue.duplicate", key=key, state=state)
            metrics.counter("extraction.duplicates")
            return existing

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._pending[key] = future
        self._callbacks[key] = on_complete
        self._queue.append(work)
        logger.info("understanding.queue.enqueued", key=key, pending=len(self._queue))

        if not self._running:
            self._running = True
            self._drain_task = loop.create_task(self._drain())
        return future

    async def join(self):
        """Wait until the queue has drained and gone idle."""
        while self._drain_task is not None and not self._drain_task.done():
            await asyncio.shield(self._drain_task)

    async def _drain(self):
        logger.info("understanding.queue.started", pending=len(self._queue))
        processed = 0
        try:
            while self._queue:
                work = self._queue.popleft()
                await self._run_one(work)
                processed += 1
        finally:
            # only non-empty when the drain task was cancelled
            while self._queue:
                self._release(self._queue.popleft().key)
            self._running = False
            logger.info("understanding.queue.idle", processed=processed)

    def _release(self, key: str):
        """Drop a key so it can be enqueued again, cancelling whoever awaits it."""
        self._callbacks.pop(key, None)
        future = self._pending.pop(key, None)
        if future is not None and not future.done():
            future.cancel()

    async def _run_one(self, work: SegmentWork):
        key = work.key
        self._inflight_key = key
        items: list[ExtractedItem] = []
        logger.info("understanding.queue.processing", key=key, segment_index=work.segment_index)
        try:
            with metrics.timer("extraction.segment"):
                items = await self._process(work)
        except asyncio.CancelledError:
            logger.warning("understanding.queue.cancelled", key=key)
            self._release(key)
            raise
        except Exception as e:
            logger.error("understanding.queue.process_failed", key=key, error=str(e))
            metrics.counter("extraction.failures")
        finally:
            self._inflight_key = None

        metrics.counter("extraction.processed")
        future = self._pending.pop(key)
        callback = self._callbacks.pop(key, None)
        if callback is not None:
            try:
                result = callback(work, items)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                future.cancel()
                raise
            except Exception as e:
                logger.error("understanding.queue.callback_failed", key=key, error=str(e))

        logger.info("understanding.queue.done", key=key, items=len(items))
        if not future.done():
            future.set_result(items)
