"""Tests for the single-flight extraction queue."""

import asyncio

import pytest

from observability import metrics
from understanding.extractor import SegmentWork
from understanding.queue import ExtractionQueue


def _work(segment_id="seg000", index=0, text="hello"):
    return SegmentWork("s1", segment_id, index, text)


class TestExtractionQueue:
    @pytest.mark.asyncio
    async def test_duplicate_enqueue_processed_once(self):
        calls = []
        completed = []

        async def process(work):
            calls.append(work.key)
            await asyncio.sleep(0)
            return ["item"]

        queue = ExtractionQueue(process)
        first = queue.enqueue(_work(), on_complete=lambda w, items: completed.append(w.key))
        second = queue.enqueue(_work(), on_complete=lambda w, items: completed.append("dup"))

        assert first is second
        assert await first == ["item"]
        await queue.join()
        assert calls == ["s1_seg000"]
        assert completed == ["s1_seg000"]
        assert metrics.get("extraction.duplicates") == 1

    @pytest.mark.asyncio
    async def test_duplicate_while_inflight(self):
        started = asyncio.Event()
        release = asyncio.Event()
        calls = []

        async def process(work):
            calls.append(work.key)
            started.set()
            await release.wait()
            return []

        queue = ExtractionQueue(process)
        first = queue.enqueue(_work())
        await started.wait()
        assert queue.inflight_key == "s1_seg000"

        again = queue.enqueue(_work())
        assert again is first
        release.set()
        await first
        assert calls == ["s1_seg000"]

    @pytest.mark.asyncio
    async def test_fifo_and_serial(self):
        order = []
        active = 0
        peak = 0

        async def process(work):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            order.append(work.segment_index)
            await asyncio.sleep(0)
            active -= 1
            return []

        queue = ExtractionQueue(process)
        futures = [queue.enqueue(_work(f"seg{i:03d}", i)) for i in range(3)]
        assert queue.pending_count == 3
        await asyncio.gather(*futures)
        await queue.join()

        assert order == [0, 1, 2]
        assert peak == 1
        assert not queue.is_running
        assert queue.pending_count == 0

    @pytest.mark.asyncio
    async def test_restarts_after_idle(self):
        async def process(work):
            return [work.key]

        queue = ExtractionQueue(process)
        assert await queue.enqueue(_work("seg000", 0)) == ["s1_seg000"]
        await queue.join()
        assert not queue.is_running

        assert await queue.enqueue(_work("seg001", 1)) == ["s1_seg001"]

    @pytest.mark.asyncio
    async def test_reprocess_after_completion(self):
        calls = []

        async def process(work):
            calls.append(work.key)
            return []

        queue = ExtractionQueue(process)
        await queue.enqueue(_work())
        await queue.enqueue(_work())
        assert calls == ["s1_seg000", "s1_seg000"]

    @pytest.mark.asyncio
    async def test_process_failure_yields_empty(self):
        async def process(work):
            raise RuntimeError("boom")

        results = []
        queue = ExtractionQueue(process)
        future = queue.enqueue(_work(), on_complete=lambda w, items: results.append(items))
        assert await future == []
        assert results == [[]]
        assert metrics.get("extraction.failures") == 1

    @pytest.mark.asyncio
    async def test_async_callback_awaited_before_result(self):
        seen = []

        async def process(work):
            return ["a"]

        async def on_complete(work, items):
            await asyncio.sleep(0)
            seen.append(items)

        queue = ExtractionQueue(process)
        await queue.enqueue(_work(), on_complete=on_complete)
        assert seen == [["a"]]

    @pytest.mark.asyncio
    async def test_callback_error_does_not_block(self):
        async def process(work):
            return ["a"]

        def on_complete(work, items):
            raise ValueError("bad callback")

        queue = ExtractionQueue(process)
        assert await queue.enqueue(_work(), on_complete=on_complete) == ["a"]

    @pytest.mark.asyncio
    async def test_cancelled_drain_releases_keys(self):
        started = asyncio.Event()
        block = True
        calls = []

        async def process(work):
            calls.append(work.key)
            started.set()
            if block:
                await asyncio.Event().wait()
            return ["done"]

        queue = ExtractionQueue(process)
        inflight = queue.enqueue(_work("seg000", 0))
        waiting = queue.enqueue(_work("seg001", 1))
        await started.wait()

        queue._drain_task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await queue._drain_task

        assert inflight.cancelled()
        assert waiting.cancelled()
        assert not queue.is_running
        assert queue.pending_count == 0
        assert queue.inflight_key is None

        block = False
        retry = queue.enqueue(_work("seg000", 0))
        assert retry is not inflight
        assert await retry == ["done"]
        assert calls == ["s1_seg000", "s1_seg000"]
