"""Observability: pipeline counters, timers and run summaries."""

import time
from contextlib import contextmanager
from typing import Any

import structlog

logger = structlog.get_logger().bind(source="observability")


class Metrics:
    """In-process counters and timers for the understanding pipeline."""

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._timers: dict[str, list[float]] = {}

    def counter(self, name: str, value: int = 1):
        self._counters[name] = self._counters.get(name, 0) + value

    def get(self, name: str) -> int:
        return self._counters.get(name, 0)

    @contextmanager
    def timer(self, name: str):
        """Time a block; the duration is recorded even if it raises."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self._timers.setdefault(name, []).append(time.perf_counter() - start)

    def summary(self) -> dict[str, Any]:
        timers = {}
        for name, durations in self._timers.items():
            timers[name] = {
                "count": len(durations),
                "avg_ms": round(1000 * sum(durations) / len(durations), 2),
                "max_ms": round(1000 * max(durations), 2),
            }
        return {"counters": dict(self._counters), "timers": timers}

    def reset(self):
        self._counters.clear()
        self._timers.clear()


# Module-level singleton
metrics = Metrics()


def log_run_summary(command: str):
    """Emit the metrics collected during one CLI invocation."""
    summary = metrics.summary()
    if summary["counters"] or summary["timers"]:
        logger.info("run_summary", command=command, **summary)
