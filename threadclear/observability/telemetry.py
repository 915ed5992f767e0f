"""
In-process telemetry for parse, taxonomy and insight operations.

Events go to the structured log. Counters and latency samples stay in a
process-local registry that /health and the tests read back; nothing is
shipped to an external sink.
"""

from __future__ import annotations

import contextlib
import logging
import threading
import time
from collections import Counter, defaultdict
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger("threadclear.telemetry")

_EMPTY_STATS: dict[str, float] = {"count": 0, "min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p95": 0.0}


class _Registry:
    """Counters and latency samples shared by request threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.counts: Counter[str] = Counter()
        self.samples: defaultdict[str, list[float]] = defaultdict(list)

    def bump(self, name: str, increment: int) -> int:
        with self._lock:
            self.counts[name] += increment
            return self.counts[name]

    def record(self, name: str, seconds: float) -> None:
        with self._lock:
            self.samples[name].append(seconds)

    def snapshot(self, name: str) -> list[float]:
        with self._lock:
            return sorted(self.samples.get(name, ()))

    def clear(self) -> None:
        with self._lock:
            self.counts.clear()
            self.samples.clear()


_registry = _Registry()


def _metric_key(metric_name: str) -> str:
    # Latencies are stored in seconds; names already carrying a unit are kept.
    if metric_name.endswith(("_ms", ".seconds")):
        return metric_name
    return metric_name + ".seconds"


def log_event(event_name: str, **fields: Any) -> None:
    """
    Structured info-level log line. Callers pass counts and ids, never message text.
    """
    logger.info("event=%s %s", event_name, fields)


def counter(name: str, increment: int = 1) -> int:
    """Add to a named counter and return its new value."""
    value = _registry.bump(name, increment)
    logger.debug("counter=%s value=%s", name, value)
    return value


def get_counter(name: str) -> int:
    return _registry.counts.get(name, 0)


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """
    Record how long the block took, even when it raises.

    Usage:
        with time_block("parse.conversation"):
            capsule = assemble(text)
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - started
        key = _metric_key(metric_name)
        _registry.record(key, elapsed)
        logger.debug("timing=%s seconds=%.6f", key, elapsed)


def get_latency_stats(metric_name: str) -> dict[str, float]:
    """count, min, max, avg, p50 and p95 for a timed block; zeros when never timed."""
    samples = _registry.snapshot(_metric_key(metric_name))
    if not samples:
        return dict(_EMPTY_STATS)

    n = len(samples)

    def percentile(fraction: float) -> float:
        return samples[min(int(n * fraction), n - 1)]

    return {
        "count": n,
        "min": samples[0],
        "max": samples[-1],
        "avg": sum(samples) / n,
        "p50": percentile(0.50),
        "p95": percentile(0.95),
    }


def reset() -> None:
    """Drop all counters and samples. Tests call this between cases."""
    _registry.clear()
