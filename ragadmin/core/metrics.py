# Copyright (c) 2026 RagAdmin Contributors. All Rights Reserved.

"""
Metrics — In-memory counters and latency windows.

Names used across the service:
  cache_hit / cache_miss / cache_invalidate
  job_started:{kind} / job_succeeded:{kind} / job_failed:{kind}
  job_duration_ms:{kind}
  signal_ok / signal_failed
"""

from __future__ import annotations

import time
from collections import defaultdict, deque
from contextlib import contextmanager
from typing import Any, Deque, Dict, Iterator

_WINDOW = 500


class Metrics:
    """Counters plus a bounded window of observations per name."""

    def __init__(self):
        self._counters: Dict[str, int] = defaultdict(int)
        self._windows: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=_WINDOW))
        self._start_time = time.time()

    def inc(self, name: str, amount: int = 1) -> None:
        self._counters[name] += amount

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def observe(self, name: str, value: float) -> None:
        self._windows[name].append(value)

    @contextmanager
    def timed(self, name: str) -> Iterator[None]:
        """Observe the wall time of the block in milliseconds."""
        start = time.monotonic()
        try:
            yield
        finally:
            self.observe(name, (time.monotonic() - start) * 1000)

    def reset(self) -> None:
        self._counters.clear()
        self._windows.clear()

    def snapshot(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "uptime_seconds": round(time.time() - self._start_time, 1),
            "counters": dict(self._counters),
        }
        for name, values in self._windows.items():
            if values:
                result[f"latency_{name}"] = {
                    "count": len(values),
                    "avg": round(sum(values) / len(values), 2),
                    "max": round(max(values), 2),
                }
        return result


# Global singleton
ops_metrics = Metrics()
