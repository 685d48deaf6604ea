from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional


@dataclass
class PerfStat:
    count: int = 0
    slow: int = 0
    worst_ms: float = 0.0


class PerfTracer:
    """Latency of the per-frame paths (hover picks, scene rebuilds).

    Every sample lands in ``stats``; only samples slower than
    ``threshold_s`` are logged.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, threshold_s: float = 0.010):
        self.logger = logger or logging.getLogger("stackview.perf")
        self.threshold_s = float(threshold_s)
        self.stats: Dict[str, PerfStat] = {}

    def record(self, tag: str, dt: float, detail: str = "") -> float:
        stat = self.stats.setdefault(tag, PerfStat())
        stat.count += 1
        ms = float(dt) * 1000.0
        stat.worst_ms = max(stat.worst_ms, ms)
        if dt > self.threshold_s:
            stat.slow += 1
            self.logger.info("%s took %.2f ms%s", tag, ms, f" ({detail})" if detail else "")
        return float(dt)

    @contextmanager
    def span(self, tag: str) -> Iterator[Dict[str, Any]]:
        """Time the block; keys put into the yielded dict are logged with a slow sample."""
        detail: Dict[str, Any] = {}
        t0 = time.perf_counter()
        try:
            yield detail
        finally:
            text = " ".join(f"{k}={v}" for k, v in detail.items())
            self.record(tag, time.perf_counter() - t0, text)

    def reset(self) -> None:
        self.stats.clear()


DEFAULT_TRACER = PerfTracer()
