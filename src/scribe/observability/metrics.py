"""In-process metrics for the scribe controller.

Tracks:
  - Inference requests, failures by cause, and round-trip latency
  - Inline trigger activity (fired, suppressed, rejected, inserted)
  - Run interceptor outcomes

All state is held in a single process-global singleton and exported as a
plain dict via ``snapshot()``. Everything runs on one event loop, so the
counters are plain dict updates without locking.
"""

from __future__ import annotations

import math
import time
from bisect import bisect_left
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator

from scribe.config import settings


def deadline_buckets(deadline_ms: float, steps: int = 5) -> tuple[float, ...]:
    """Upper bounds halving down from *deadline_ms*, plus an overflow bucket.

    ``deadline_buckets(8000)`` gives ``(500, 1000, 2000, 4000, 8000, inf)``.
    """
    return tuple(deadline_ms / 2 ** n for n in range(steps - 1, -1, -1)) + (math.inf,)


@dataclass
class Histogram:
    """Latency counts bucketed against the request deadline.

    The last bucket holds samples slower than the deadline itself.
    """

    name: str
    bounds_ms: tuple[float, ...]
    counts: list[int] = field(init=False)
    total_ms: float = field(init=False, default=0.0)
    max_ms: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        self.counts = [0] * len(self.bounds_ms)

    def record(self, value_ms: float) -> None:
        self.counts[bisect_left(self.bounds_ms, value_ms)] += 1
        self.total_ms += value_ms
        self.max_ms = max(self.max_ms, value_ms)

    @property
    def count(self) -> int:
        return sum(self.counts)

    @property
    def over_deadline(self) -> int:
        return self.counts[-1]

    @property
    def mean_ms(self) -> float:
        n = self.count
        return self.total_ms / n if n else 0.0

    def percentile(self, p: float) -> float:
        """Upper bound of the bucket holding the p-th percentile sample.

        Samples in the overflow bucket report the slowest value seen.
        """
        n = self.count
        if n == 0:
            return 0.0
        rank = max(1, math.ceil(p / 100 * n))
        seen = 0
        for bound, hits in zip(self.bounds_ms, self.counts):
            seen += hits
            if seen >= rank:
                return self.max_ms if math.isinf(bound) else bound
        return self.max_ms

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "mean_ms": round(self.mean_ms, 2),
            "max_ms": round(self.max_ms, 2),
            "p50_ms": round(self.percentile(50), 2),
            "p95_ms": round(self.percentile(95), 2),
            "over_deadline": self.over_deadline,
        }

    def reset(self) -> None:
        self.counts = [0] * len(self.bounds_ms)
        self.total_ms = 0.0
        self.max_ms = 0.0


# ---------------------------------------------------------------------------
# MetricsCollector
# ---------------------------------------------------------------------------

class MetricsCollector:
    """Process-global metrics registry.

    Counters:
        inference_requests_total              Every call to the chat endpoint
        inference_failures_total[cause]       timeout / status / network
        trigger_fired_total                   Debounced triggers that ran
        trigger_suppressed_total[reason]      cooldown / no_code_above / invalid_code_above
        suggestions_total[verdict]            Validation outcomes + insertions
        runs_total[outcome]                   Run interceptor outcomes

    Histograms (milliseconds):
        inference_latency_ms                  One full request + stream read
    """

    def __init__(self) -> None:
        self._counters: dict[str, int] = defaultdict(int)
        self._labeled_counters: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._histograms: dict[str, Histogram] = {
            "inference_latency_ms": Histogram(
                "inference_latency_ms",
                deadline_buckets(settings.request_timeout_s * 1000),
            ),
        }
        self._started_at: float = time.monotonic()

    def inc(self, name: str, value: int = 1) -> None:
        """Increment a plain counter."""
        self._counters[name] += value

    def inc_labeled(self, name: str, label: str, value: int = 1) -> None:
        """Increment a labeled counter (e.g. inference_failures_total[timeout])."""
        self._labeled_counters[name][label] += value

    def record(self, histogram: str, value_ms: float) -> None:
        if histogram in self._histograms:
            self._histograms[histogram].record(value_ms)

    @contextmanager
    def timer(self, histogram: str) -> Iterator[None]:
        """Context manager that records elapsed ms, even on error."""
        t0 = time.monotonic()
        try:
            yield
        finally:
            self.record(histogram, (time.monotonic() - t0) * 1000)

    def counter(self, name: str, label: str | None = None) -> int:
        if label is None:
            return self._counters.get(name, 0)
        return self._labeled_counters.get(name, {}).get(label, 0)

    def histogram(self, name: str) -> Histogram:
        return self._histograms[name]

    # ------------------------------------------------------------------
    # Semantic helpers
    # ------------------------------------------------------------------

    def inference_failed(self, cause: str) -> None:
        self.inc_labeled("inference_failures_total", cause)

    def trigger_fired(self) -> None:
        self.inc("trigger_fired_total")

    def trigger_suppressed(self, reason: str) -> None:
        self.inc_labeled("trigger_suppressed_total", reason)

    def suggestion(self, verdict: str) -> None:
        self.inc_labeled("suggestions_total", verdict)

    def run_finished(self, outcome: str) -> None:
        self.inc_labeled("runs_total", outcome)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        return {
            "uptime_s": round(time.monotonic() - self._started_at, 1),
            "counters": dict(self._counters),
            "labeled_counters": {
                name: dict(labels) for name, labels in self._labeled_counters.items()
            },
            "histograms": {
                name: hist.to_dict() for name, hist in self._histograms.items()
            },
        }

    def reset_all(self) -> None:
        self._counters.clear()
        self._labeled_counters.clear()
        for hist in self._histograms.values():
            hist.reset()


_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get or create the singleton metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
