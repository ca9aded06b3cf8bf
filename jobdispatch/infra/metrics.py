# jobdispatch/infra/metrics.py
"""
In-process metrics: labelled counters and latency histograms.

Keys are rendered as ``name{label=value,...}`` with labels sorted, so
``provider_fallbacks_total{provider=weather,reason=timeout}`` is the same
series no matter the keyword order at the call site.  Histograms keep a
bounded window of recent observations; ``count`` and ``sum`` are
lifetime totals.  Snapshot via ``GET /metrics``.
"""
from __future__ import annotations

import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from threading import Lock

from jobdispatch.infra.logging_config import get_logger

logger = get_logger(__name__)

HISTOGRAM_WINDOW = 2048


@dataclass
class Counter:
    value: int = 0

    def inc(self, amount: int = 1) -> None:
        self.value += amount


@dataclass
class Histogram:
    """Recent-window latency distribution (seconds)"""
    window: deque = field(default_factory=lambda: deque(maxlen=HISTOGRAM_WINDOW))
    count: int = 0
    total: float = 0.0

    def observe(self, value: float) -> None:
        self.window.append(value)
        self.count += 1
        self.total += value

    def get_stats(self) -> dict:
        if not self.window:
            return {"count": 0, "sum": 0.0, "min": 0, "max": 0, "p50": 0, "p95": 0, "p99": 0}

        ordered = sorted(self.window)
        last = len(ordered) - 1

        def pct(p: float) -> float:
            return ordered[min(int(len(ordered) * p), last)]

        return {
            "count": self.count,
            "sum": round(self.total, 6),
            "min": ordered[0],
            "max": ordered[-1],
            "p50": pct(0.50),
            "p95": pct(0.95),
            "p99": pct(0.99),
        }


class MetricsCollector:
    """Thread-safe registry of counters and histograms keyed by name + labels"""

    def __init__(self):
        self._counters: dict[str, Counter] = defaultdict(Counter)
        self._histograms: dict[str, Histogram] = defaultdict(Histogram)
        self._lock = Lock()

    def inc_counter(self, name: str, amount: int = 1, labels: dict | None = None) -> None:
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key].inc(amount)

    def observe_histogram(self, name: str, value: float, labels: dict | None = None) -> None:
        key = self._make_key(name, labels)
        with self._lock:
            self._histograms[key].observe(value)

    def get_metrics(self) -> dict:
        """Point-in-time snapshot of every series"""
        with self._lock:
            return {
                "counters": {k: c.value for k, c in self._counters.items()},
                "histograms": {k: h.get_stats() for k, h in self._histograms.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._histograms.clear()
        logger.debug("Metrics reset")

    @staticmethod
    def _make_key(name: str, labels: dict | None) -> str:
        if not labels:
            return name
        rendered = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{rendered}}}"


_metrics = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    return _metrics


def inc_counter(name: str, amount: int = 1, **labels) -> None:
    _metrics.inc_counter(name, amount, labels or None)


def observe_histogram(name: str, value: float, **labels) -> None:
    _metrics.observe_histogram(name, value, labels or None)


class Timer:
    """Context manager recording elapsed wall time into a histogram, even on error"""

    def __init__(self, metric_name: str, **labels):
        self.metric_name = metric_name
        self.labels = labels
        self._started: float | None = None

    def __enter__(self) -> "Timer":
        self._started = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._started is not None:
            observe_histogram(self.metric_name, time.monotonic() - self._started, **self.labels)


class DispatchMetrics:
    """Named metrics emitted by the dispatch path"""

    @staticmethod
    def notification_created(notification_type: str, priority: str) -> None:
        inc_counter("dispatch_notifications_created_total", type=notification_type, priority=priority)

    @staticmethod
    def persist_failed() -> None:
        inc_counter("dispatch_persist_failures_total")

    @staticmethod
    def provider_fallback(provider: str, reason: str) -> None:
        inc_counter("provider_fallbacks_total", provider=provider, reason=reason)

    @staticmethod
    def provider_skipped(provider: str) -> None:
        inc_counter("provider_skipped_total", provider=provider)

    @staticmethod
    def realtime_push(status: str) -> None:
        inc_counter("realtime_push_total", status=status)

    @staticmethod
    def database_error(operation: str) -> None:
        inc_counter("database_errors_total", operation=operation)

    @staticmethod
    def track_provider_latency(provider: str) -> Timer:
        return Timer("provider_latency_seconds", provider=provider)

    @staticmethod
    def track_dispatch_time() -> Timer:
        return Timer("dispatch_processing_seconds")
