"""RoadOffline Metrics Collector - Request Handling Metrics.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass, fields
from typing import Any, Callable, Deque, Dict, List

logger = logging.getLogger(__name__)


@dataclass
class OfflineMetrics:
    """Snapshot of request handling metrics.

    Attributes:
        hits: Responses served from cache
        misses: Cache lookups that found nothing
        network_fetches: Network fetches that returned a response
        network_failures: Network fetches that failed at transport level
        fallbacks: Responses served from a fallback (cache, offline page, 503)
        bypassed: Requests that were not intercepted
        revalidations: Background revalidations that completed
        revalidation_failures: Background revalidations that failed
        store_failures: Store operations that failed during a request
        latency_avg_ms: Mean handling latency
        latency_p50_ms: Median handling latency
        latency_p99_ms: 99th percentile handling latency
    """

    hits: int = 0
    misses: int = 0
    network_fetches: int = 0
    network_failures: int = 0
    fallbacks: int = 0
    bypassed: int = 0
    revalidations: int = 0
    revalidation_failures: int = 0
    store_failures: int = 0
    latency_avg_ms: float = 0.0
    latency_p50_ms: float = 0.0
    latency_p99_ms: float = 0.0

    @property
    def hit_rate(self) -> float:
        """Share of cache lookups that found an entry."""
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["hit_rate"] = self.hit_rate
        return data


# Counter fields, in export order.
COUNTERS = tuple(f.name for f in fields(OfflineMetrics) if f.type in (int, "int"))


def _percentile(sorted_samples: List[float], q: float) -> float:
    if not sorted_samples:
        return 0.0
    return sorted_samples[min(int(len(sorted_samples) * q), len(sorted_samples) - 1)]


class MetricsCollector:
    """Thread-safe counters and latency samples for one worker.

    Example:
        metrics = MetricsCollector()
        with Timer(metrics):
            response = await strategy.handle(request)
        print(metrics.to_prometheus())
    """

    def __init__(self, max_latency_samples: int = 10000):
        """Initialize collector.

        Args:
            max_latency_samples: Most recent samples kept for percentiles
        """
        self._lock = threading.RLock()
        self._counters: Dict[str, int] = dict.fromkeys(COUNTERS, 0)
        self._latencies: Deque[float] = deque(maxlen=max_latency_samples)
        self._exporters: List[Callable[[OfflineMetrics], None]] = []

    def incr(self, counter: str, amount: int = 1) -> None:
        """Increment a counter by name.

        Raises:
            KeyError: For an unknown counter
        """
        with self._lock:
            self._counters[counter] += amount

    def record_hit(self) -> None:
        self.incr("hits")

    def record_miss(self) -> None:
        self.incr("misses")

    def record_network(self) -> None:
        self.incr("network_fetches")

    def record_network_failure(self) -> None:
        self.incr("network_failures")

    def record_fallback(self) -> None:
        self.incr("fallbacks")

    def record_bypass(self) -> None:
        self.incr("bypassed")

    def record_revalidation(self) -> None:
        self.incr("revalidations")

    def record_revalidation_failure(self) -> None:
        self.incr("revalidation_failures")

    def record_store_failure(self) -> None:
        self.incr("store_failures")

    def record_latency(self, ms: float) -> None:
        with self._lock:
            self._latencies.append(ms)

    def get_metrics(self) -> OfflineMetrics:
        """Take a consistent snapshot."""
        with self._lock:
            counters = dict(self._counters)
            samples = sorted(self._latencies)

        return OfflineMetrics(
            **counters,
            latency_avg_ms=sum(samples) / len(samples) if samples else 0.0,
            latency_p50_ms=_percentile(samples, 0.50),
            latency_p99_ms=_percentile(samples, 0.99),
        )

    def reset(self) -> None:
        with self._lock:
            self._counters = dict.fromkeys(COUNTERS, 0)
            self._latencies.clear()

    def add_exporter(self, exporter: Callable[[OfflineMetrics], None]) -> "MetricsCollector":
        """Register a callable that receives snapshots on ``export()``.

        Returns:
            Self for chaining
        """
        self._exporters.append(exporter)
        return self

    def export(self) -> None:
        """Push one snapshot to every exporter. Exporter errors are logged."""
        snapshot = self.get_metrics()
        for exporter in self._exporters:
            try:
                exporter(snapshot)
            except Exception as e:
                logger.error(f"Metrics exporter {exporter!r} failed: {e}")

    def to_prometheus(self) -> str:
        """Render the current snapshot in Prometheus text exposition format."""
        snapshot = self.get_metrics()
        lines: List[str] = []

        for name in COUNTERS:
            metric = f"offline_{name}_total"
            lines.append(f"# TYPE {metric} counter")
            lines.append(f"{metric} {getattr(snapshot, name)}")

        gauges = {
            "offline_hit_rate": f"{snapshot.hit_rate:.4f}",
            "offline_latency_avg_ms": f"{snapshot.latency_avg_ms:.2f}",
            "offline_latency_p50_ms": f"{snapshot.latency_p50_ms:.2f}",
            "offline_latency_p99_ms": f"{snapshot.latency_p99_ms:.2f}",
        }
        for metric, value in gauges.items():
            lines.append(f"# TYPE {metric} gauge")
            lines.append(f"{metric} {value}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        snapshot = self.get_metrics()
        return f"MetricsCollector(hits={snapshot.hits}, misses={snapshot.misses})"


class Timer:
    """Records the duration of a ``with`` block as one latency sample."""

    def __init__(self, collector: MetricsCollector):
        self.collector = collector
        self.elapsed_ms: float = 0.0
        self._started = 0.0

    def __enter__(self) -> "Timer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.elapsed_ms = (time.perf_counter() - self._started) * 1000
        self.collector.record_latency(self.elapsed_ms)


__all__ = ["MetricsCollector", "OfflineMetrics", "Timer", "COUNTERS"]
