"""Metrics module - Request handling metrics."""

from roadoffline_core.metrics.collector import MetricsCollector, OfflineMetrics, Timer

__all__ = ["MetricsCollector", "OfflineMetrics", "Timer"]
