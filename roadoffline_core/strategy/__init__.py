"""Strategy module - Caching algorithms."""

from typing import Dict, Optional

from roadoffline_core.metrics.collector import MetricsCollector
from roadoffline_core.network.fetcher import Fetcher
from roadoffline_core.routing.router import StrategyName
from roadoffline_core.strategy.background import BackgroundTasks
from roadoffline_core.strategy.base import GenerationProvider, Strategy, StrategyConfig
from roadoffline_core.strategy.cache_first import CacheFirst
from roadoffline_core.strategy.network_first import NetworkFirst
from roadoffline_core.strategy.stale_while_revalidate import StaleWhileRevalidate


def build_strategies(
    cache: GenerationProvider,
    fetcher: Fetcher,
    config: Optional[StrategyConfig] = None,
    metrics: Optional[MetricsCollector] = None,
    tasks: Optional[BackgroundTasks] = None,
) -> Dict[StrategyName, Strategy]:
    """Build one instance of every strategy sharing the same collaborators."""
    metrics = metrics or MetricsCollector()
    return {
        StrategyName.CACHE_FIRST: CacheFirst(cache, fetcher, config, metrics),
        StrategyName.NETWORK_FIRST: NetworkFirst(cache, fetcher, config, metrics),
        StrategyName.STALE_WHILE_REVALIDATE: StaleWhileRevalidate(
            cache, fetcher, config, metrics, tasks
        ),
    }


__all__ = [
    "Strategy",
    "StrategyConfig",
    "GenerationProvider",
    "BackgroundTasks",
    "CacheFirst",
    "NetworkFirst",
    "StaleWhileRevalidate",
    "build_strategies",
]
