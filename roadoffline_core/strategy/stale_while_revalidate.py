"""RoadOffline Stale While Revalidate - Serve Cached, Refresh in Background.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from roadoffline_core.http.message import Request, Response, offline_response
from roadoffline_core.metrics.collector import MetricsCollector
from roadoffline_core.network.fetcher import Fetcher
from roadoffline_core.routing.router import StrategyName
from roadoffline_core.strategy.background import BackgroundTasks
from roadoffline_core.strategy.base import GenerationProvider, Strategy, StrategyConfig

logger = logging.getLogger(__name__)


class StaleWhileRevalidate(Strategy):
    """Stale-while-revalidate strategy.

    Every request starts a background fetch that refreshes the stored
    entry. A cached entry is returned without waiting for it; on a miss
    the caller waits for that same fetch. The cache is therefore only
    eventually up to date once ``handle`` returns.
    """

    name = StrategyName.STALE_WHILE_REVALIDATE

    def __init__(
        self,
        cache: GenerationProvider,
        fetcher: Fetcher,
        config: Optional[StrategyConfig] = None,
        metrics: Optional[MetricsCollector] = None,
        tasks: Optional[BackgroundTasks] = None,
    ):
        super().__init__(cache, fetcher, config, metrics)
        self.tasks = tasks or BackgroundTasks()

    async def handle(self, request: Request) -> Response:
        cached = await self._match(request)
        revalidation = self.tasks.spawn(
            self._revalidate(request),
            name=f"revalidate {request.url}",
        )

        if cached is not None:
            return cached

        # Shielded so that a cancelled caller does not cancel the refresh.
        response = await asyncio.shield(revalidation)
        if response is None:
            self.metrics.record_fallback()
            return offline_response()
        return response

    async def _revalidate(self, request: Request) -> Optional[Response]:
        response = await self._fetch(request)
        if response is None:
            self.metrics.record_revalidation_failure()
            return None

        if response.ok:
            await self._store(request, response)
        self.metrics.record_revalidation()
        return response


__all__ = ["StaleWhileRevalidate"]
