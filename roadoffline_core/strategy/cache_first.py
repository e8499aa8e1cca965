"""RoadOffline Cache First - Serve from Cache, Fall Back to Network.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging

from roadoffline_core.http.message import Request, Response, offline_response
from roadoffline_core.routing.router import StrategyName
from roadoffline_core.strategy.base import Strategy

logger = logging.getLogger(__name__)


class CacheFirst(Strategy):
    """Cache-first strategy.

    Best for data and third-party assets that rarely change. A hit never
    touches the network.
    """

    name = StrategyName.CACHE_FIRST

    async def handle(self, request: Request) -> Response:
        cached = await self._match(request)
        if cached is not None:
            return cached

        response = await self._fetch(request)
        if response is None:
            self.metrics.record_fallback()
            return offline_response()

        if self._is_cacheable(response):
            await self._store(request, response)
        return response


__all__ = ["CacheFirst"]
