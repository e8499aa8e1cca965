"""RoadOffline Network First - Prefer Fresh Documents.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from typing import Optional

from roadoffline_core.http.message import Request, Response, offline_response
from roadoffline_core.routing.router import StrategyName
from roadoffline_core.strategy.base import Strategy

logger = logging.getLogger(__name__)


class NetworkFirst(Strategy):
    """Network-first strategy.

    Best for documents. When the network is unreachable the fallback
    order is: cached copy of the request, then (navigations only) the
    offline document, then the root document, then a synthetic 503.
    """

    name = StrategyName.NETWORK_FIRST

    async def handle(self, request: Request) -> Response:
        response = await self._fetch(request)
        if response is not None:
            if self._is_cacheable(response):
                await self._store(request, response)
            return response

        self.metrics.record_fallback()
        return await self._fallback(request) or offline_response()

    async def _fallback(self, request: Request) -> Optional[Response]:
        cached = await self._match(request)
        if cached is not None or not request.is_navigation:
            return cached

        for url in (self.config.offline_url, self.config.root_url):
            document = await self._match(Request.for_url(url, base=request.url))
            if document is not None:
                logger.debug(f"Serving {url} for offline navigation to {request.url}")
                return document

        return None


__all__ = ["NetworkFirst"]
