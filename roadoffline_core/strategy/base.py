"""RoadOffline Strategy - Base Caching Strategy.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from roadoffline_core.cache.storage import GenerationHandle
from roadoffline_core.exceptions import NetworkFailure, StoreFailure
from roadoffline_core.http.message import Request, Response
from roadoffline_core.metrics.collector import MetricsCollector
from roadoffline_core.network.fetcher import Fetcher
from roadoffline_core.routing.router import StrategyName

logger = logging.getLogger(__name__)

# Returns the handle of the generation currently serving, if any.
GenerationProvider = Callable[[], Optional[GenerationHandle]]


@dataclass
class StrategyConfig:
    """Strategy configuration.

    Attributes:
        offline_url: Document served to navigations when all else fails
        root_url: Second-choice document for navigations
        cache_error_responses: Also store non-2xx network responses under
            cache-first and network-first. Off by default: only 2xx
            responses are stored.
    """

    offline_url: str = "/offline.html"
    root_url: str = "/"
    cache_error_responses: bool = False


class Strategy(ABC):
    """A caching algorithm.

    Strategies never raise for network or store trouble. Transport
    failures become fallbacks; store failures are logged and the request
    continues on the network path.
    """

    name: StrategyName

    def __init__(
        self,
        cache: GenerationProvider,
        fetcher: Fetcher,
        config: Optional[StrategyConfig] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """Initialize strategy.

        Args:
            cache: Provider of the active generation handle
            fetcher: Network fetch capability
            config: Strategy configuration
            metrics: Metrics collector
        """
        self._cache = cache
        self.fetcher = fetcher
        self.config = config or StrategyConfig()
        self.metrics = metrics or MetricsCollector()

    @abstractmethod
    async def handle(self, request: Request) -> Response:
        """Produce a response for an intercepted request."""
        pass

    async def _match(self, request: Request) -> Optional[Response]:
        """Look up the active generation, treating store trouble as a miss."""
        handle = self._cache()
        if handle is None:
            self.metrics.record_miss()
            return None

        try:
            cached = await handle.match(request)
        except (StoreFailure, OSError) as e:
            logger.warning(f"Cache read failed for {request.url}: {e}")
            self.metrics.record_store_failure()
            cached = None

        if cached is None:
            self.metrics.record_miss()
        else:
            self.metrics.record_hit()
        return cached

    async def _fetch(self, request: Request) -> Optional[Response]:
        """Fetch from the network.

        Returns:
            The response, or None on transport failure
        """
        try:
            response = await self.fetcher.fetch(request)
        except NetworkFailure as e:
            logger.info(f"Network unavailable for {request.url}: {e.reason}")
            self.metrics.record_network_failure()
            return None

        self.metrics.record_network()
        return response

    def _is_cacheable(self, response: Response) -> bool:
        return response.ok or self.config.cache_error_responses

    async def _store(self, request: Request, response: Response) -> None:
        """Write a copy of a network response into the active generation."""
        handle = self._cache()
        if handle is None:
            return

        try:
            await handle.put(request, response)
        except (StoreFailure, OSError) as e:
            logger.warning(f"Cache write failed for {request.url}: {e}")
            self.metrics.record_store_failure()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


__all__ = ["Strategy", "StrategyConfig", "GenerationProvider"]
