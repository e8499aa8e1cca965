"""RoadOffline Worker - Request Interception Entry Point.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from roadoffline_core.cache.storage import CacheStorage
from roadoffline_core.config import WorkerConfig
from roadoffline_core.control.channel import ControlChannel
from roadoffline_core.http.message import Request, Response
from roadoffline_core.lifecycle.manager import LifecycleManager
from roadoffline_core.metrics.collector import MetricsCollector, Timer
from roadoffline_core.network.fetcher import Fetcher, HttpxFetcher
from roadoffline_core.routing.router import Router
from roadoffline_core.store.backend import StorageBackend
from roadoffline_core.store.memory import MemoryStore
from roadoffline_core.strategy import BackgroundTasks, build_strategies

logger = logging.getLogger(__name__)


class OfflineWorker:
    """Wires router, strategies, lifecycle and control channel together.

    Example:
        async with OfflineWorker(WorkerConfig(scope="https://app.example/"),
                                 store=FileStore("/var/cache/app")) as worker:
            await worker.install()
            response = await worker.handle_fetch(Request("https://app.example/js/main.js"))
    """

    def __init__(
        self,
        config: Optional[WorkerConfig] = None,
        store: Optional[StorageBackend] = None,
        fetcher: Optional[Fetcher] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """Initialize worker.

        Args:
            config: Worker configuration
            store: Storage backend (in-memory by default)
            fetcher: Network fetch capability (httpx by default)
            metrics: Metrics collector
        """
        self.config = config or WorkerConfig()
        self.storage = CacheStorage(store or MemoryStore(self.config.storage))
        self.fetcher = fetcher or HttpxFetcher(timeout=self.config.network_timeout)
        self.metrics = metrics or MetricsCollector()
        self.tasks = BackgroundTasks()

        self.router = Router(self.config.router)
        self.lifecycle = LifecycleManager(self.storage, self.fetcher, self.config)
        self.control = ControlChannel(self.lifecycle)
        self.strategies = build_strategies(
            self.lifecycle.active_handle,
            self.fetcher,
            self.config.strategy,
            self.metrics,
            self.tasks,
        )

    async def start(self) -> None:
        """Adopt generations already present in the store."""
        await self.lifecycle.restore()
        logger.info(f"Worker {self.config.generation_name} started")

    async def install(self) -> str:
        """Install this version's generation."""
        return await self.lifecycle.install()

    async def activate(self) -> bool:
        """Activate this version's generation."""
        return await self.lifecycle.activate()

    async def handle_fetch(self, request: Request) -> Response:
        """Answer a request issued by the host application.

        Requests that are not intercepted go straight to the network with
        no cache involvement; their transport errors propagate exactly as
        they would without the worker.
        """
        decision = self.router.route(request)
        if decision is None:
            self.metrics.record_bypass()
            return await self.fetcher.fetch(request)

        with Timer(self.metrics):
            return await self.strategies[decision.strategy].handle(request)

    async def post_message(self, data: Any) -> bool:
        """Deliver a control message."""
        return await self.control.post(data)

    async def close(self) -> None:
        """Wait for background revalidations and release the fetcher."""
        await self.tasks.drain()
        await self.fetcher.close()
        logger.info(f"Worker {self.config.generation_name} closed")

    async def __aenter__(self) -> "OfflineWorker":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"OfflineWorker(generation={self.config.generation_name!r})"


__all__ = ["OfflineWorker"]
