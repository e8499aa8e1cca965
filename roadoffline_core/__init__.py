"""RoadOffline - Offline Cache Manager.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Intercepts every request a web application makes and decides, per
request, whether to answer from a local cache, from the network, or both:
- Routing of requests into data, static, external and document classes
- Cache-first, network-first and stale-while-revalidate strategies
- Versioned cache generations with all-or-nothing precaching
- Atomic cutover and cleanup of superseded generations
- Memory, file and Redis storage backends
- Control messages from the host (adopt now, background sync)

Architecture:
    ┌─────────────────────────────────────────────────────────────────┐
    │                      RoadOffline Worker                         │
    ├─────────────────────────────────────────────────────────────────┤
    │  ┌─────────────┐  ┌─────────────┐  ┌─────────────┐             │
    │  │   Router    │  │  Lifecycle  │  │   Control   │   CONTROL   │
    │  │  classify   │  │ install/act │  │   channel   │   LAYER     │
    │  └──────┬──────┘  └──────┬──────┘  └──────┬──────┘             │
    │         │                │                │                     │
    │  ┌──────┴────────────────┴────────────────┴──────┐             │
    │  │              Strategy Engine                   │             │
    │  │  ┌────────────┐ ┌─────────────┐ ┌──────────┐  │  STRATEGY   │
    │  │  │Cache First │ │Network First│ │   SWR    │  │  LAYER      │
    │  │  └────────────┘ └─────────────┘ └──────────┘  │             │
    │  └─────────┬─────────────────────────┬───────────┘             │
    │            │                         │                          │
    │  ┌─────────┴──────────────┐  ┌───────┴───────────┐             │
    │  │    Cache Storage       │  │     Fetcher       │   I/O       │
    │  │ ┌──────┐┌────┐┌─────┐  │  │  (httpx client)   │   LAYER     │
    │  │ │Memory││File││Redis│  │  └───────────────────┘             │
    │  │ └──────┘└────┘└─────┘  │                                     │
    │  └────────────────────────┘                                     │
    └─────────────────────────────────────────────────────────────────┘

Example Usage:
    from roadoffline_core import OfflineWorker, WorkerConfig, FileStore, Request

    config = WorkerConfig(version_tag="v1.0.1", scope="https://app.example/")
    async with OfflineWorker(config, store=FileStore("/var/cache/app")) as worker:
        await worker.install()

        # Served by the routed strategy
        response = await worker.handle_fetch(Request("https://app.example/data/surahs.json"))

        # Host asks a waiting version to take over now
        await worker.post_message({"kind": "ADOPT_NOW"})
"""

__version__ = "1.0.0"
__author__ = "BlackRoad OS"

from roadoffline_core.exceptions import (
    OfflineCacheError,
    NetworkFailure,
    InstallFailure,
    StoreFailure,
    ConfigError,
)
from roadoffline_core.http.message import (
    Request,
    RequestMode,
    Response,
    ResponseSource,
    offline_response,
)
from roadoffline_core.cache.entry import CacheEntry, EntryMetadata
from roadoffline_core.cache.storage import CacheStorage, GenerationHandle
from roadoffline_core.store.backend import (
    StorageBackend,
    StorageConfig,
    StorageStats,
)
from roadoffline_core.store.memory import MemoryStore
from roadoffline_core.store.file import FileStore
from roadoffline_core.store.redis import RedisStore, RedisConfig
from roadoffline_core.routing.router import (
    Router,
    RouterConfig,
    RouteClass,
    RouteDecision,
    StrategyName,
)
from roadoffline_core.network.fetcher import Fetcher, HttpxFetcher, CallableFetcher
from roadoffline_core.strategy import (
    Strategy,
    StrategyConfig,
    BackgroundTasks,
    CacheFirst,
    NetworkFirst,
    StaleWhileRevalidate,
)
from roadoffline_core.lifecycle import (
    PrecacheManifest,
    Precacher,
    LifecycleManager,
    GenerationState,
)
from roadoffline_core.control.channel import ControlChannel, ControlMessage, MessageKind
from roadoffline_core.config import WorkerConfig, load_config
from roadoffline_core.metrics.collector import MetricsCollector, OfflineMetrics
from roadoffline_core.protocol.serializer import (
    Serializer,
    JSONSerializer,
    PickleSerializer,
    MsgPackSerializer,
)
from roadoffline_core.worker import OfflineWorker

__all__ = [
    # Errors
    "OfflineCacheError",
    "NetworkFailure",
    "InstallFailure",
    "StoreFailure",
    "ConfigError",
    # Messages
    "Request",
    "RequestMode",
    "Response",
    "ResponseSource",
    "offline_response",
    # Cache
    "CacheEntry",
    "EntryMetadata",
    "CacheStorage",
    "GenerationHandle",
    # Storage
    "StorageBackend",
    "StorageConfig",
    "StorageStats",
    "MemoryStore",
    "FileStore",
    "RedisStore",
    "RedisConfig",
    # Routing
    "Router",
    "RouterConfig",
    "RouteClass",
    "RouteDecision",
    "StrategyName",
    # Network
    "Fetcher",
    "HttpxFetcher",
    "CallableFetcher",
    # Strategies
    "Strategy",
    "StrategyConfig",
    "BackgroundTasks",
    "CacheFirst",
    "NetworkFirst",
    "StaleWhileRevalidate",
    # Lifecycle
    "PrecacheManifest",
    "Precacher",
    "LifecycleManager",
    "GenerationState",
    # Control
    "ControlChannel",
    "ControlMessage",
    "MessageKind",
    # Worker
    "WorkerConfig",
    "load_config",
    "OfflineWorker",
    # Metrics
    "MetricsCollector",
    "OfflineMetrics",
    # Protocol
    "Serializer",
    "JSONSerializer",
    "PickleSerializer",
    "MsgPackSerializer",
]
