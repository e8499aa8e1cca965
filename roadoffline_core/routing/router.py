"""RoadOffline Router - Request Classification.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from roadoffline_core.http.message import Request

logger = logging.getLogger(__name__)


class RouteClass(Enum):
    """Policy classes a request can fall into."""

    DATA_ASSET = "data"
    STATIC_ASSET = "static"
    EXTERNAL_ASSET = "external"
    DOCUMENT = "document"


class StrategyName(Enum):
    """Caching strategies."""

    CACHE_FIRST = "cache-first"
    NETWORK_FIRST = "network-first"
    STALE_WHILE_REVALIDATE = "stale-while-revalidate"


DEFAULT_STRATEGIES: Dict[RouteClass, StrategyName] = {
    RouteClass.DATA_ASSET: StrategyName.CACHE_FIRST,
    RouteClass.EXTERNAL_ASSET: StrategyName.CACHE_FIRST,
    RouteClass.STATIC_ASSET: StrategyName.STALE_WHILE_REVALIDATE,
    RouteClass.DOCUMENT: StrategyName.NETWORK_FIRST,
}


@dataclass
class RouterConfig:
    """Routing rules.

    Attributes:
        safe_methods: Methods that may be intercepted
        schemes: URL schemes that may be intercepted
        data_prefix: Path prefix of data assets
        static_extensions: Path suffixes of static assets
        external_hosts: Trusted third-party asset hosts (sub-domains match)
        strategies: RouteClass -> StrategyName overrides
    """

    safe_methods: FrozenSet[str] = frozenset({"GET"})
    schemes: FrozenSet[str] = frozenset({"http", "https"})
    data_prefix: str = "/data/"
    static_extensions: Tuple[str, ...] = (".js", ".css")
    external_hosts: Tuple[str, ...] = (
        "fonts.googleapis.com",
        "fonts.gstatic.com",
        "cdnjs.cloudflare.com",
    )
    strategies: Dict[RouteClass, StrategyName] = field(
        default_factory=lambda: dict(DEFAULT_STRATEGIES)
    )


@dataclass(frozen=True)
class RouteDecision:
    """Outcome of routing one request."""

    route_class: RouteClass
    strategy: StrategyName


class Router:
    """Classifies requests into policy classes.

    Rules are evaluated in order and the first match wins:
    1. unsafe method -> not intercepted
    2. foreign scheme -> not intercepted
    3. data prefix -> DATA_ASSET
    4. static extension -> STATIC_ASSET
    5. trusted external host -> EXTERNAL_ASSET
    6. anything else -> DOCUMENT

    Example:
        router = Router()
        router.classify(Request("https://app.example/data/surahs.json"))
        # RouteClass.DATA_ASSET
    """

    def __init__(self, config: Optional[RouterConfig] = None):
        self.config = config or RouterConfig()
        self._hosts = tuple(h.lower() for h in self.config.external_hosts)

    def classify(self, request: Request) -> Optional[RouteClass]:
        """Classify a request.

        Args:
            request: Intercepted request

        Returns:
            RouteClass, or None when the request must not be intercepted
        """
        if request.method not in self.config.safe_methods:
            return None

        parts = request.url_parts
        if parts.scheme.lower() not in self.config.schemes:
            return None

        path = parts.path or "/"
        if path.startswith(self.config.data_prefix):
            return RouteClass.DATA_ASSET

        if path.endswith(self.config.static_extensions):
            return RouteClass.STATIC_ASSET

        if self._is_external(parts.hostname or ""):
            return RouteClass.EXTERNAL_ASSET

        return RouteClass.DOCUMENT

    def route(self, request: Request) -> Optional[RouteDecision]:
        """Classify a request and pick its strategy."""
        route_class = self.classify(request)
        if route_class is None:
            logger.debug(f"Bypassing {request!r}")
            return None

        strategy = self.config.strategies.get(route_class, DEFAULT_STRATEGIES[route_class])
        logger.debug(f"Routed {request!r} as {route_class.value} via {strategy.value}")
        return RouteDecision(route_class=route_class, strategy=strategy)

    def _is_external(self, hostname: str) -> bool:
        host = hostname.lower()
        return any(host == h or host.endswith("." + h) for h in self._hosts)

    def __repr__(self) -> str:
        return f"Router(data_prefix={self.config.data_prefix!r}, hosts={len(self._hosts)})"


__all__ = [
    "Router",
    "RouterConfig",
    "RouteClass",
    "RouteDecision",
    "StrategyName",
    "DEFAULT_STRATEGIES",
]
