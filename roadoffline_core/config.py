"""RoadOffline Config - Worker Configuration.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from roadoffline_core.exceptions import ConfigError
from roadoffline_core.lifecycle.precache import DEFAULT_PRECACHE
from roadoffline_core.routing.router import RouteClass, RouterConfig, StrategyName
from roadoffline_core.store.backend import StorageConfig
from roadoffline_core.strategy.base import StrategyConfig

logger = logging.getLogger(__name__)


@dataclass
class WorkerConfig:
    """Offline worker configuration.

    Attributes:
        version_tag: Release identifier; changing it triggers a new install
        cache_prefix: Prefix of generation names ("" uses the bare tag)
        scope: Base URL that relative precache entries resolve against
        precache: Assets that must be cached before activation
        skip_waiting_on_install: Activate right after install without
            waiting for connected clients to go away
        precache_concurrency: Parallel fetches during install
        network_timeout: Optional fetch timeout in seconds
        router: Routing rules
        strategy: Strategy settings
        storage: Storage backend settings
    """

    version_tag: str = "v1.0.0"
    cache_prefix: str = "hadiye"
    scope: str = "http://localhost/"
    precache: List[str] = field(default_factory=lambda: list(DEFAULT_PRECACHE))
    skip_waiting_on_install: bool = True
    precache_concurrency: int = 6
    network_timeout: Optional[float] = None
    router: RouterConfig = field(default_factory=RouterConfig)
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    def __post_init__(self):
        if not self.version_tag:
            raise ConfigError("version_tag must not be empty", field="version_tag")
        if self.precache_concurrency < 1:
            raise ConfigError("precache_concurrency must be at least 1", field="precache_concurrency")
        if self.network_timeout is not None and self.network_timeout <= 0:
            raise ConfigError("network_timeout must be positive", field="network_timeout")

    @property
    def generation_name(self) -> str:
        """Name of the generation this version populates."""
        if not self.cache_prefix:
            return self.version_tag
        return f"{self.cache_prefix}-{self.version_tag}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkerConfig":
        """Create from a dictionary, ignoring unknown keys.

        Raises:
            ConfigError: On invalid values
        """
        data = dict(data)
        nested = {
            "router": _router_from_dict(data.pop("router", {}) or {}),
            "strategy": _section(StrategyConfig, data.pop("strategy", {}) or {}, "strategy"),
            "storage": _section(StorageConfig, data.pop("storage", {}) or {}, "storage"),
        }
        kwargs = _known(cls, data, "worker")
        kwargs.update(nested)
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ConfigError(f"Invalid worker configuration: {e}")


def _known(cls: type, data: Dict[str, Any], section: str) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    for key in data:
        if key not in names:
            logger.warning(f"Ignoring unknown {section} config key: {key}")
    return {k: v for k, v in data.items() if k in names}


def _section(cls: type, data: Dict[str, Any], section: str) -> Any:
    try:
        return cls(**_known(cls, data, section))
    except TypeError as e:
        raise ConfigError(f"Invalid {section} configuration: {e}", field=section)


def _router_from_dict(data: Dict[str, Any]) -> RouterConfig:
    kwargs = _known(RouterConfig, data, "router")
    for key in ("safe_methods", "schemes"):
        if key in kwargs:
            kwargs[key] = frozenset(v.upper() if key == "safe_methods" else v.lower() for v in kwargs[key])
    for key in ("static_extensions", "external_hosts"):
        if key in kwargs:
            kwargs[key] = tuple(kwargs[key])
    if "strategies" in kwargs:
        try:
            overrides = {
                RouteClass(route): StrategyName(strategy)
                for route, strategy in kwargs["strategies"].items()
            }
        except ValueError as e:
            raise ConfigError(f"Invalid strategy mapping: {e}", field="router.strategies")
        strategies = RouterConfig().strategies
        strategies.update(overrides)
        kwargs["strategies"] = strategies
    return RouterConfig(**kwargs)


def load_config(path: Union[str, Path]) -> WorkerConfig:
    """Load worker configuration from a JSON file.

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot load config from {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config root in {path} must be an object")
    return WorkerConfig.from_dict(data)


__all__ = ["WorkerConfig", "load_config"]
