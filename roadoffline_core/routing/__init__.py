"""Routing module - Request classification."""

from roadoffline_core.routing.router import (
    Router,
    RouterConfig,
    RouteClass,
    RouteDecision,
    StrategyName,
    DEFAULT_STRATEGIES,
)

__all__ = [
    "Router",
    "RouterConfig",
    "RouteClass",
    "RouteDecision",
    "StrategyName",
    "DEFAULT_STRATEGIES",
]
