"""Lifecycle module - Generation install, activation and cleanup."""

from roadoffline_core.lifecycle.precache import (
    DEFAULT_PRECACHE,
    PrecacheManifest,
    PrecacheStats,
    Precacher,
)
from roadoffline_core.lifecycle.manager import (
    GenerationState,
    LifecycleManager,
    StateListener,
)

__all__ = [
    "DEFAULT_PRECACHE",
    "PrecacheManifest",
    "PrecacheStats",
    "Precacher",
    "GenerationState",
    "LifecycleManager",
    "StateListener",
]
