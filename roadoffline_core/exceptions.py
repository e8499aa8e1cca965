"""RoadOffline Exceptions - Error Taxonomy.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Routing bypasses and cache misses are not errors; they are signalled by
``None`` returns. Only the conditions below are raised.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class OfflineCacheError(Exception):
    """Base exception for the offline cache core.

    Attributes:
        message: Human readable message
        details: Structured context for logging
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({context})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


class NetworkFailure(OfflineCacheError):
    """Transport-level failure: DNS, refused connection, offline, timeout.

    An HTTP error status is a successful fetch and never raises this.
    """

    def __init__(
        self,
        url: str,
        reason: str = "network error",
        original_error: Optional[BaseException] = None,
    ):
        details: Dict[str, Any] = {"url": url}
        if original_error is not None:
            details["error_type"] = type(original_error).__name__
        super().__init__(f"Network fetch failed: {reason}", details)
        self.url = url
        self.reason = reason
        if original_error is not None:
            self.__cause__ = original_error


class InstallFailure(OfflineCacheError):
    """A generation could not be fully populated."""

    def __init__(
        self,
        generation: str,
        reason: str,
        url: Optional[str] = None,
    ):
        details: Dict[str, Any] = {"generation": generation}
        if url:
            details["url"] = url
        super().__init__(f"Install failed: {reason}", details)
        self.generation = generation
        self.reason = reason
        self.url = url


class StoreFailure(OfflineCacheError):
    """The underlying store rejected or could not perform an operation."""

    def __init__(
        self,
        generation: str,
        operation: str,
        key: Optional[str] = None,
    ):
        details: Dict[str, Any] = {"generation": generation, "operation": operation}
        if key:
            details["key"] = key
        super().__init__(f"Store {operation} failed", details)
        self.generation = generation
        self.operation = operation
        self.key = key


class ConfigError(OfflineCacheError):
    """Invalid configuration value."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


__all__ = [
    "OfflineCacheError",
    "NetworkFailure",
    "InstallFailure",
    "StoreFailure",
    "ConfigError",
]
