"""RoadOffline Storage Backend - Abstract Generation Store.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, List, Optional, Set, Tuple

from roadoffline_core.cache.entry import CacheEntry
from roadoffline_core.http.message import Response

logger = logging.getLogger(__name__)


@dataclass
class StorageConfig:
    """Storage backend configuration.

    Attributes:
        name: Backend name
        serializer: Serializer format for durable backends
        compression: Compression for durable backends ("none", "gzip", "zlib")
        compression_threshold: Bytes threshold for compression
    """

    name: str = "storage"
    serializer: str = "pickle"
    compression: str = "none"
    compression_threshold: int = 1024


@dataclass
class StorageStats:
    """Storage backend statistics.

    Attributes:
        reads: Number of read operations
        writes: Number of write operations
        deletes: Number of entry delete operations
        generations_created: Number of generations opened fresh
        generations_deleted: Number of generations removed
        dropped_writes: Writes aimed at a generation that no longer exists
        errors: Number of errors
    """

    reads: int = 0
    writes: int = 0
    deletes: int = 0
    generations_created: int = 0
    generations_deleted: int = 0
    dropped_writes: int = 0
    errors: int = 0
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None

    def record_error(self, error: str) -> None:
        """Record an error."""
        self.errors += 1
        self.last_error = error
        self.last_error_at = datetime.now()


class StorageBackend(ABC):
    """Abstract store of named generations of cache entries.

    Every operation names its generation explicitly; there is no implicit
    "current" cache. Implementations:
    - MemoryStore: In-process dictionaries
    - FileStore: Durable directory-per-generation layout
    - RedisStore: Durable Redis hashes

    Backends never raise on I/O problems. Failures are logged, recorded in
    StorageStats and reported as None/False. Writing to a generation that
    does not exist is a no-op that returns False.
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        """Initialize backend.

        Args:
            config: Storage configuration
        """
        self.config = config or StorageConfig()
        self._stats = StorageStats()

    @abstractmethod
    def open(self, generation: str) -> bool:
        """Create a generation if absent.

        Args:
            generation: Generation name

        Returns:
            True if the generation exists afterwards
        """
        pass

    @abstractmethod
    def has_generation(self, generation: str) -> bool:
        """Check whether a generation exists."""
        pass

    @abstractmethod
    def get(self, generation: str, key: str) -> Optional[CacheEntry]:
        """Get entry by key.

        Args:
            generation: Generation name
            key: Canonical request identity

        Returns:
            CacheEntry or None
        """
        pass

    @abstractmethod
    def set(self, generation: str, key: str, entry: CacheEntry) -> bool:
        """Store entry, replacing any previous entry for the key.

        Args:
            generation: Generation name
            key: Canonical request identity
            entry: Cache entry

        Returns:
            True if stored
        """
        pass

    @abstractmethod
    def delete(self, generation: str, key: str) -> bool:
        """Delete one entry.

        Returns:
            True if deleted
        """
        pass

    @abstractmethod
    def delete_generation(self, generation: str) -> bool:
        """Remove a generation and all of its entries.

        Returns:
            True if the generation existed
        """
        pass

    @abstractmethod
    def generations(self) -> Set[str]:
        """Get all generation names."""
        pass

    @abstractmethod
    def keys(self, generation: str, pattern: Optional[str] = None) -> List[str]:
        """Get all keys in a generation.

        Args:
            generation: Generation name
            pattern: Optional glob pattern

        Returns:
            List of keys
        """
        pass

    def size(self, generation: str) -> int:
        """Get entry count of a generation."""
        return len(self.keys(generation))

    def scan(self, generation: str, pattern: Optional[str] = None) -> Iterator[Tuple[str, CacheEntry]]:
        """Scan entries of a generation.

        Yields:
            (key, entry) tuples
        """
        for key in self.keys(generation, pattern):
            entry = self.get(generation, key)
            if entry is not None:
                yield key, entry

    def get_stats(self) -> StorageStats:
        """Get storage statistics."""
        return self._stats

    def reset_stats(self) -> None:
        """Reset statistics."""
        self._stats = StorageStats()

    def health_check(self) -> bool:
        """Check storage health.

        Returns:
            True if healthy
        """
        generation = "__health_check__"
        key = "GET health://check/"
        try:
            self.open(generation)
            self.set(generation, key, CacheEntry(key=key, response=Response(body=b"ok")))
            result = self.get(generation, key)
            self.delete_generation(generation)
            return result is not None
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False

    def __contains__(self, generation: str) -> bool:
        """Check if a generation exists."""
        return self.has_generation(generation)


__all__ = ["StorageBackend", "StorageConfig", "StorageStats"]
