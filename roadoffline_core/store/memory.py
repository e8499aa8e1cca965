"""RoadOffline Memory Store - In-Memory Generation Store.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import fnmatch
import logging
import threading
from typing import Dict, List, Optional, Set

from roadoffline_core.cache.entry import CacheEntry
from roadoffline_core.store.backend import StorageBackend, StorageConfig

logger = logging.getLogger(__name__)


class MemoryStore(StorageBackend):
    """In-memory storage backend.

    Not durable. Useful for tests and for hosts that rebuild their caches
    on every start. Each instance is fully independent.

    Example:
        store = MemoryStore()
        store.open("app-v1")
        store.set("app-v1", request.cache_key, CacheEntry(key=..., response=...))
        entry = store.get("app-v1", request.cache_key)
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        """Initialize memory store.

        Args:
            config: Storage configuration
        """
        super().__init__(config)
        self._data: Dict[str, Dict[str, CacheEntry]] = {}
        self._lock = threading.RLock()

    def open(self, generation: str) -> bool:
        with self._lock:
            if generation not in self._data:
                self._data[generation] = {}
                self._stats.generations_created += 1
            return True

    def has_generation(self, generation: str) -> bool:
        return generation in self._data

    def get(self, generation: str, key: str) -> Optional[CacheEntry]:
        with self._lock:
            self._stats.reads += 1
            entries = self._data.get(generation)
            if entries is None:
                return None
            return entries.get(key)

    def set(self, generation: str, key: str, entry: CacheEntry) -> bool:
        with self._lock:
            entries = self._data.get(generation)
            if entries is None:
                self._stats.dropped_writes += 1
                return False
            entries[key] = entry
            self._stats.writes += 1
            return True

    def delete(self, generation: str, key: str) -> bool:
        with self._lock:
            entries = self._data.get(generation)
            if entries is None or key not in entries:
                return False
            del entries[key]
            self._stats.deletes += 1
            return True

    def delete_generation(self, generation: str) -> bool:
        with self._lock:
            if self._data.pop(generation, None) is None:
                return False
            self._stats.generations_deleted += 1
            return True

    def generations(self) -> Set[str]:
        with self._lock:
            return set(self._data.keys())

    def keys(self, generation: str, pattern: Optional[str] = None) -> List[str]:
        with self._lock:
            entries = self._data.get(generation, {})
            if pattern is None:
                return list(entries.keys())
            return [k for k in entries.keys() if fnmatch.fnmatch(k, pattern)]

    def memory_usage(self) -> int:
        """Get total body bytes held.

        Returns:
            Size in bytes
        """
        with self._lock:
            return sum(
                e.metadata.size_bytes
                for entries in self._data.values()
                for e in entries.values()
            )

    def __repr__(self) -> str:
        return f"MemoryStore(generations={len(self._data)})"


__all__ = ["MemoryStore"]
