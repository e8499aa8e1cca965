"""RoadOffline Cache Storage - Async View over a Generation Store.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Set

from roadoffline_core.cache.entry import CacheEntry
from roadoffline_core.exceptions import StoreFailure
from roadoffline_core.http.message import Request, Response

if TYPE_CHECKING:
    from roadoffline_core.store.backend import StorageBackend

logger = logging.getLogger(__name__)

STORABLE_METHODS = frozenset({"GET", "HEAD"})

# Written last by an install. Request identities always start with a
# method, so this key never collides with a stored response.
INSTALLED_KEY = "#installed"


class GenerationHandle:
    """Handle on one named generation.

    A handle outlives its generation: once the generation is deleted,
    reads return None and writes are dropped.
    """

    def __init__(self, backend: "StorageBackend", name: str):
        self._backend = backend
        self.name = name

    async def match(self, request: Request) -> Optional[Response]:
        """Exact-key lookup.

        Returns:
            A fresh copy of the stored response, or None

        Raises:
            StoreFailure: If the stored body does not match its checksum
        """
        entry = self._backend.get(self.name, request.cache_key)
        if entry is None:
            return None
        if not entry.verify_integrity():
            logger.warning(f"Checksum mismatch for {entry.key} in {self.name}")
            raise StoreFailure(self.name, "match", entry.key)
        return entry.to_response()

    async def put(self, request: Request, response: Response) -> bool:
        """Store a copy of ``response`` under the request identity.

        Returns:
            True if stored, False if the generation no longer exists

        Raises:
            ValueError: If the request method is not storable
            StoreFailure: If the backend failed to write
        """
        if request.method not in STORABLE_METHODS:
            raise ValueError(f"Cannot store response for {request.method} request")

        key = request.cache_key
        entry = CacheEntry(key=key, response=response.clone(), generation=self.name)

        if self._backend.set(self.name, key, entry):
            return True

        if not self._backend.has_generation(self.name):
            logger.debug(f"Dropped write of {key} to deleted generation {self.name}")
            return False

        raise StoreFailure(self.name, "put", key)

    async def delete(self, request: Request) -> bool:
        """Delete the entry for a request."""
        return self._backend.delete(self.name, request.cache_key)

    async def keys(self) -> List[str]:
        """List stored request identities."""
        return [key for key in self._backend.keys(self.name) if key != INSTALLED_KEY]

    async def size(self) -> int:
        """Number of stored entries."""
        return len(await self.keys())

    def __repr__(self) -> str:
        return f"GenerationHandle(name={self.name!r})"


class CacheStorage:
    """Async facade over a StorageBackend.

    Every operation names its generation; there is no module-level cache
    name, so independent instances never interfere.

    Example:
        storage = CacheStorage(MemoryStore())
        cache = await storage.open("app-v1")
        await cache.put(request, response)
        cached = await storage.match(request, "app-v1")
    """

    def __init__(self, backend: "StorageBackend"):
        """Initialize storage.

        Args:
            backend: Storage backend
        """
        self.backend = backend

    async def open(self, generation: str) -> GenerationHandle:
        """Open a generation, creating it if absent.

        Raises:
            StoreFailure: If the backend could not create it
        """
        if not self.backend.open(generation):
            raise StoreFailure(generation, "open")
        return GenerationHandle(self.backend, generation)

    def handle(self, generation: str) -> GenerationHandle:
        """Get a handle without creating the generation."""
        return GenerationHandle(self.backend, generation)

    async def has(self, generation: str) -> bool:
        """Check whether a generation exists."""
        return self.backend.has_generation(generation)

    async def delete(self, generation: str) -> bool:
        """Delete a generation and all its entries."""
        deleted = self.backend.delete_generation(generation)
        if deleted:
            logger.info(f"Deleted generation {generation}")
        return deleted

    async def generations(self) -> Set[str]:
        """List generation names."""
        return self.backend.generations()

    async def mark_installed(self, generation: str, digest: str = "") -> None:
        """Record that a generation holds its complete precache manifest.

        Args:
            generation: Generation name
            digest: Manifest digest, kept for diagnostics

        Raises:
            StoreFailure: If the marker could not be written
        """
        marker = CacheEntry(
            key=INSTALLED_KEY,
            response=Response(body=digest.encode("utf-8")),
            generation=generation,
        )
        if not self.backend.set(generation, INSTALLED_KEY, marker):
            raise StoreFailure(generation, "mark_installed")

    async def is_installed(self, generation: str) -> bool:
        """Check whether a generation was fully populated."""
        return self.backend.get(generation, INSTALLED_KEY) is not None

    async def match(self, request: Request, generation: str) -> Optional[Response]:
        """Look up a request in one generation."""
        return await self.handle(generation).match(request)

    def __repr__(self) -> str:
        return f"CacheStorage(backend={self.backend!r})"


__all__ = ["CacheStorage", "GenerationHandle", "INSTALLED_KEY", "STORABLE_METHODS"]
