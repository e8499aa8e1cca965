"""Cache module - Entries and the async cache storage view."""

from roadoffline_core.cache.entry import CacheEntry, EntryMetadata
from roadoffline_core.cache.storage import (
    CacheStorage,
    GenerationHandle,
    STORABLE_METHODS,
)

__all__ = [
    "CacheEntry",
    "EntryMetadata",
    "CacheStorage",
    "GenerationHandle",
    "STORABLE_METHODS",
]
