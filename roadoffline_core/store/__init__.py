"""Store module - Generation storage backends."""

from roadoffline_core.store.backend import (
    StorageBackend,
    StorageStats,
    StorageConfig,
)
from roadoffline_core.store.memory import MemoryStore
from roadoffline_core.store.file import FileStore
from roadoffline_core.store.redis import RedisStore, RedisConfig

__all__ = [
    "StorageBackend",
    "StorageStats",
    "StorageConfig",
    "MemoryStore",
    "FileStore",
    "RedisStore",
    "RedisConfig",
]
