"""RoadOffline Redis Store - Generations Shared Between Processes.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Set, TypeVar

from roadoffline_core.cache.entry import CacheEntry
from roadoffline_core.protocol.serializer import EntryCodec
from roadoffline_core.store.backend import StorageBackend, StorageConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RedisConfig(StorageConfig):
    """Connection settings for RedisStore.

    Attributes:
        host: Server host
        port: Server port
        db: Database index
        password: AUTH password
        socket_timeout: Seconds to wait on a command
        socket_connect_timeout: Seconds to wait for a connection
        max_connections: Pool size
        prefix: Namespace for every key this store writes
    """

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0
    max_connections: int = 10
    prefix: str = "offline:"


class RedisStore(StorageBackend):
    """Redis storage backend.

    Layout:
        <prefix>generations        set of generation names
        <prefix>gen:<generation>   hash of request key -> encoded entry

    Generation membership in the set is the source of truth: writes to a
    name missing from it are dropped, and deleting a generation removes
    its name and its hash in one MULTI/EXEC pipeline.

    Example:
        store = RedisStore(RedisConfig(host="redis.internal", prefix="app:"))
        store.open("app-v2")
    """

    def __init__(self, config: Optional[RedisConfig] = None, client: Optional[Any] = None):
        """Initialize Redis store.

        Args:
            config: Connection and encoding settings
            client: Existing redis client; otherwise one is created on first use
        """
        super().__init__(config or RedisConfig())
        self.config: RedisConfig = self.config
        self._client: Optional[Any] = client
        self._pool: Optional[Any] = None
        self._codec = EntryCodec.from_config(self.config)

    def _connect(self) -> Any:
        if self._client is not None:
            return self._client

        try:
            import redis
        except ImportError:
            raise ImportError("redis package not installed. Run: pip install roadoffline[redis]")

        pool = redis.ConnectionPool(
            host=self.config.host,
            port=self.config.port,
            db=self.config.db,
            password=self.config.password,
            socket_timeout=self.config.socket_timeout,
            socket_connect_timeout=self.config.socket_connect_timeout,
            max_connections=self.config.max_connections,
        )
        client = redis.Redis(connection_pool=pool)
        client.ping()

        self._pool, self._client = pool, client
        logger.info(f"Connected to Redis at {self.config.host}:{self.config.port}/{self.config.db}")
        return client

    def _call(self, operation: str, fn: Callable[[Any], T], default: T) -> T:
        """Run ``fn(client)``, turning any Redis failure into ``default``."""
        try:
            return fn(self._connect())
        except Exception as e:
            logger.error(f"Redis {operation} failed: {e}")
            self._stats.record_error(f"{operation}: {e}")
            return default

    @property
    def _names_key(self) -> str:
        return f"{self.config.prefix}generations"

    def _hash_key(self, generation: str) -> str:
        return f"{self.config.prefix}gen:{generation}"

    @staticmethod
    def _text(value: Any) -> str:
        return value.decode("utf-8") if isinstance(value, bytes) else value

    def open(self, generation: str) -> bool:
        def run(client: Any) -> bool:
            if client.sadd(self._names_key, generation):
                self._stats.generations_created += 1
            return True

        return self._call("open", run, False)

    def has_generation(self, generation: str) -> bool:
        return self._call(
            "has_generation",
            lambda client: bool(client.sismember(self._names_key, generation)),
            False,
        )

    def get(self, generation: str, key: str) -> Optional[CacheEntry]:
        def run(client: Any) -> Optional[CacheEntry]:
            self._stats.reads += 1
            blob = client.hget(self._hash_key(generation), key)
            return None if blob is None else CacheEntry.from_dict(self._codec.decode(blob))

        return self._call("get", run, None)

    def set(self, generation: str, key: str, entry: CacheEntry) -> bool:
        def run(client: Any) -> bool:
            # Check-then-write: a delete racing between the two leaves an
            # orphan hash that the next delete_generation removes.
            if not client.sismember(self._names_key, generation):
                self._stats.dropped_writes += 1
                return False
            client.hset(self._hash_key(generation), key, self._codec.encode(entry.to_dict()))
            self._stats.writes += 1
            return True

        return self._call("set", run, False)

    def delete(self, generation: str, key: str) -> bool:
        def run(client: Any) -> bool:
            if not client.hdel(self._hash_key(generation), key):
                return False
            self._stats.deletes += 1
            return True

        return self._call("delete", run, False)

    def delete_generation(self, generation: str) -> bool:
        def run(client: Any) -> bool:
            pipe = client.pipeline()
            pipe.srem(self._names_key, generation)
            pipe.delete(self._hash_key(generation))
            removed, _ = pipe.execute()
            if not removed:
                return False
            self._stats.generations_deleted += 1
            return True

        return self._call("delete_generation", run, False)

    def generations(self) -> Set[str]:
        return self._call(
            "generations",
            lambda client: {self._text(name) for name in client.smembers(self._names_key)},
            set(),
        )

    def keys(self, generation: str, pattern: Optional[str] = None) -> List[str]:
        keys = self._call(
            "keys",
            lambda client: [self._text(k) for k in client.hkeys(self._hash_key(generation))],
            [],
        )
        if pattern is not None:
            keys = [k for k in keys if fnmatch.fnmatch(k, pattern)]
        return keys

    def size(self, generation: str) -> int:
        return self._call("size", lambda client: int(client.hlen(self._hash_key(generation))), 0)

    def close(self) -> None:
        """Disconnect the pool this store created."""
        if self._pool is not None:
            self._pool.disconnect()
        self._pool = None
        self._client = None

    def __repr__(self) -> str:
        return f"RedisStore({self.config.host}:{self.config.port}, prefix={self.config.prefix!r})"


__all__ = ["RedisConfig", "RedisStore"]
