"""RoadOffline File Store - Durable File-Based Generation Store.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import fnmatch
import hashlib
import logging
import os
import shutil
import threading
from pathlib import Path
from typing import List, Optional, Set

from roadoffline_core.cache.entry import CacheEntry
from roadoffline_core.protocol.serializer import EntryCodec
from roadoffline_core.store.backend import StorageBackend, StorageConfig

logger = logging.getLogger(__name__)


class FileStore(StorageBackend):
    """File-based storage backend.

    Persists generations to disk so they survive restarts.

    Layout:
        <base>/<generation-hash>/.generation   generation name
        <base>/<generation-hash>/<shard>/<key-hash>

    Features:
    - One directory per generation; deleting a generation is one rmtree
    - Sharded entry files (256 shards, created lazily)
    - Atomic writes via temp file and rename
    - Configurable serialization and compression

    Example:
        store = FileStore("/var/cache/myapp")
        store.open("app-v1")
        store.set("app-v1", key, entry)
    """

    NAME_FILE = ".generation"
    TMP_SUFFIX = ".tmp"

    def __init__(
        self,
        base_path: str,
        config: Optional[StorageConfig] = None,
    ):
        """Initialize file store.

        Args:
            base_path: Base directory for cache files
            config: Storage configuration
        """
        super().__init__(config)
        self.base_path = Path(base_path)
        self._lock = threading.RLock()
        self._codec = EntryCodec.from_config(self.config)

        self.base_path.mkdir(parents=True, exist_ok=True)

    def _generation_dir(self, generation: str) -> Path:
        """Get directory for a generation."""
        digest = hashlib.sha256(generation.encode()).hexdigest()[:32]
        return self.base_path / digest

    def _get_path(self, generation: str, key: str) -> Path:
        """Get file path for an entry."""
        filename = hashlib.sha256(key.encode()).hexdigest()
        return self._generation_dir(generation) / filename[:2] / filename

    def _atomic_write(self, path: Path, data: bytes) -> None:
        """Write a file via temp file and rename."""
        temp_path = path.with_name(path.name + self.TMP_SUFFIX)
        try:
            with open(temp_path, "wb") as f:
                f.write(data)
            os.replace(temp_path, path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def open(self, generation: str) -> bool:
        gen_dir = self._generation_dir(generation)
        try:
            with self._lock:
                if (gen_dir / self.NAME_FILE).exists():
                    return True
                gen_dir.mkdir(parents=True, exist_ok=True)
                self._atomic_write(gen_dir / self.NAME_FILE, generation.encode("utf-8"))
                self._stats.generations_created += 1
                logger.debug(f"Created generation {generation} at {gen_dir}")
                return True

        except OSError as e:
            logger.error(f"Error creating generation {generation}: {e}")
            self._stats.record_error(str(e))
            return False

    def has_generation(self, generation: str) -> bool:
        return (self._generation_dir(generation) / self.NAME_FILE).exists()

    def get(self, generation: str, key: str) -> Optional[CacheEntry]:
        path = self._get_path(generation, key)

        try:
            with self._lock:
                self._stats.reads += 1

                if not path.exists():
                    return None

                data = self._codec.decode(path.read_bytes())

            return CacheEntry.from_dict(data)

        except Exception as e:
            logger.error(f"Error reading {key} from {generation}: {e}")
            self._stats.record_error(str(e))
            return None

    def set(self, generation: str, key: str, entry: CacheEntry) -> bool:
        path = self._get_path(generation, key)

        try:
            with self._lock:
                if not self.has_generation(generation):
                    self._stats.dropped_writes += 1
                    return False

                path.parent.mkdir(exist_ok=True)
                self._atomic_write(path, self._codec.encode(entry.to_dict()))
                self._stats.writes += 1
                return True

        except Exception as e:
            logger.error(f"Error writing {key} to {generation}: {e}")
            self._stats.record_error(str(e))
            return False

    def delete(self, generation: str, key: str) -> bool:
        path = self._get_path(generation, key)

        try:
            with self._lock:
                if path.exists():
                    path.unlink()
                    self._stats.deletes += 1
                    return True
                return False

        except OSError as e:
            logger.error(f"Error deleting {key} from {generation}: {e}")
            self._stats.record_error(str(e))
            return False

    def delete_generation(self, generation: str) -> bool:
        gen_dir = self._generation_dir(generation)

        try:
            with self._lock:
                if not gen_dir.exists():
                    return False
                # Drop the name file first so a crash mid-rmtree leaves no
                # half-deleted generation visible.
                name_file = gen_dir / self.NAME_FILE
                if name_file.exists():
                    name_file.unlink()
                shutil.rmtree(gen_dir)
                self._stats.generations_deleted += 1
                return True

        except OSError as e:
            logger.error(f"Error deleting generation {generation}: {e}")
            self._stats.record_error(str(e))
            return False

    def generations(self) -> Set[str]:
        names = set()
        for gen_dir in self.base_path.iterdir():
            name_file = gen_dir / self.NAME_FILE
            if gen_dir.is_dir() and name_file.exists():
                try:
                    names.add(name_file.read_text(encoding="utf-8"))
                except OSError as e:
                    logger.warning(f"Unreadable generation marker {name_file}: {e}")
        return names

    def keys(self, generation: str, pattern: Optional[str] = None) -> List[str]:
        """Get all keys in a generation.

        Reads every entry file, since filenames are hashes.
        """
        keys = []
        gen_dir = self._generation_dir(generation)
        if not gen_dir.exists():
            return keys

        for shard_dir in gen_dir.iterdir():
            if not shard_dir.is_dir():
                continue
            for file_path in shard_dir.iterdir():
                if not file_path.is_file() or file_path.name.endswith(self.TMP_SUFFIX):
                    continue
                try:
                    key = self._codec.decode(file_path.read_bytes()).get("key", "")
                except Exception as e:
                    logger.warning(f"Skipping unreadable entry {file_path}: {e}")
                    continue
                if pattern is None or fnmatch.fnmatch(key, pattern):
                    keys.append(key)

        return keys

    def size(self, generation: str) -> int:
        gen_dir = self._generation_dir(generation)
        if not gen_dir.exists():
            return 0
        count = 0
        for shard_dir in gen_dir.iterdir():
            if shard_dir.is_dir():
                count += sum(
                    1 for f in shard_dir.iterdir()
                    if f.is_file() and not f.name.endswith(self.TMP_SUFFIX)
                )
        return count

    def disk_usage(self) -> int:
        """Get total disk usage in bytes."""
        return sum(p.stat().st_size for p in self.base_path.rglob("*") if p.is_file())

    def __repr__(self) -> str:
        return f"FileStore(path={self.base_path})"


__all__ = ["FileStore"]
