"""Tests for generation store backends.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import pytest

from roadoffline_core.cache.entry import CacheEntry
from roadoffline_core.exceptions import ConfigError
from roadoffline_core.http.message import Response
from roadoffline_core.protocol.serializer import CompressionType, EntryCodec, get_serializer
from roadoffline_core.store.backend import StorageConfig
from roadoffline_core.store.file import FileStore
from roadoffline_core.store.memory import MemoryStore
from roadoffline_core.store.redis import RedisConfig, RedisStore


def make_entry(key="GET http://app.test/a.js", body=b"console.log(1)", status=200):
    return CacheEntry(key=key, response=Response(status=status, body=body, url=key.split(" ", 1)[1]))


class FakePipeline:
    def __init__(self, client):
        self._client = client
        self._ops = []

    def srem(self, key, member):
        self._ops.append(lambda: self._client.srem(key, member))

    def delete(self, key):
        self._ops.append(lambda: self._client.delete(key))

    def execute(self):
        return [op() for op in self._ops]


class FakeRedis:
    """Just enough of redis.Redis for RedisStore."""

    def __init__(self):
        self.sets = {}
        self.hashes = {}

    def sadd(self, key, member):
        members = self.sets.setdefault(key, set())
        if member.encode() in members:
            return 0
        members.add(member.encode())
        return 1

    def srem(self, key, member):
        members = self.sets.get(key, set())
        if member.encode() not in members:
            return 0
        members.discard(member.encode())
        return 1

    def sismember(self, key, member):
        return member.encode() in self.sets.get(key, set())

    def smembers(self, key):
        return set(self.sets.get(key, set()))

    def hget(self, key, field):
        return self.hashes.get(key, {}).get(field.encode())

    def hset(self, key, field, value):
        self.hashes.setdefault(key, {})[field.encode()] = value
        return 1

    def hdel(self, key, field):
        return 1 if self.hashes.get(key, {}).pop(field.encode(), None) is not None else 0

    def hkeys(self, key):
        return list(self.hashes.get(key, {}).keys())

    def hlen(self, key):
        return len(self.hashes.get(key, {}))

    def delete(self, key):
        return 1 if self.hashes.pop(key, None) is not None else 0

    def pipeline(self):
        return FakePipeline(self)


@pytest.fixture(params=["memory", "file", "redis"])
def backend(request, tmp_path):
    if request.param == "memory":
        return MemoryStore()
    if request.param == "file":
        return FileStore(str(tmp_path / "cache"))
    return RedisStore(RedisConfig(prefix="test:"), client=FakeRedis())


class TestBackendContract:
    """Behavior shared by every backend."""

    def test_open_is_idempotent(self, backend):
        """Opening twice keeps one empty generation."""
        assert backend.open("v1")
        assert backend.open("v1")
        assert backend.generations() == {"v1"}
        assert backend.get_stats().generations_created == 1

    def test_set_and_get(self, backend):
        """Stored entries come back intact."""
        backend.open("v1")
        entry = make_entry()

        assert backend.set("v1", entry.key, entry)
        restored = backend.get("v1", entry.key)

        assert restored.response.body == b"console.log(1)"
        assert restored.response.status == 200
        assert restored.verify_integrity()

    def test_get_missing(self, backend):
        """Unknown keys and generations read as None."""
        backend.open("v1")
        assert backend.get("v1", "GET http://app.test/nope") is None
        assert backend.get("v9", "GET http://app.test/nope") is None

    def test_set_overwrites(self, backend):
        """One entry per key."""
        backend.open("v1")
        backend.set("v1", "k", make_entry(key="GET http://app.test/k", body=b"old"))
        backend.set("v1", "k", make_entry(key="GET http://app.test/k", body=b"new"))

        assert backend.get("v1", "k").response.body == b"new"
        assert backend.size("v1") == 1

    def test_write_to_missing_generation_is_dropped(self, backend):
        """Writes never create a generation."""
        assert not backend.set("gone", "k", make_entry())
        assert not backend.has_generation("gone")
        assert backend.get_stats().dropped_writes == 1

    def test_generations_are_isolated(self, backend):
        """Entries are scoped to their generation."""
        backend.open("v1")
        backend.open("v2")
        entry = make_entry()
        backend.set("v1", entry.key, entry)

        assert backend.get("v2", entry.key) is None
        assert backend.size("v2") == 0

    def test_delete_entry(self, backend):
        """Deleting an entry leaves the generation."""
        backend.open("v1")
        entry = make_entry()
        backend.set("v1", entry.key, entry)

        assert backend.delete("v1", entry.key)
        assert not backend.delete("v1", entry.key)
        assert backend.has_generation("v1")

    def test_delete_generation(self, backend):
        """A deleted generation is gone with all its entries."""
        backend.open("v1")
        entry = make_entry()
        backend.set("v1", entry.key, entry)

        assert backend.delete_generation("v1")
        assert not backend.delete_generation("v1")
        assert backend.generations() == set()
        assert backend.get("v1", entry.key) is None
        assert not backend.set("v1", entry.key, entry)

    def test_keys_with_pattern(self, backend):
        """Keys can be filtered with a glob."""
        backend.open("v1")
        for path in ("/a.js", "/b.css", "/c.js"):
            entry = make_entry(key=f"GET http://app.test{path}")
            backend.set("v1", entry.key, entry)

        assert sorted(backend.keys("v1", "*.js")) == ["GET http://app.test/a.js", "GET http://app.test/c.js"]
        assert len(backend.keys("v1")) == 3

    def test_scan_yields_entries(self, backend):
        """scan walks every key and entry."""
        backend.open("v1")
        entry = make_entry()
        backend.set("v1", entry.key, entry)

        scanned = dict(backend.scan("v1"))
        assert list(scanned) == [entry.key]

    def test_health_check(self, backend):
        """A working backend is healthy."""
        assert backend.health_check()

    def test_contains(self, backend):
        """`in` checks generation existence."""
        backend.open("v1")
        assert "v1" in backend
        assert "v2" not in backend


class TestMemoryStore:
    """MemoryStore specifics."""

    def test_memory_usage(self):
        """Counts body bytes."""
        store = MemoryStore()
        store.open("v1")
        entry = make_entry(body=b"x" * 100)
        store.set("v1", entry.key, entry)
        assert store.memory_usage() == 100


class TestFileStore:
    """FileStore specifics."""

    def test_survives_restart(self, tmp_path):
        """Generations and entries persist across instances."""
        first = FileStore(str(tmp_path))
        first.open("hadiye-v1.0.0")
        entry = make_entry()
        first.set("hadiye-v1.0.0", entry.key, entry)

        second = FileStore(str(tmp_path))

        assert second.generations() == {"hadiye-v1.0.0"}
        assert second.get("hadiye-v1.0.0", entry.key).response.body == b"console.log(1)"

    def test_json_with_gzip(self, tmp_path):
        """Entries round-trip through JSON and compression."""
        config = StorageConfig(serializer="json", compression="gzip", compression_threshold=16)
        store = FileStore(str(tmp_path), config)
        store.open("v1")
        entry = make_entry(body=b"a" * 4096)
        store.set("v1", entry.key, entry)

        assert store.get("v1", entry.key).response.body == b"a" * 4096
        assert store.disk_usage() < 4096

    def test_unknown_serializer(self, tmp_path):
        """A misconfigured store fails at construction."""
        with pytest.raises(ConfigError):
            FileStore(str(tmp_path), StorageConfig(serializer="yaml"))

    def test_no_temp_files_left(self, tmp_path):
        """Atomic writes clean up after themselves."""
        store = FileStore(str(tmp_path))
        store.open("v1")
        entry = make_entry()
        store.set("v1", entry.key, entry)

        assert not list(tmp_path.rglob("*.tmp"))

    def test_corrupt_file_reads_as_miss(self, tmp_path):
        """Unreadable entries are logged and treated as absent."""
        store = FileStore(str(tmp_path))
        store.open("v1")
        entry = make_entry()
        store.set("v1", entry.key, entry)
        store._get_path("v1", entry.key).write_bytes(b"?garbage")

        assert store.get("v1", entry.key) is None
        assert store.get_stats().errors == 1


class TestRedisStore:
    """RedisStore specifics."""

    def test_key_layout(self):
        """Generations live in a set and a hash per generation."""
        client = FakeRedis()
        store = RedisStore(RedisConfig(prefix="app:"), client=client)
        store.open("v1")
        entry = make_entry()
        store.set("v1", entry.key, entry)

        assert client.sets["app:generations"] == {b"v1"}
        assert entry.key.encode() in client.hashes["app:gen:v1"]

    def test_client_errors_are_contained(self):
        """Redis failures are reported, not raised."""

        class BrokenRedis(FakeRedis):
            def hget(self, key, field):
                raise ConnectionError("connection reset")

        store = RedisStore(client=BrokenRedis())
        store.open("v1")

        assert store.get("v1", "k") is None
        assert store.get_stats().errors == 1


class TestEntryCodec:
    """Tests for EntryCodec."""

    def test_small_payloads_are_not_compressed(self):
        """Below the threshold the marker says none."""
        codec = EntryCodec(get_serializer("json"), CompressionType.ZLIB, threshold=1024)
        assert codec.encode({"a": 1})[:1] == CompressionType.NONE.value

    def test_reads_other_compression_settings(self):
        """Decoding follows the marker, not the codec setting."""
        writer = EntryCodec(get_serializer("json"), CompressionType.ZLIB, threshold=1)
        reader = EntryCodec(get_serializer("json"), CompressionType.NONE)
        blob = writer.encode({"payload": "x" * 500})

        assert blob[:1] == CompressionType.ZLIB.value
        assert reader.decode(blob) == {"payload": "x" * 500}

    def test_unknown_marker(self):
        """Foreign data is rejected."""
        with pytest.raises(ValueError):
            EntryCodec().decode(b"?data")

    def test_msgpack(self):
        """MessagePack serializer round-trips entry dicts."""
        pytest.importorskip("msgpack")
        codec = EntryCodec(get_serializer("msgpack"))
        data = make_entry().to_dict()
        assert codec.decode(codec.encode(data)) == data
