"""Tests for the async cache storage facade.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import pytest

from roadoffline_core.cache.entry import CacheEntry, EntryMetadata
from roadoffline_core.cache.storage import INSTALLED_KEY, CacheStorage
from roadoffline_core.exceptions import StoreFailure
from roadoffline_core.http.message import Request, Response, ResponseSource

from fakes import FailingWriteStore


class TestGenerationHandle:
    """Tests for GenerationHandle."""

    async def test_put_then_match(self, storage):
        """Exact-key lookup returns the stored response."""
        cache = await storage.open("v1")
        request = Request("http://app.test/data/surahs.json")
        await cache.put(request, Response(body=b"[1,2,3]", headers={"Content-Type": "application/json"}))

        cached = await cache.match(Request("http://APP.test/data/surahs.json#top"))

        assert cached.body == b"[1,2,3]"
        assert cached.headers["Content-Type"] == "application/json"
        assert cached.source == ResponseSource.CACHE

    async def test_stored_copy_is_independent(self, storage):
        """Mutating the caller's response does not change the entry."""
        cache = await storage.open("v1")
        request = Request("http://app.test/a.js")
        response = Response(headers={"ETag": "1"}, body=b"one")
        await cache.put(request, response)

        response.headers["ETag"] = "2"
        first = await cache.match(request)
        first.headers["ETag"] = "3"

        assert (await cache.match(request)).headers["ETag"] == "1"

    async def test_method_is_part_of_identity(self, storage):
        """GET and HEAD entries are distinct."""
        cache = await storage.open("v1")
        await cache.put(Request("http://app.test/a.js"), Response(body=b"get"))

        assert await cache.match(Request("http://app.test/a.js", method="HEAD")) is None

    async def test_put_rejects_unsafe_methods(self, storage):
        """Only GET and HEAD can be stored."""
        cache = await storage.open("v1")
        with pytest.raises(ValueError):
            await cache.put(Request("http://app.test/form", method="POST"), Response())

    async def test_put_after_generation_deleted(self, storage):
        """Writes through a stale handle are dropped, not raised."""
        cache = await storage.open("v1")
        await storage.delete("v1")

        assert not await cache.put(Request("http://app.test/a.js"), Response(body=b"late"))
        assert await storage.generations() == set()

    async def test_match_after_generation_deleted(self, storage):
        """Reads through a stale handle miss."""
        cache = await storage.open("v1")
        request = Request("http://app.test/a.js")
        await cache.put(request, Response(body=b"x"))
        await storage.delete("v1")

        assert await cache.match(request) is None

    async def test_backend_write_failure(self):
        """A rejected write on a live generation raises StoreFailure."""
        storage = CacheStorage(FailingWriteStore())
        cache = await storage.open("v1")

        with pytest.raises(StoreFailure) as exc_info:
            await cache.put(Request("http://app.test/a.js"), Response())

        assert exc_info.value.operation == "put"
        assert exc_info.value.key == "GET http://app.test/a.js"

    async def test_keys_and_size(self, storage):
        """Handles report their contents."""
        cache = await storage.open("v1")
        await cache.put(Request("http://app.test/a.js"), Response())
        await cache.put(Request("http://app.test/b.js"), Response())

        assert sorted(await cache.keys()) == ["GET http://app.test/a.js", "GET http://app.test/b.js"]
        assert await cache.size() == 2

    async def test_corrupt_entry_raises(self, storage):
        """A body that no longer matches its checksum is not served."""
        cache = await storage.open("v1")
        key = "GET http://app.test/a.js"
        entry = CacheEntry(key=key, response=Response(body=b"tampered"), metadata=EntryMetadata(checksum="0" * 16))
        storage.backend.set("v1", key, entry)

        with pytest.raises(StoreFailure) as exc_info:
            await cache.match(Request("http://app.test/a.js"))

        assert exc_info.value.operation == "match"

    async def test_install_marker_is_hidden(self, storage):
        """The install marker is not a stored response."""
        cache = await storage.open("v1")
        await cache.put(Request("http://app.test/a.js"), Response())
        await storage.mark_installed("v1", "abc")

        assert await cache.keys() == ["GET http://app.test/a.js"]
        assert await cache.size() == 1
        assert INSTALLED_KEY in storage.backend.keys("v1")


class TestCacheStorage:
    """Tests for CacheStorage."""

    async def test_generations(self, storage):
        """Opened generations are listed."""
        await storage.open("v1")
        await storage.open("v2")
        assert await storage.generations() == {"v1", "v2"}
        assert await storage.has("v1")

    async def test_delete_missing(self, storage):
        """Deleting an unknown generation reports False."""
        assert not await storage.delete("v9")

    async def test_match_by_generation(self, storage):
        """Lookups name their generation."""
        cache = await storage.open("v1")
        request = Request("http://app.test/a.js")
        await cache.put(request, Response(body=b"x"))

        assert (await storage.match(request, "v1")).body == b"x"
        assert await storage.match(request, "v2") is None

    async def test_independent_instances(self):
        """Two storages over separate backends never interfere."""
        first = CacheStorage(FailingWriteStore())
        second = CacheStorage(FailingWriteStore())
        await first.open("v1")

        assert await second.generations() == set()

    async def test_install_marker(self, storage):
        """Generations are installed only once marked."""
        await storage.open("v1")
        assert not await storage.is_installed("v1")

        await storage.mark_installed("v1")

        assert await storage.is_installed("v1")
        assert not await storage.is_installed("v2")

    async def test_mark_deleted_generation(self, storage):
        """Marking a generation that is gone is a store failure."""
        with pytest.raises(StoreFailure) as exc_info:
            await storage.mark_installed("v1")

        assert exc_info.value.operation == "mark_installed"
