"""Shared fixtures.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import pytest

from roadoffline_core.cache.storage import CacheStorage
from roadoffline_core.store.memory import MemoryStore

from fakes import FakeFetcher


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def storage(store):
    return CacheStorage(store)
