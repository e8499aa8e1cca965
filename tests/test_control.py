"""Tests for the control channel.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import pytest

from roadoffline_core.control import ControlChannel, ControlMessage, MessageKind
from roadoffline_core.lifecycle import LifecycleManager

from fakes import BASE, make_config


@pytest.fixture
def lifecycle(storage, fetcher):
    return LifecycleManager(storage, fetcher, make_config("v2", skip_waiting_on_install=False))


class TestControlMessage:
    """Tests for ControlMessage.parse."""

    def test_adopt_now(self):
        """Current message shape."""
        assert ControlMessage.parse({"kind": "ADOPT_NOW"}) == ControlMessage(MessageKind.ADOPT_NOW)

    def test_legacy_skip_waiting(self):
        """Older pages send SKIP_WAITING."""
        assert ControlMessage.parse({"type": "SKIP_WAITING"}).kind == MessageKind.ADOPT_NOW

    def test_background_sync(self):
        """Sync messages carry their tag."""
        message = ControlMessage.parse({"kind": "BACKGROUND_SYNC", "tag": "sync-tasbiix"})
        assert message.kind == MessageKind.BACKGROUND_SYNC
        assert message.tag == "sync-tasbiix"

    @pytest.mark.parametrize("data", [
        None,
        "SKIP_WAITING",
        {},
        {"kind": "RELOAD"},
        {"type": "CLAIM"},
        {"kind": "BACKGROUND_SYNC"},
        {"kind": "BACKGROUND_SYNC", "tag": ""},
        {"kind": "BACKGROUND_SYNC", "tag": 7},
        {"type": ["SKIP_WAITING"]},
        {"type": {"kind": "ADOPT_NOW"}},
        {"kind": ["ADOPT_NOW"]},
        {"kind": {"ADOPT_NOW": 1}},
    ])
    def test_unrecognized(self, data):
        """Anything else is not a control message."""
        assert ControlMessage.parse(data) is None


class TestControlChannel:
    """Tests for ControlChannel."""

    async def test_adopt_now_activates_waiting(self, storage, fetcher, lifecycle):
        """ADOPT_NOW promotes an installed generation past open clients."""
        await storage.open("v1")
        await storage.mark_installed("v1")
        await lifecycle.restore()
        lifecycle.client_connected("tab-1")
        for path in ("/", "/app.js"):
            fetcher.serve(BASE.rstrip("/") + path, b"ok")
        await lifecycle.install()
        channel = ControlChannel(lifecycle)

        assert await channel.post({"type": "SKIP_WAITING"})

        assert lifecycle.active_generation == "v2"
        assert await storage.generations() == {"v2"}

    async def test_adopt_now_applies_to_later_install(self, lifecycle):
        """Without a waiting generation the request is remembered."""
        channel = ControlChannel(lifecycle)

        assert await channel.post({"kind": "ADOPT_NOW"})

        assert lifecycle.skip_waiting_requested
        assert lifecycle.active_generation is None

    async def test_background_sync_runs_handler(self, lifecycle):
        """Registered handlers receive their tag."""
        received = []
        channel = ControlChannel(lifecycle).register_sync("sync-tasbiix", received.append)

        assert await channel.post({"kind": "BACKGROUND_SYNC", "tag": "sync-tasbiix"})

        assert received == ["sync-tasbiix"]
        assert list(channel.acknowledged) == ["sync-tasbiix"]

    async def test_background_sync_async_handler(self, lifecycle):
        """Coroutine handlers are awaited."""
        received = []

        async def handler(tag):
            received.append(tag)

        channel = ControlChannel(lifecycle).register_sync("sync-tasbiix", handler)
        await channel.post({"kind": "BACKGROUND_SYNC", "tag": "sync-tasbiix"})

        assert received == ["sync-tasbiix"]

    async def test_background_sync_without_handler(self, lifecycle):
        """Unknown tags are acknowledged and nothing else happens."""
        channel = ControlChannel(lifecycle)

        assert await channel.post({"kind": "BACKGROUND_SYNC", "tag": "sync-other"})
        assert list(channel.acknowledged) == ["sync-other"]

    async def test_handler_errors_are_contained(self, lifecycle):
        """A failing handler does not fail the post."""

        def handler(tag):
            raise RuntimeError("queue unavailable")

        channel = ControlChannel(lifecycle).register_sync("sync-tasbiix", handler)

        assert await channel.post({"kind": "BACKGROUND_SYNC", "tag": "sync-tasbiix"})

    async def test_unrecognized_is_ignored(self, lifecycle):
        """Unknown messages change nothing."""
        channel = ControlChannel(lifecycle)

        assert not await channel.post({"type": "RELOAD"})
        assert not lifecycle.skip_waiting_requested
        assert list(channel.acknowledged) == []

    async def test_unhashable_type_is_ignored(self, lifecycle):
        """Malformed legacy messages are dropped, not raised."""
        channel = ControlChannel(lifecycle)

        assert not await channel.post({"type": ["SKIP_WAITING"]})
        assert not lifecycle.skip_waiting_requested

    async def test_acknowledged_is_bounded(self, lifecycle):
        """Only the most recent sync tags are kept."""
        channel = ControlChannel(lifecycle, max_acknowledged=3)

        for n in range(10):
            await channel.post({"kind": "BACKGROUND_SYNC", "tag": f"sync-{n}"})

        assert list(channel.acknowledged) == ["sync-7", "sync-8", "sync-9"]
        assert channel.sync_count == 10
