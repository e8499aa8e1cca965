"""RoadOffline Control Channel - Out-of-Band Messages from the Host.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import inspect
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Union

from roadoffline_core.lifecycle.manager import LifecycleManager

logger = logging.getLogger(__name__)

# Most recent background sync tags kept for inspection.
MAX_ACKNOWLEDGED = 100

SyncHandler = Callable[[str], Union[None, Awaitable[None]]]


class MessageKind(Enum):
    """Recognized control message kinds."""

    ADOPT_NOW = "ADOPT_NOW"
    BACKGROUND_SYNC = "BACKGROUND_SYNC"


# Message shapes sent by older host pages.
LEGACY_TYPES = {"SKIP_WAITING": MessageKind.ADOPT_NOW}


@dataclass(frozen=True)
class ControlMessage:
    """A control message.

    Attributes:
        kind: Message kind
        tag: Sync tag, for BACKGROUND_SYNC only
    """

    kind: MessageKind
    tag: Optional[str] = None

    @classmethod
    def parse(cls, data: Any) -> Optional["ControlMessage"]:
        """Parse a raw message.

        Accepts ``{"kind": "ADOPT_NOW"}``, ``{"kind": "BACKGROUND_SYNC",
        "tag": "..."}`` and ``{"type": "SKIP_WAITING"}``.

        Returns:
            ControlMessage, or None if the message is not recognized
        """
        if isinstance(data, ControlMessage):
            return data
        if not isinstance(data, dict):
            return None

        if "kind" in data:
            if not isinstance(data["kind"], str):
                return None
            try:
                kind = MessageKind(data["kind"])
            except ValueError:
                return None
        elif isinstance(data.get("type"), str) and data["type"] in LEGACY_TYPES:
            kind = LEGACY_TYPES[data["type"]]
        else:
            return None

        if kind == MessageKind.BACKGROUND_SYNC:
            tag = data.get("tag")
            if not isinstance(tag, str) or not tag:
                return None
            return cls(kind=kind, tag=tag)

        return cls(kind=kind)


class ControlChannel:
    """Receives control messages from the host application.

    ADOPT_NOW makes a waiting generation active immediately. BACKGROUND_SYNC
    is acknowledged and handed to whatever handler the host registered for
    its tag; the work itself is not done here.

    Example:
        channel = ControlChannel(lifecycle)
        channel.register_sync("sync-tasbiix", flush_counter_queue)
        await channel.post({"kind": "BACKGROUND_SYNC", "tag": "sync-tasbiix"})
    """

    def __init__(self, lifecycle: LifecycleManager, max_acknowledged: int = MAX_ACKNOWLEDGED):
        """Initialize control channel.

        Args:
            lifecycle: Lifecycle manager that ADOPT_NOW acts on
            max_acknowledged: Most recent sync tags kept in ``acknowledged``
        """
        self.lifecycle = lifecycle
        self._sync_handlers: Dict[str, SyncHandler] = {}
        self.acknowledged: Deque[str] = deque(maxlen=max_acknowledged)
        self.sync_count = 0

    def register_sync(self, tag: str, handler: SyncHandler) -> "ControlChannel":
        """Register the handler that performs deferred work for a tag.

        Returns:
            Self for chaining
        """
        self._sync_handlers[tag] = handler
        return self

    async def post(self, data: Any) -> bool:
        """Deliver a message.

        Returns:
            True if the message was recognized
        """
        message = ControlMessage.parse(data)
        if message is None:
            logger.debug(f"Ignoring unrecognized control message: {data!r}")
            return False

        if message.kind == MessageKind.ADOPT_NOW:
            logger.info("Adopt-now requested")
            await self.lifecycle.skip_waiting()
        else:
            await self._background_sync(message.tag)

        return True

    async def _background_sync(self, tag: str) -> None:
        self.acknowledged.append(tag)
        self.sync_count += 1
        handler = self._sync_handlers.get(tag)
        if handler is None:
            logger.info(f"Acknowledged background sync {tag!r}; no handler registered")
            return

        logger.info(f"Running background sync {tag!r}")
        try:
            result = handler(tag)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Background sync {tag!r} failed: {e}")


__all__ = ["ControlChannel", "ControlMessage", "MessageKind", "MAX_ACKNOWLEDGED", "SyncHandler"]
