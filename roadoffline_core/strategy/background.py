"""RoadOffline Background Tasks - Fire-and-Forget Work Tracking.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Tracks detached tasks so they are neither garbage collected nor lost.

    A failing task is logged here and never re-raised to whoever spawned it.
    ``drain()`` waits for everything outstanding, which makes background
    writes observable in tests and lets hosts shut down cleanly.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()
        self.completed = 0
        self.failed = 0

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> asyncio.Task:
        """Schedule a coroutine on the running loop.

        Args:
            coro: Coroutine to run
            name: Task name for debugging

        Returns:
            The created task
        """
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.failed += 1
            logger.error(f"Background task {task.get_name()} failed: {exc!r}")
        else:
            self.completed += 1

    @property
    def pending(self) -> int:
        """Number of unfinished tasks."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until no tracked task is left, including ones spawned meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def __repr__(self) -> str:
        return f"BackgroundTasks(pending={self.pending})"


__all__ = ["BackgroundTasks"]
