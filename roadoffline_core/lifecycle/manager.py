"""RoadOffline Lifecycle - Generation Install, Activation and Cleanup.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Set

from roadoffline_core.cache.storage import CacheStorage, GenerationHandle
from roadoffline_core.exceptions import InstallFailure, StoreFailure
from roadoffline_core.lifecycle.precache import PrecacheManifest, Precacher
from roadoffline_core.network.fetcher import Fetcher

if TYPE_CHECKING:
    from roadoffline_core.config import WorkerConfig

logger = logging.getLogger(__name__)


class GenerationState(Enum):
    """Lifecycle states of a generation."""

    INSTALLING = auto()
    INSTALLED = auto()    # Populated, waiting to be activated
    ACTIVE = auto()       # Serving requests
    SUPERSEDED = auto()   # Replaced by a newer generation
    DELETED = auto()
    REDUNDANT = auto()    # Install failed; never served


StateListener = Callable[[str, GenerationState], None]


class LifecycleManager:
    """Owns creation, activation and deletion of cache generations.

    Install populates the generation named after the current version tag
    from the precache manifest, all-or-nothing. Activate deletes every
    other generation and makes the new one the generation strategies
    read from. Activation waits for connected clients to leave unless
    skip-waiting is in effect.

    Example:
        manager = LifecycleManager(storage, fetcher, WorkerConfig(version_tag="v2"))
        await manager.restore()
        await manager.install()   # activates right away by default
        handle = manager.active_handle()
    """

    def __init__(
        self,
        storage: CacheStorage,
        fetcher: Fetcher,
        config: "WorkerConfig",
    ):
        """Initialize lifecycle manager.

        Args:
            storage: Cache storage
            fetcher: Network fetch capability for precaching
            config: Worker configuration
        """
        self.storage = storage
        self.config = config
        self.manifest = PrecacheManifest(config.precache)
        self.precacher = Precacher(fetcher, max_concurrency=config.precache_concurrency)

        self._active: Optional[str] = None
        self._waiting: Optional[str] = None
        self._states: Dict[str, GenerationState] = {}
        self._skip_waiting = config.skip_waiting_on_install
        self._clients: Set[str] = set()
        self._listeners: List[StateListener] = []
        self._lock = asyncio.Lock()

    @property
    def version_tag(self) -> str:
        return self.config.version_tag

    @property
    def generation_name(self) -> str:
        return self.config.generation_name

    @property
    def active_generation(self) -> Optional[str]:
        """Generation currently serving requests."""
        return self._active

    @property
    def waiting_generation(self) -> Optional[str]:
        """Installed generation waiting for activation."""
        return self._waiting

    @property
    def skip_waiting_requested(self) -> bool:
        return self._skip_waiting

    @property
    def clients(self) -> Set[str]:
        """Connected client sessions."""
        return set(self._clients)

    def state_of(self, generation: str) -> Optional[GenerationState]:
        """Last known state of a generation."""
        return self._states.get(generation)

    @property
    def state(self) -> Optional[GenerationState]:
        """State of this version's generation."""
        return self.state_of(self.generation_name)

    def on_state_change(self, listener: StateListener) -> "LifecycleManager":
        """Register a state change listener.

        Returns:
            Self for chaining
        """
        self._listeners.append(listener)
        return self

    def _set_state(self, generation: str, state: GenerationState) -> None:
        self._states[generation] = state
        logger.debug(f"Generation {generation} -> {state.name}")
        for listener in self._listeners:
            try:
                listener(generation, state)
            except Exception as e:
                logger.error(f"State listener error: {e}")

    def active_handle(self) -> Optional[GenerationHandle]:
        """Handle on the active generation, for strategies."""
        if self._active is None:
            return None
        return self.storage.handle(self._active)

    async def restore(self) -> Optional[str]:
        """Adopt what a durable store already holds after a restart.

        Generations without an install marker were left by an install
        that never finished; they are deleted. The generation for the
        current version becomes active if it is installed. Otherwise, a
        single installed generation from a previous version keeps
        serving until this version is installed.

        Returns:
            Active generation name, if any
        """
        existing: Set[str] = set()
        for generation in sorted(await self.storage.generations()):
            if await self.storage.is_installed(generation):
                existing.add(generation)
                continue
            logger.warning(f"Deleting incomplete generation {generation}")
            await self.storage.delete(generation)
            self._set_state(generation, GenerationState.REDUNDANT)

        if self.generation_name in existing:
            self._active = self.generation_name
        elif len(existing) == 1:
            self._active = next(iter(existing))
        elif existing:
            logger.warning(
                f"Cannot tell which of {sorted(existing)} was active; "
                f"serving from network until {self.generation_name} is installed"
            )

        if self._active is not None:
            self._set_state(self._active, GenerationState.ACTIVE)
            logger.info(f"Restored active generation {self._active}")
        return self._active

    async def install(self) -> str:
        """Populate this version's generation from the precache manifest.

        Every asset is fetched before anything is written, and the
        generation is marked installed only after the last write. A crash
        in between leaves an unmarked generation that ``restore()``
        discards.

        Reinstalling the version that is already active rewrites its
        entries in place. If a write fails partway, the generation keeps
        serving with a mix of old and new entries, each one whole, and
        keeps its install marker from the earlier install.

        Returns:
            Installed generation name

        Raises:
            InstallFailure: If any asset could not be fetched or stored.
                The previously active generation is left untouched.
        """
        async with self._lock:
            name = self.generation_name
            reinstall = name == self._active
            self._set_state(name, GenerationState.INSTALLING)
            logger.info(f"Installing {name} ({len(self.manifest)} assets, manifest {self.manifest.digest})")

            try:
                fetched = await self.precacher.fetch_all(self.manifest, self.config.scope, name)
                handle = await self.storage.open(name)
                for request, response in fetched:
                    if not await handle.put(request, response):
                        raise StoreFailure(name, "put", request.cache_key)
                await self.storage.mark_installed(name, self.manifest.digest)

            except (InstallFailure, StoreFailure) as e:
                await self._abort_install(name, reinstall)
                logger.error(f"Install of {name} failed: {e}")
                if isinstance(e, InstallFailure):
                    raise
                raise InstallFailure(name, f"store failure during {e.operation}") from e

            if reinstall:
                self._set_state(name, GenerationState.ACTIVE)
                logger.info(f"Reinstalled active generation {name}")
                return name

            self._waiting = name
            self._set_state(name, GenerationState.INSTALLED)
            logger.info(f"Installed {name}")

            if self._skip_waiting or not self._clients or self._active is None:
                await self._activate()
            else:
                logger.info(f"{name} waiting for {len(self._clients)} client(s) to close")

            return name

    async def _abort_install(self, name: str, reinstall: bool) -> None:
        if reinstall:
            self._set_state(name, GenerationState.ACTIVE)
            return
        if await self.storage.has(name):
            await self.storage.delete(name)
        self._set_state(name, GenerationState.REDUNDANT)

    async def activate(self) -> bool:
        """Make this version's generation active and delete all others.

        Returns:
            True if activated, False if the generation is not installed
        """
        async with self._lock:
            return await self._activate()

    async def _activate(self) -> bool:
        name = self.generation_name
        if not await self.storage.is_installed(name):
            logger.warning(f"Cannot activate {name}: not installed")
            return False

        logger.info(f"Activating {name}")
        previous = self._active

        # Switch readers first; requests still holding a handle on a
        # deleted generation read None and their writes are dropped.
        self._active = name
        self._waiting = None
        self._set_state(name, GenerationState.ACTIVE)

        for generation in sorted(await self.storage.generations()):
            if generation == name:
                continue
            if generation == previous:
                self._set_state(generation, GenerationState.SUPERSEDED)
            logger.info(f"Deleting old generation {generation}")
            await self.storage.delete(generation)
            self._set_state(generation, GenerationState.DELETED)

        logger.info(f"Activated {name}; claimed {len(self._clients)} client(s)")
        return True

    async def skip_waiting(self) -> bool:
        """Activate without waiting for connected clients.

        Applies to a generation already waiting and to future installs.

        Returns:
            True if a waiting generation was activated now
        """
        self._skip_waiting = True
        async with self._lock:
            if self._waiting is None:
                return False
            return await self._activate()

    def client_connected(self, client_id: str) -> None:
        """Register a client session."""
        self._clients.add(client_id)

    async def client_disconnected(self, client_id: str) -> bool:
        """Unregister a client session.

        Returns:
            True if this triggered activation of a waiting generation
        """
        self._clients.discard(client_id)
        if self._clients or self._waiting is None:
            return False
        async with self._lock:
            if self._waiting is None:
                return False
            return await self._activate()

    def __repr__(self) -> str:
        return (
            f"LifecycleManager(generation={self.generation_name!r}, "
            f"active={self._active!r}, waiting={self._waiting!r})"
        )


__all__ = ["LifecycleManager", "GenerationState", "StateListener"]
