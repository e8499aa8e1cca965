"""RoadOffline Precache - Manifest and Eager Population.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, List, Optional, Tuple

from roadoffline_core.exceptions import InstallFailure, NetworkFailure
from roadoffline_core.http.message import Request, Response
from roadoffline_core.network.fetcher import Fetcher

logger = logging.getLogger(__name__)

DEFAULT_PRECACHE: Tuple[str, ...] = (
    "/",
    "/index.html",
    "/manifest.json",
    "/css/index.css",
    "/css/cibro.css",
    "/css/quran.css",
    "/css/tasbiix.css",
    "/js/main.js",
    "/js/modules/ramadan.js",
    "/js/modules/cibro.js",
    "/js/modules/quran.js",
    "/js/modules/tasbiix.js",
    "/js/modules/animations.js",
    "/data/surahs.json",
    "/data/reflections.json",
    "https://cdnjs.cloudflare.com/ajax/libs/gsap/3.12.5/gsap.min.js",
    "https://cdnjs.cloudflare.com/ajax/libs/gsap/3.12.5/ScrollTrigger.min.js",
    "https://fonts.googleapis.com/css2?family=Amiri+Quran&family=Scheherazade+New:wght@400;700"
    "&family=Inter:wght@300;400;500;600&display=swap",
)


class PrecacheManifest:
    """Ordered list of assets a generation must hold before activation.

    Duplicates are dropped, keeping the first occurrence.

    Example:
        manifest = PrecacheManifest(["/", "/app.js"])
        requests = manifest.requests("https://app.example/")
    """

    def __init__(self, entries: Iterable[str] = DEFAULT_PRECACHE):
        self._entries: List[str] = list(dict.fromkeys(entries))

    @property
    def entries(self) -> List[str]:
        """Manifest entries in order."""
        return list(self._entries)

    @property
    def digest(self) -> str:
        """Short fingerprint of the manifest contents."""
        joined = "\n".join(self._entries).encode("utf-8")
        return hashlib.sha256(joined).hexdigest()[:12]

    def requests(self, base: str) -> List[Request]:
        """Resolve entries against the scope base URL."""
        return [Request.for_url(entry, base=base) for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"PrecacheManifest(entries={len(self._entries)}, digest={self.digest})"


@dataclass
class PrecacheStats:
    """Precache run statistics.

    Attributes:
        total: Entries in the manifest
        fetched: Entries fetched successfully
        failed: Entries that failed
        duration_seconds: Total duration
        started_at: Start time
        completed_at: Completion time
    """

    total: int = 0
    fetched: int = 0
    failed: int = 0
    duration_seconds: float = 0.0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Get success rate."""
        done = self.fetched + self.failed
        return self.fetched / done if done > 0 else 0.0


class Precacher:
    """Fetches every manifest entry, all-or-nothing.

    Fetches run concurrently up to ``max_concurrency``. The first failure,
    either a transport error or a non-2xx status, cancels the remaining
    fetches and raises InstallFailure. Nothing is written to any store;
    the caller decides what to do with the fetched responses.
    """

    def __init__(self, fetcher: Fetcher, max_concurrency: int = 6):
        """Initialize precacher.

        Args:
            fetcher: Network fetch capability
            max_concurrency: Parallel fetches
        """
        self.fetcher = fetcher
        self.max_concurrency = max(1, max_concurrency)
        self._stats = PrecacheStats()

    async def fetch_all(
        self,
        manifest: PrecacheManifest,
        base: str,
        generation: str,
    ) -> List[Tuple[Request, Response]]:
        """Fetch the whole manifest.

        Args:
            manifest: Assets to fetch
            base: Scope base URL for relative entries
            generation: Generation being installed, for error reporting

        Returns:
            (request, response) pairs in manifest order

        Raises:
            InstallFailure: If any entry could not be fetched
        """
        requests = manifest.requests(base)
        self._stats = PrecacheStats(total=len(requests), started_at=datetime.now())
        semaphore = asyncio.Semaphore(self.max_concurrency)

        logger.info(f"Precaching {len(requests)} assets into {generation}")

        tasks = [
            asyncio.ensure_future(self._fetch_one(semaphore, request, generation))
            for request in requests
        ]
        try:
            responses = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        finally:
            self._stats.completed_at = datetime.now()
            self._stats.duration_seconds = (
                self._stats.completed_at - self._stats.started_at
            ).total_seconds()

        logger.info(
            f"Precached {self._stats.fetched} assets into {generation} "
            f"in {self._stats.duration_seconds:.2f}s"
        )
        return list(zip(requests, responses))

    async def _fetch_one(
        self,
        semaphore: asyncio.Semaphore,
        request: Request,
        generation: str,
    ) -> Response:
        async with semaphore:
            try:
                response = await self.fetcher.fetch(request)
            except NetworkFailure as e:
                self._stats.failed += 1
                raise InstallFailure(generation, e.reason, url=request.url) from e

        if not response.ok:
            self._stats.failed += 1
            raise InstallFailure(generation, f"HTTP {response.status}", url=request.url)

        self._stats.fetched += 1
        return response

    def get_stats(self) -> PrecacheStats:
        """Get statistics of the last run."""
        return self._stats


__all__ = [
    "PrecacheManifest",
    "PrecacheStats",
    "Precacher",
    "DEFAULT_PRECACHE",
]
