"""RoadOffline Fetcher - Network Fetch Capability.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

import httpx

from roadoffline_core.exceptions import NetworkFailure
from roadoffline_core.http.message import Request, Response, ResponseSource

logger = logging.getLogger(__name__)


class Fetcher(ABC):
    """Network fetch capability supplied by the host.

    ``fetch`` returns any HTTP response, whatever its status, and raises
    NetworkFailure only for transport-level failures.
    """

    @abstractmethod
    async def fetch(self, request: Request) -> Response:
        """Fetch a request from the network.

        Raises:
            NetworkFailure: DNS error, refused connection, offline, timeout
        """
        pass

    async def close(self) -> None:
        """Release resources."""

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class HttpxFetcher(Fetcher):
    """Fetcher backed by ``httpx.AsyncClient``.

    No timeout is imposed unless one is configured; a hung request only
    delays its own task.

    Example:
        async with HttpxFetcher() as fetcher:
            response = await fetcher.fetch(Request("https://example.com/"))
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize fetcher.

        Args:
            client: Pre-built client (takes ownership)
            timeout: Optional total timeout in seconds
        """
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=httpx.Timeout(timeout),
        )

    async def fetch(self, request: Request) -> Response:
        try:
            result = await self._client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body or None,
            )
        except httpx.RequestError as e:
            logger.debug(f"Transport failure for {request.url}: {e!r}")
            raise NetworkFailure(request.url, reason=type(e).__name__, original_error=e)

        return Response(
            status=result.status_code,
            headers=dict(result.headers),
            body=result.content,
            url=str(result.url),
            source=ResponseSource.NETWORK,
        )

    async def close(self) -> None:
        await self._client.aclose()

    def __repr__(self) -> str:
        return "HttpxFetcher()"


class CallableFetcher(Fetcher):
    """Adapts an ``async (Request) -> Response`` callable.

    Any exception other than NetworkFailure raised by the callable is
    treated as a transport failure.
    """

    def __init__(self, func: Callable[[Request], Awaitable[Response]]):
        self._func = func

    async def fetch(self, request: Request) -> Response:
        try:
            return await self._func(request)
        except NetworkFailure:
            raise
        except Exception as e:
            raise NetworkFailure(request.url, reason=str(e) or type(e).__name__, original_error=e)


__all__ = ["Fetcher", "HttpxFetcher", "CallableFetcher"]
