"""RoadOffline Messages - Request and Response Records.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Plain data records that cross the boundary between the host application
and the core. Nothing here depends on a particular HTTP client.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

DEFAULT_PORTS = {"http": 80, "https": 443}


class RequestMode(Enum):
    """Request modes, mirroring the fetch standard."""

    NAVIGATE = "navigate"
    SAME_ORIGIN = "same-origin"
    NO_CORS = "no-cors"
    CORS = "cors"


class ResponseSource(Enum):
    """Where a response came from."""

    NETWORK = "network"
    CACHE = "cache"
    SYNTHETIC = "synthetic"


def normalize_url(url: str) -> str:
    """Normalize an absolute URL for use as a cache identity.

    Lower-cases scheme and host, drops the fragment and default port,
    and turns an empty path into ``/``.

    Args:
        url: Absolute URL

    Returns:
        Normalized URL
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    netloc = parts.netloc

    if parts.hostname:
        host = parts.hostname.lower()
        if ":" in host:
            host = f"[{host}]"
        port = parts.port
        if port is not None and DEFAULT_PORTS.get(scheme) != port:
            host = f"{host}:{port}"
        userinfo = netloc.rpartition("@")[0]
        netloc = f"{userinfo}@{host}" if userinfo else host

    path = parts.path
    if not path and scheme in DEFAULT_PORTS:
        path = "/"

    return urlunsplit((scheme, netloc, path, parts.query, ""))


@dataclass
class Request:
    """An intercepted request.

    Attributes:
        url: Absolute URL
        method: HTTP method
        headers: Request headers
        body: Request body
        mode: Request mode; NAVIGATE marks a top-level document load
    """

    url: str
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    mode: RequestMode = RequestMode.NO_CORS

    def __post_init__(self):
        self.method = self.method.upper()

    @classmethod
    def for_url(
        cls,
        path_or_url: str,
        base: Optional[str] = None,
        mode: RequestMode = RequestMode.NO_CORS,
    ) -> "Request":
        """Build a GET request, resolving relative paths against ``base``."""
        url = urljoin(base, path_or_url) if base else path_or_url
        return cls(url=url, mode=mode)

    @property
    def url_parts(self) -> SplitResult:
        """Parsed URL."""
        return urlsplit(self.url)

    @property
    def is_navigation(self) -> bool:
        """Whether this is a top-level document load."""
        return self.mode == RequestMode.NAVIGATE

    @property
    def cache_key(self) -> str:
        """Canonical request identity."""
        return f"{self.method} {normalize_url(self.url)}"

    def __repr__(self) -> str:
        return f"Request({self.method} {self.url!r}, mode={self.mode.value})"


@dataclass
class Response:
    """A captured or synthetic response.

    Attributes:
        status: HTTP status code
        headers: Response headers
        body: Response body bytes
        url: Final URL the response was fetched from
        captured_at: Capture timestamp
        source: Where the response came from
    """

    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    url: str = ""
    captured_at: float = field(default_factory=time.time)
    source: ResponseSource = ResponseSource.NETWORK

    @property
    def ok(self) -> bool:
        """Whether the status is in the 2xx range."""
        return 200 <= self.status <= 299

    def clone(self, source: Optional[ResponseSource] = None) -> "Response":
        """Return an independent copy.

        Args:
            source: Override the source of the copy

        Returns:
            New Response sharing the immutable body
        """
        return Response(
            status=self.status,
            headers=dict(self.headers),
            body=self.body,
            url=self.url,
            captured_at=self.captured_at,
            source=source or self.source,
        )

    def text(self, encoding: str = "utf-8") -> str:
        """Decode the body."""
        return self.body.decode(encoding, errors="replace")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a serializable dictionary."""
        return {
            "status": self.status,
            "headers": dict(self.headers),
            "body": base64.b64encode(self.body).decode("ascii"),
            "url": self.url,
            "captured_at": self.captured_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Response":
        """Create from dictionary."""
        return cls(
            status=data.get("status", 200),
            headers=dict(data.get("headers", {})),
            body=base64.b64decode(data.get("body", "")),
            url=data.get("url", ""),
            captured_at=data.get("captured_at", time.time()),
            source=ResponseSource.CACHE,
        )

    def __repr__(self) -> str:
        return (
            f"Response(status={self.status}, source={self.source.value}, "
            f"bytes={len(self.body)})"
        )


def offline_response() -> Response:
    """Synthetic response signalling that nothing could be served."""
    return Response(
        status=503,
        headers={"Content-Type": "text/plain"},
        body=b"Offline",
        source=ResponseSource.SYNTHETIC,
    )


__all__ = [
    "Request",
    "RequestMode",
    "Response",
    "ResponseSource",
    "normalize_url",
    "offline_response",
]
