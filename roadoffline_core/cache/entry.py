"""RoadOffline Entry - Cached Response Entry.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from roadoffline_core.http.message import Response, ResponseSource


@dataclass
class EntryMetadata:
    """Metadata for a cache entry.

    Attributes:
        stored_at: When the entry was written
        size_bytes: Size of the response body
        checksum: Body checksum for integrity
        source_url: URL the response was fetched from
    """

    stored_at: float = field(default_factory=time.time)
    size_bytes: int = 0
    checksum: Optional[str] = None
    source_url: Optional[str] = None

    @property
    def age_seconds(self) -> float:
        """Get entry age in seconds."""
        return time.time() - self.stored_at


@dataclass
class CacheEntry:
    """One stored response, keyed by canonical request identity.

    There is no per-entry expiry; entries live as long as their
    generation does.

    Attributes:
        key: Canonical request identity ("GET https://host/path")
        response: Captured response
        generation: Owning generation name
        metadata: Entry metadata
    """

    key: str
    response: Response
    generation: str = ""
    metadata: EntryMetadata = field(default_factory=EntryMetadata)

    def __post_init__(self):
        if self.metadata.size_bytes == 0:
            self.metadata.size_bytes = len(self.response.body)
        if self.metadata.checksum is None:
            self.metadata.checksum = self._calculate_checksum()
        if self.metadata.source_url is None:
            self.metadata.source_url = self.response.url or None

    def _calculate_checksum(self) -> str:
        """Calculate body checksum."""
        return hashlib.md5(self.response.body).hexdigest()[:16]

    def verify_integrity(self) -> bool:
        """Verify the body against the stored checksum.

        Returns:
            True if integrity check passes
        """
        return self._calculate_checksum() == self.metadata.checksum

    def to_response(self) -> Response:
        """Return an independent copy of the stored response."""
        return self.response.clone(source=ResponseSource.CACHE)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Dictionary representation
        """
        return {
            "key": self.key,
            "generation": self.generation,
            "response": self.response.to_dict(),
            "metadata": {
                "stored_at": self.metadata.stored_at,
                "size_bytes": self.metadata.size_bytes,
                "checksum": self.metadata.checksum,
                "source_url": self.metadata.source_url,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        """Create from dictionary.

        Args:
            data: Dictionary data

        Returns:
            CacheEntry instance
        """
        meta = data.get("metadata", {})
        metadata = EntryMetadata(
            stored_at=meta.get("stored_at", time.time()),
            size_bytes=meta.get("size_bytes", 0),
            checksum=meta.get("checksum"),
            source_url=meta.get("source_url"),
        )

        return cls(
            key=data["key"],
            response=Response.from_dict(data["response"]),
            generation=data.get("generation", ""),
            metadata=metadata,
        )

    def __repr__(self) -> str:
        return (
            f"CacheEntry(key={self.key!r}, generation={self.generation!r}, "
            f"status={self.response.status})"
        )


__all__ = ["CacheEntry", "EntryMetadata"]
