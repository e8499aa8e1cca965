"""RoadOffline Serializer - Entry Encoding for Durable Stores.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Durable backends persist ``CacheEntry.to_dict()`` records. A record is
plain data (strings, numbers, nested dicts), so every format below can
carry it; they differ in size, speed and whether the files are readable.
"""

from __future__ import annotations

import gzip
import json
import logging
import pickle
import zlib
from abc import ABC, abstractmethod
from enum import Enum
from types import ModuleType
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from roadoffline_core.exceptions import ConfigError

if TYPE_CHECKING:
    from roadoffline_core.store.backend import StorageConfig

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class CompressionType(Enum):
    """Compression applied to encoded records.

    The value is the marker byte stored in front of every payload.
    """

    NONE = b"n"
    GZIP = b"g"
    ZLIB = b"z"


class Serializer(ABC):
    """Turns entry records into bytes and back."""

    name: str

    @abstractmethod
    def dumps(self, record: Record) -> bytes:
        """Encode a record."""
        pass

    @abstractmethod
    def loads(self, data: bytes) -> Record:
        """Decode a record.

        Raises:
            ValueError: If the data is not a valid payload
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class JSONSerializer(Serializer):
    """Readable on disk; bodies are already base64 text in records."""

    name = "json"

    def dumps(self, record: Record) -> bytes:
        return json.dumps(record, separators=(",", ":")).encode("utf-8")

    def loads(self, data: bytes) -> Record:
        return json.loads(data)


class PickleSerializer(Serializer):
    """Fastest option. Only for stores nobody else can write to."""

    name = "pickle"

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL):
        self.protocol = protocol

    def dumps(self, record: Record) -> bytes:
        return pickle.dumps(record, protocol=self.protocol)

    def loads(self, data: bytes) -> Record:
        try:
            return pickle.loads(data)
        except pickle.UnpicklingError as e:
            raise ValueError(f"Invalid pickle payload: {e}") from e


def _msgpack() -> ModuleType:
    try:
        import msgpack
    except ImportError:
        raise ImportError("msgpack package not installed. Run: pip install roadoffline[msgpack]")
    return msgpack


class MsgPackSerializer(Serializer):
    """Compact binary records. Requires the msgpack extra."""

    name = "msgpack"

    def dumps(self, record: Record) -> bytes:
        return _msgpack().packb(record, use_bin_type=True)

    def loads(self, data: bytes) -> Record:
        return _msgpack().unpackb(data, raw=False)


_SERIALIZERS: Dict[str, Serializer] = {}
DEFAULT_SERIALIZER = "pickle"


def register_serializer(serializer: Serializer) -> None:
    """Make a serializer available by name to store configurations."""
    _SERIALIZERS[serializer.name] = serializer


def available_serializers() -> List[str]:
    return sorted(_SERIALIZERS)


def get_serializer(name: Optional[str] = None) -> Serializer:
    """Look up a serializer.

    Args:
        name: Registered name, or None for the default

    Raises:
        ConfigError: If no serializer is registered under ``name``
    """
    name = name or DEFAULT_SERIALIZER
    try:
        return _SERIALIZERS[name]
    except KeyError:
        raise ConfigError(
            f"Unknown serializer {name!r}; expected one of {available_serializers()}",
            field="serializer",
        )


for _serializer in (JSONSerializer(), PickleSerializer(), MsgPackSerializer()):
    register_serializer(_serializer)


class EntryCodec:
    """Serializer plus optional compression.

    Each payload starts with its compression marker, so changing the
    compression setting of a store keeps existing files readable.

    Example:
        codec = EntryCodec(get_serializer("json"), CompressionType.GZIP)
        blob = codec.encode(entry.to_dict())
        record = codec.decode(blob)
    """

    def __init__(
        self,
        serializer: Optional[Serializer] = None,
        compression: CompressionType = CompressionType.NONE,
        threshold: int = 1024,
    ):
        """Initialize codec.

        Args:
            serializer: Record serializer (default: pickle)
            compression: Compression for payloads of ``threshold`` bytes or more
            threshold: Size below which payloads are stored as-is
        """
        self.serializer = serializer or get_serializer()
        self.compression = compression
        self.threshold = threshold

    @classmethod
    def from_config(cls, config: "StorageConfig") -> "EntryCodec":
        """Build the codec a storage configuration asks for.

        Raises:
            ConfigError: On an unknown serializer or compression name
        """
        try:
            compression = CompressionType[config.compression.upper()]
        except KeyError:
            raise ConfigError(f"Unknown compression {config.compression!r}", field="compression")
        return cls(get_serializer(config.serializer), compression, config.compression_threshold)

    def encode(self, record: Record) -> bytes:
        data = self.serializer.dumps(record)
        if self.compression is CompressionType.NONE or len(data) < self.threshold:
            return CompressionType.NONE.value + data

        compress = gzip.compress if self.compression is CompressionType.GZIP else zlib.compress
        packed = compress(data)
        if len(packed) >= len(data):
            return CompressionType.NONE.value + data
        return self.compression.value + packed

    def decode(self, blob: bytes) -> Record:
        """Decode a payload written with any compression setting.

        Raises:
            ValueError: On an unknown compression marker
        """
        marker, data = blob[:1], blob[1:]
        if marker == CompressionType.GZIP.value:
            data = gzip.decompress(data)
        elif marker == CompressionType.ZLIB.value:
            data = zlib.decompress(data)
        elif marker != CompressionType.NONE.value:
            raise ValueError(f"Unknown compression marker: {marker!r}")
        return self.serializer.loads(data)

    def __repr__(self) -> str:
        return f"EntryCodec(serializer={self.serializer.name}, compression={self.compression.name})"


__all__ = [
    "CompressionType",
    "EntryCodec",
    "JSONSerializer",
    "MsgPackSerializer",
    "PickleSerializer",
    "Serializer",
    "available_serializers",
    "get_serializer",
    "register_serializer",
]
