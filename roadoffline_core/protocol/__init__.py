"""Protocol module - Entry encoding for durable stores."""

from roadoffline_core.protocol.serializer import (
    CompressionType,
    EntryCodec,
    JSONSerializer,
    MsgPackSerializer,
    PickleSerializer,
    Serializer,
    available_serializers,
    get_serializer,
    register_serializer,
)

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
