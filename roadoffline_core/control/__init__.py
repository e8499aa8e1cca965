"""Control module - Host control messages."""

from roadoffline_core.control.channel import (
    ControlChannel,
    ControlMessage,
    MessageKind,
    SyncHandler,
)

__all__ = ["ControlChannel", "ControlMessage", "MessageKind", "SyncHandler"]
