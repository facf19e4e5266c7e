"""Session relay: connection registry and relay message builders."""

from .connection_registry import ClientConnection, ConnectionRegistry
from .relay_messages import RelayEvent, RelayMessageType

__all__ = [
    "ClientConnection",
    "ConnectionRegistry",
    "RelayEvent",
    "RelayMessageType",
]
