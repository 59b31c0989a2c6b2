"""Clients for the relay server.

Provides the real-time broadcast transport and the room client.
"""

from worship_presenter.services.rooms import RoomClient, RoomInfo
from worship_presenter.services.transport import (
    BroadcastTransport,
    InMemoryTransport,
    RelayTransport,
    TransportError,
)

__all__ = [
    "BroadcastTransport",
    "InMemoryTransport",
    "RelayTransport",
    "RoomClient",
    "RoomInfo",
    "TransportError",
]
