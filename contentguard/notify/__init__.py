"""Real-time notification fan-out to moderator clients."""

from contentguard.notify.connection import ClientConnection, ClientSocket, ConnectionState
from contentguard.notify.hub import EVENT_TYPES, NotificationHub, encode_frame

__all__ = [
    "ClientConnection",
    "ClientSocket",
    "ConnectionState",
    "EVENT_TYPES",
    "NotificationHub",
    "encode_frame",
]
