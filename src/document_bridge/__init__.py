"""Document Bridge.

Routes commands from automation clients to live document-editing
sessions connected over WebSocket, and correlates their replies.
"""

from .errors import (
    AmbiguousTargetError,
    BridgeError,
    CommandFailedError,
    CommandTimeoutError,
    ConnectionNotFoundError,
    ConnectionNotReadyError,
    NoConnectionsError,
    SessionDisconnectedError,
    TargetResolutionError,
)
from .pool import Connection, ConnectionPool, PendingCommand, Transport

__version__ = "0.1.0"

__all__ = [
    "AmbiguousTargetError",
    "BridgeError",
    "CommandFailedError",
    "CommandTimeoutError",
    "Connection",
    "ConnectionNotFoundError",
    "ConnectionNotReadyError",
    "ConnectionPool",
    "NoConnectionsError",
    "PendingCommand",
    "SessionDisconnectedError",
    "TargetResolutionError",
    "Transport",
]
