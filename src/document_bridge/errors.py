"""Error types surfaced to callers of the connection pool.

Every failure a command can meet reaches the caller as one of these,
carrying a message that can be shown to a user as-is. The pool never
retries: a command may have partially applied inside the document
before the failure was observed.
"""

from __future__ import annotations

from typing import Any


class BridgeError(Exception):
    """Base class for all bridge errors."""

    kind = "bridge_error"


class TargetResolutionError(BridgeError):
    """No single connection could be selected for a command."""

    kind = "target_resolution"


class NoConnectionsError(TargetResolutionError):
    """The registry is empty."""

    kind = "no_connections"

    def __init__(self) -> None:
        super().__init__(
            "No documents connected. Open a document with the bridge add-in loaded."
        )


class ConnectionNotFoundError(TargetResolutionError):
    """An explicit connection id is not registered."""

    kind = "not_found"

    def __init__(self, connection_id: str, available: list[str]) -> None:
        self.connection_id = connection_id
        self.available = available
        super().__init__(
            f"Document not found: {connection_id}. "
            "List connected documents with GET /connections or `document-bridge connections`."
        )


class ConnectionNotReadyError(TargetResolutionError):
    """The target exists but has not finished its handshake."""

    kind = "not_ready"

    def __init__(self, connection_id: str | None = None) -> None:
        self.connection_id = connection_id
        if connection_id is None:
            message = "Add-in connected but not ready"
        else:
            message = f"Document connected but not ready: {connection_id}"
        super().__init__(message)


class AmbiguousTargetError(TargetResolutionError):
    """Several connections exist and none was named."""

    kind = "ambiguous"

    def __init__(self, available: list[str]) -> None:
        self.available = available
        super().__init__(
            "Multiple documents connected. Specify connection_id parameter. "
            f"Available: {', '.join(available)}"
        )


class CommandTimeoutError(BridgeError):
    """No reply arrived before the command deadline."""

    kind = "timeout"

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Command timed out after {timeout:g}s")


class CommandFailedError(BridgeError):
    """The remote session reported an error for the command."""

    kind = "command_failed"

    def __init__(self, message: str | None = None, payload: dict[str, Any] | None = None):
        self.payload = payload or {}
        super().__init__(message or "Command failed")


class SessionDisconnectedError(BridgeError):
    """The owning transport closed before a reply arrived."""

    kind = "disconnected"

    def __init__(self, message: str = "Session disconnected") -> None:
        super().__init__(message)
