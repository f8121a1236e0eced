"""Connection pool for live document sessions.

Tracks which documents are connected and ready, picks the connection a
command should go to, and correlates each outbound command with its
asynchronous reply.

All state lives on a ConnectionPool instance and is mutated only from
synchronous code running on the event loop, so no locks are needed.
Callers suspend only on the future returned by dispatch().

Every dispatched command ends exactly once, in one of four ways:
- a matching response frame resolves it
- a matching error frame rejects it with CommandFailedError
- its deadline rejects it with CommandTimeoutError
- its transport closing rejects it with SessionDisconnectedError
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

from .errors import (
    AmbiguousTargetError,
    CommandFailedError,
    CommandTimeoutError,
    ConnectionNotFoundError,
    ConnectionNotReadyError,
    NoConnectionsError,
    SessionDisconnectedError,
)
from .protocol import (
    CommandFrame,
    ErrorFrame,
    ErrorPayload,
    FrameDecodeError,
    ReadyFrame,
    parse_frame,
)

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 30.0  # seconds


@runtime_checkable
class Transport(Protocol):
    """Duplex channel to one document session."""

    @property
    def is_open(self) -> bool:
        """Whether the channel can still carry frames."""
        ...

    def send(self, data: str) -> None:
        """Queue one text frame for delivery. Must not block."""
        ...


@dataclass
class Connection:
    """One registered document session."""

    connection_id: str
    transport: Transport
    ready: bool = False
    source_path: str | None = None


@dataclass
class PendingCommand:
    """A command waiting for its reply."""

    correlation_id: str
    action: str
    future: asyncio.Future[Any]
    timer: asyncio.TimerHandle
    transport: Transport


class ConnectionPool:
    """Registry of document connections plus the in-flight command table."""

    def __init__(self, command_timeout: float = DEFAULT_COMMAND_TIMEOUT) -> None:
        self._connections: dict[str, Connection] = {}
        self._pending: dict[str, PendingCommand] = {}
        # Never reset: synthetic ids are not reused within a process.
        self._untitled_counter = 0
        self.command_timeout = command_timeout

    # -------------------------------------------------------------------------
    # Registry
    # -------------------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self._connections)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def add_connection(self, connection: Connection) -> None:
        """Register a connection, replacing any entry with the same id."""
        previous = self._connections.get(connection.connection_id)
        if previous is not None and previous.transport is not connection.transport:
            logger.warning(
                f"Connection {connection.connection_id} re-registered by a new transport, "
                "replacing previous entry"
            )
        self._connections[connection.connection_id] = connection

    def remove_connection(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)

    def has(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def entries(self) -> Iterator[tuple[str, Connection]]:
        return iter(list(self._connections.items()))

    def mark_ready(self, connection_id: str) -> None:
        """Flip a registered connection to ready.

        Raises:
            ConnectionNotFoundError: If the id is not registered
        """
        connection = self._connections.get(connection_id)
        if connection is None:
            raise ConnectionNotFoundError(connection_id, list(self._connections))
        connection.ready = True

    def list_connections(self) -> list[dict[str, Any]]:
        """Directory of connected documents."""
        return [
            {
                "connection_id": connection_id,
                "source_path": connection.source_path,
                "ready": connection.ready,
            }
            for connection_id, connection in self._connections.items()
        ]

    def find_by_transport(self, transport: Transport) -> str | None:
        for connection_id, connection in self._connections.items():
            if connection.transport is transport:
                return connection_id
        return None

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    def generate_id(self, document_url: str | None) -> str:
        """Connection id for a newly announced session.

        Saved documents are keyed by their path; unsaved ones get a
        synthetic ``untitled-N`` label.
        """
        if document_url:
            return document_url
        self._untitled_counter += 1
        return f"untitled-{self._untitled_counter}"

    # -------------------------------------------------------------------------
    # Target resolution
    # -------------------------------------------------------------------------

    def resolve_target(self, connection_id: str | None = None) -> Connection:
        """Pick the connection a command should go to.

        Order matters and callers rely on it for their error messages:
        empty registry, then explicit id, then the single connection,
        then ambiguity. With several connections and no id we never
        guess, since the command could be destructive.

        Raises:
            NoConnectionsError: Nothing is connected
            ConnectionNotFoundError: The explicit id is not registered
            ConnectionNotReadyError: The target has not finished its handshake
            AmbiguousTargetError: Several connections and no id given
        """
        if not self._connections:
            raise NoConnectionsError()

        if connection_id:
            connection = self._connections.get(connection_id)
            if connection is None:
                raise ConnectionNotFoundError(connection_id, list(self._connections))
            if not connection.ready:
                raise ConnectionNotReadyError(connection_id)
            return connection

        if len(self._connections) == 1:
            single = next(iter(self._connections.values()))
            if not single.ready:
                raise ConnectionNotReadyError()
            return single

        raise AmbiguousTargetError(list(self._connections))

    # -------------------------------------------------------------------------
    # Dispatch and correlation
    # -------------------------------------------------------------------------

    def dispatch(
        self,
        action: str,
        params: dict[str, Any] | None,
        connection: Connection,
    ) -> asyncio.Future[Any]:
        """Send a command and return a future for its reply.

        Must be called from a running event loop. The command stays
        pending even if the transport rejects the frame; it then ends by
        timeout or when the transport is reaped.

        Raises:
            ValueError: If params cannot be serialized; nothing is left pending
        """
        loop = asyncio.get_running_loop()
        frame = CommandFrame(action=action, params=params or {})
        correlation_id = frame.id
        data = frame.to_json()

        future: asyncio.Future[Any] = loop.create_future()
        timer = loop.call_later(self.command_timeout, self._expire, correlation_id)
        self._pending[correlation_id] = PendingCommand(
            correlation_id=correlation_id,
            action=action,
            future=future,
            timer=timer,
            transport=connection.transport,
        )
        future.add_done_callback(lambda f: self._forget_cancelled(correlation_id, f))

        try:
            connection.transport.send(data)
        except Exception as e:
            logger.warning(
                f"Send failed for command {correlation_id} on {connection.connection_id}: {e}"
            )
        else:
            logger.debug(f"Sent {action} command {correlation_id} to {connection.connection_id}")

        return future

    async def send_command(
        self,
        action: str,
        params: dict[str, Any] | None = None,
        connection_id: str | None = None,
    ) -> Any:
        """Resolve a target, dispatch to it, and wait for the reply.

        No exclusivity is held between resolving and dispatching: another
        caller's command may land on the same document in between.
        """
        connection = self.resolve_target(connection_id)
        return await self.dispatch(action, params, connection)

    def handle_reply(
        self,
        correlation_id: str,
        outcome: Literal["response", "error"],
        data: Any = None,
        message: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> bool:
        """Settle the pending command for a reply frame.

        Returns:
            True if a pending command was settled, False if the id was
            unknown or already settled (a late or duplicate reply)
        """
        pending = self._pending.pop(correlation_id, None)
        if pending is None:
            logger.debug(f"Discarding reply for unknown command {correlation_id}")
            return False

        pending.timer.cancel()
        if pending.future.done():
            return False

        if outcome == "response":
            pending.future.set_result(data)
        else:
            pending.future.set_exception(CommandFailedError(message, payload))
        return True

    def _expire(self, correlation_id: str) -> None:
        pending = self._pending.pop(correlation_id, None)
        if pending is None or pending.future.done():
            return
        logger.warning(
            f"Command {pending.action} ({correlation_id}) timed out "
            f"after {self.command_timeout:g}s"
        )
        pending.future.set_exception(CommandTimeoutError(self.command_timeout))

    def _forget_cancelled(self, correlation_id: str, future: asyncio.Future[Any]) -> None:
        if not future.cancelled():
            return
        pending = self._pending.get(correlation_id)
        if pending is not None and pending.future is future:
            pending.timer.cancel()
            del self._pending[correlation_id]

    # -------------------------------------------------------------------------
    # Disconnection
    # -------------------------------------------------------------------------

    def remove_by_transport(self, transport: Transport) -> str | None:
        """Handle a closed transport.

        Removes the connection that owns it and fails every command still
        waiting on it. Commands on other transports are left untouched.

        Returns:
            The removed connection id, or None if the transport was not
            registered (its pending commands are still reaped)
        """
        connection_id = self.find_by_transport(transport)
        if connection_id is not None:
            del self._connections[connection_id]
            logger.info(f"Connection {connection_id} removed")

        reaped = self.reject_pending_for_transport(transport)
        if reaped:
            logger.warning(f"Failed {reaped} in-flight command(s) after disconnect")
        return connection_id

    def reject_pending_for_transport(self, transport: Transport) -> int:
        """Fail all pending commands sent on a transport.

        Returns:
            Number of commands rejected
        """
        owned = [
            correlation_id
            for correlation_id, pending in self._pending.items()
            if pending.transport is transport
        ]
        count = 0
        for correlation_id in owned:
            pending = self._pending.pop(correlation_id)
            pending.timer.cancel()
            if not pending.future.done():
                pending.future.set_exception(SessionDisconnectedError())
                count += 1
        return count

    # -------------------------------------------------------------------------
    # Inbound frames
    # -------------------------------------------------------------------------

    def handle_frame(self, transport: Transport, text: str | bytes) -> None:
        """Route one inbound frame from a session.

        Malformed frames are logged and dropped; they never settle any
        command.
        """
        try:
            frame = parse_frame(text)
        except FrameDecodeError as e:
            logger.warning(f"Dropping malformed frame: {e}")
            return

        if isinstance(frame, ReadyFrame):
            self._register(transport, frame.document_url)
        elif isinstance(frame, ErrorFrame):
            error = frame.error or ErrorPayload()
            self.handle_reply(
                frame.id, "error", message=error.message, payload=error.model_extra or {}
            )
        else:
            self.handle_reply(frame.id, "response", data=frame.data)

    def _register(self, transport: Transport, document_url: str | None) -> Connection:
        # One registry entry per transport: a repeat announcement moves it.
        previous_id = self.find_by_transport(transport)
        if previous_id is not None:
            del self._connections[previous_id]

        connection_id = self.generate_id(document_url)
        connection = Connection(
            connection_id=connection_id,
            transport=transport,
            ready=True,
            source_path=document_url or None,
        )
        self.add_connection(connection)
        logger.info(f"Document connected: {connection_id}")
        return connection
