"""WebSocket transport for document sessions.

Adapts a Starlette WebSocket to the pool's Transport protocol. The pool
sends synchronously from inside its own bookkeeping, so outbound frames
go onto a queue that a writer task drains onto the socket.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

logger = logging.getLogger(__name__)


class WebSocketDocumentTransport:
    """Server side of one document session's WebSocket."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket
        self._connected = False
        self._send_queue: asyncio.Queue[str] = asyncio.Queue()
        self._writer_task: asyncio.Task | None = None

    @property
    def is_open(self) -> bool:
        """Check if the WebSocket is connected."""
        return self._connected and self._websocket.client_state == WebSocketState.CONNECTED

    async def connect(self) -> None:
        """Accept the WebSocket connection and start the writer."""
        await self._websocket.accept()
        self._connected = True
        self._writer_task = asyncio.create_task(self._write_loop())

    async def disconnect(self) -> None:
        """Stop the writer and close the WebSocket."""
        self._connected = False
        if self._writer_task:
            self._writer_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._writer_task
            self._writer_task = None

        if self._websocket.client_state == WebSocketState.CONNECTED:
            with contextlib.suppress(RuntimeError):
                await self._websocket.close()

    def send(self, data: str) -> None:
        """Queue a text frame for the session.

        Raises:
            ConnectionError: If the transport is closed
        """
        if not self.is_open:
            raise ConnectionError("WebSocket is closed")
        self._send_queue.put_nowait(data)

    async def receive_frames(self) -> AsyncIterator[str | bytes]:
        """Yield inbound frames until the client disconnects."""
        try:
            while self.is_open:
                message = await self._websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                data = message.get("text")
                if data is None:
                    data = message.get("bytes")
                if data is not None:
                    yield data
        except WebSocketDisconnect:
            pass
        finally:
            self._connected = False

    async def _write_loop(self) -> None:
        try:
            while True:
                data = await self._send_queue.get()
                await self._websocket.send_text(data)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"WebSocket send error: {e}")
            self._connected = False
