"""WebSocket endpoint for document sessions.

Each document add-in holds one WebSocket open to /ws. The session
announces itself with a ready frame, then answers command frames with
response or error frames. Closing the socket fails whatever commands
were still waiting on it.
"""

from __future__ import annotations

import logging

from starlette.routing import WebSocketRoute
from starlette.websockets import WebSocket

from ..pool import ConnectionPool
from ..transport import WebSocketDocumentTransport

logger = logging.getLogger(__name__)


class DocumentSocketHandler:
    """Handles one document session's WebSocket for its whole lifetime."""

    def __init__(self, websocket: WebSocket, pool: ConnectionPool):
        self.websocket = websocket
        self.pool = pool
        self.transport = WebSocketDocumentTransport(websocket)

    async def handle(self) -> None:
        """Main handler for the WebSocket connection."""
        await self.transport.connect()
        logger.info("Document WebSocket connected")

        try:
            async for data in self.transport.receive_frames():
                self.pool.handle_frame(self.transport, data)
        except Exception as e:
            logger.exception(f"Document WebSocket error: {e}")
        finally:
            connection_id = self.pool.remove_by_transport(self.transport)
            logger.info(f"Document WebSocket disconnected ({connection_id or 'unregistered'})")
            await self.transport.disconnect()


async def document_websocket_endpoint(websocket: WebSocket) -> None:
    """WebSocket endpoint for document sessions.

    URL: /ws

    Protocol:
    1. Session connects and sends {"type": "ready", "documentUrl": ...}
    2. Server sends {"type": "command", "id", "action", "params"}
    3. Session replies {"type": "response", "id", "data"} or
       {"type": "error", "id", "error": {"message"}}
    """
    handler = DocumentSocketHandler(websocket, websocket.app.state.pool)
    await handler.handle()


websocket_routes = [
    WebSocketRoute("/ws", document_websocket_endpoint),
]
