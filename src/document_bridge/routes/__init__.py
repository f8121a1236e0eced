"""HTTP and WebSocket routes for the bridge server."""

from .commands import command_routes
from .health import health_routes
from .websocket import websocket_routes

__all__ = [
    "command_routes",
    "health_routes",
    "websocket_routes",
]
