"""Document Bridge Server Application.

Creates the Starlette ASGI application with all routes:
- /health - Health check
- /connections - Connected document directory
- /commands - Send a command to a document
- /sessions/{id} - End a caller session
- /ws - WebSocket endpoint for document add-ins
"""

from __future__ import annotations

from starlette.applications import Starlette
from starlette.routing import Route, WebSocketRoute

from .advisory import ConcurrentAccessAdvisor
from .config import BridgeConfig
from .pool import ConnectionPool
from .routes import command_routes, health_routes, websocket_routes


def create_app(
    *,
    config: BridgeConfig | None = None,
    pool: ConnectionPool | None = None,
) -> Starlette:
    """Create the bridge application.

    Args:
        config: Server configuration, read from the environment if omitted
        pool: Connection pool to serve, created from config if omitted

    Returns:
        Configured Starlette application
    """
    if config is None:
        config = BridgeConfig.from_env()

    routes: list[Route | WebSocketRoute] = []
    routes.extend(health_routes)
    routes.extend(command_routes)
    routes.extend(websocket_routes)

    app = Starlette(routes=routes)
    app.state.config = config
    app.state.pool = pool or ConnectionPool(command_timeout=config.command_timeout)
    app.state.advisor = ConcurrentAccessAdvisor(idle_timeout=config.session_idle_timeout)
    return app
