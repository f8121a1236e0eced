"""Health check endpoint."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route


async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint."""
    pool = request.app.state.pool
    return JSONResponse({"status": "ok", "connections": pool.size})


health_routes = [
    Route("/health", health_check, methods=["GET"]),
]
