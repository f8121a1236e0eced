"""HTTP routes for listing documents and sending them commands.

POST /commands blocks until the document replies, the command times out,
or the document disconnects. Bridge errors map to HTTP statuses with a
JSON body of {"error": message, "kind": kind}.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from ..errors import (
    AmbiguousTargetError,
    BridgeError,
    CommandFailedError,
    CommandTimeoutError,
    ConnectionNotFoundError,
    ConnectionNotReadyError,
    NoConnectionsError,
    SessionDisconnectedError,
)

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Bridge-Session"

ERROR_STATUS: dict[type[BridgeError], int] = {
    NoConnectionsError: 503,
    ConnectionNotFoundError: 404,
    ConnectionNotReadyError: 409,
    AmbiguousTargetError: 409,
    CommandTimeoutError: 504,
    CommandFailedError: 502,
    SessionDisconnectedError: 502,
}


class CommandRequest(BaseModel):
    """Body of POST /commands."""

    action: str
    params: dict[str, Any] = Field(default_factory=dict)
    connection_id: str | None = None


def error_response(error: BridgeError) -> JSONResponse:
    status = ERROR_STATUS.get(type(error), 500)
    body: dict[str, Any] = {"error": str(error), "kind": error.kind}
    available = getattr(error, "available", None)
    if available is not None:
        body["available"] = available
    return JSONResponse(body, status_code=status)


async def list_connections(request: Request) -> JSONResponse:
    """GET /connections - directory of connected documents."""
    pool = request.app.state.pool
    return JSONResponse({"connections": pool.list_connections()})


async def send_command(request: Request) -> JSONResponse:
    """POST /commands - run one command in a document."""
    try:
        body = CommandRequest.model_validate(await request.json())
    except (json.JSONDecodeError, ValidationError) as e:
        return JSONResponse({"error": f"Invalid request: {e}", "kind": "bad_request"}, 400)

    pool = request.app.state.pool
    advisor = request.app.state.advisor
    session_id = request.headers.get(SESSION_HEADER)
    if session_id:
        advisor.touch(session_id)

    try:
        target = pool.resolve_target(body.connection_id)
        result = await pool.dispatch(body.action, body.params, target)
    except BridgeError as e:
        logger.info(f"Command {body.action} failed: {e}")
        return error_response(e)

    content: dict[str, Any] = {"connection_id": target.connection_id, "result": result}
    warning = advisor.warning_for(session_id, target.connection_id)
    if warning:
        content["warning"] = warning
    return JSONResponse(content)


async def end_session(request: Request) -> Response:
    """DELETE /sessions/{session_id} - forget a caller session."""
    request.app.state.advisor.clear_session(request.path_params["session_id"])
    return Response(status_code=204)


command_routes = [
    Route("/connections", list_connections, methods=["GET"]),
    Route("/commands", send_command, methods=["POST"]),
    Route("/sessions/{session_id}", end_session, methods=["DELETE"]),
]
