"""Document Bridge CLI.

Usage:
    document-bridge                                  # Serve on https://127.0.0.1:8443
    document-bridge --port 9000 --command-timeout 10 # Custom port and deadline
    document-bridge --certfile c.pem --keyfile k.pem # Serve over TLS
    document-bridge --health                         # Check a running server

    document-bridge connections                      # List connected documents
    document-bridge exec executeCode --params '{"code": "return 1"}'
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Any

import click
import httpx

from .config import ENV_PREFIX, BridgeConfig, configure_logging

# Output format options
FORMAT_TABLE = "table"
FORMAT_JSON = "json"

DEFAULT_SERVER_URL = "http://127.0.0.1:8443"


@click.group(invoke_without_command=True)
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.option(
    "--command-timeout",
    default=None,
    type=click.FloatRange(min=0, min_open=True),
    help="Seconds to wait for a document to reply",
)
@click.option("--certfile", type=click.Path(exists=True, dir_okay=False), help="TLS certificate")
@click.option("--keyfile", type=click.Path(exists=True, dir_okay=False), help="TLS private key")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.option("--health", "health_check", is_flag=True, help="Check server health and exit")
@click.option("--url", default=DEFAULT_SERVER_URL, help="Server URL for client commands")
@click.pass_context
def main(
    ctx: click.Context,
    host: str | None,
    port: int | None,
    command_timeout: float | None,
    certfile: str | None,
    keyfile: str | None,
    log_level: str | None,
    reload: bool,
    health_check: bool,
    url: str,
) -> None:
    """Document Bridge - routes commands to live document sessions.

    With no subcommand, runs the bridge server.
    """
    ctx.ensure_object(dict)
    ctx.obj["url"] = url.rstrip("/")

    # If a subcommand is invoked, let it handle everything
    if ctx.invoked_subcommand is not None:
        return

    if health_check:
        _do_health_check(ctx.obj["url"])
        return

    if bool(certfile) != bool(keyfile):
        raise click.UsageError("--certfile and --keyfile must be given together.")

    try:
        config = BridgeConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    if host:
        config.host = host
    if port is not None:
        config.port = port
    if command_timeout is not None:
        config.command_timeout = command_timeout
    if certfile and keyfile:
        config.ssl_certfile = certfile
        config.ssl_keyfile = keyfile
    if log_level:
        config.log_level = log_level.upper()

    _run_server(config, reload)


def _run_server(config: BridgeConfig, reload: bool) -> None:
    """Run the bridge server."""
    import uvicorn

    configure_logging(config.log_level)

    # The app factory reads its settings from the environment
    os.environ[f"{ENV_PREFIX}COMMAND_TIMEOUT"] = str(config.command_timeout)
    os.environ[f"{ENV_PREFIX}LOG_LEVEL"] = config.log_level

    scheme = "https" if config.tls_enabled else "http"
    ws_scheme = "wss" if config.tls_enabled else "ws"
    click.echo("Bridge server running", err=True)
    click.echo(f"  HTTP: {scheme}://{config.host}:{config.port}", err=True)
    click.echo(f"  WS:   {ws_scheme}://{config.host}:{config.port}/ws", err=True)
    click.echo("Press Ctrl+C to stop", err=True)

    uvicorn.run(
        "document_bridge.app:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=reload,
        ssl_certfile=config.ssl_certfile,
        ssl_keyfile=config.ssl_keyfile,
        log_config=None,
    )


def _do_health_check(url: str) -> None:
    """Check server health."""

    async def check() -> None:
        try:
            async with httpx.AsyncClient(verify=False) as client:
                response = await client.get(f"{url}/health")
                if response.status_code == 200:
                    data = response.json()
                    click.echo(f"Server is healthy: {data}")
                else:
                    click.echo(f"Server returned {response.status_code}", err=True)
                    sys.exit(1)
        except httpx.ConnectError:
            click.echo(f"Cannot connect to server at {url}", err=True)
            sys.exit(1)

    asyncio.run(check())


def _request(method: str, url: str, timeout: float | None = None, **kwargs: Any) -> httpx.Response:
    try:
        return httpx.request(method, url, verify=False, timeout=timeout, **kwargs)
    except httpx.ConnectError:
        click.echo(f"Cannot connect to server at {url}", err=True)
        sys.exit(1)


# =============================================================================
# Client Commands
# =============================================================================


@main.command("connections")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
@click.pass_context
def connections(ctx: click.Context, output_format: str) -> None:
    """List documents connected to a running server."""
    response = _request("GET", f"{ctx.obj['url']}/connections", timeout=10.0)
    response.raise_for_status()
    entries = response.json()["connections"]

    if output_format == FORMAT_JSON:
        click.echo(json.dumps(entries, indent=2))
        return

    if not entries:
        click.echo("No documents connected.")
        return

    click.echo(f"{'ID':<50} {'READY':<6} PATH")
    click.echo("-" * 80)
    for entry in entries:
        ready = "yes" if entry["ready"] else "no"
        click.echo(f"{entry['connection_id']:<50} {ready:<6} {entry['source_path'] or '-'}")


@main.command("exec")
@click.argument("action")
@click.option("--params", "params_json", default="{}", help="Command parameters as JSON")
@click.option("--connection", "connection_id", default=None, help="Target connection id")
@click.option("--session", "session_id", default=None, help="Caller session id")
@click.pass_context
def exec_command(
    ctx: click.Context,
    action: str,
    params_json: str,
    connection_id: str | None,
    session_id: str | None,
) -> None:
    """Send ACTION to a connected document and print the result."""
    try:
        params = json.loads(params_json)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--params") from e
    if not isinstance(params, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--params")

    headers = {"X-Bridge-Session": session_id} if session_id else {}
    body = {"action": action, "params": params, "connection_id": connection_id}
    response = _request("POST", f"{ctx.obj['url']}/commands", json=body, headers=headers)
    data = response.json()

    if response.status_code != 200:
        click.echo(f"Error: {data.get('error', response.text)}", err=True)
        sys.exit(1)

    click.echo(json.dumps(data["result"], indent=2))
    if data.get("warning"):
        click.echo(data["warning"], err=True)


if __name__ == "__main__":
    main()
