"""Tests for the document-bridge command line."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
from click.testing import CliRunner

from document_bridge.cli import main


def make_response(status_code: int, payload: dict) -> httpx.Response:
    return httpx.Response(
        status_code,
        json=payload,
        request=httpx.Request("GET", "http://127.0.0.1:8443"),
    )


class TestServe:
    """Tests for running the server."""

    def test_serves_with_cli_overrides(self) -> None:
        runner = CliRunner()
        with patch("document_bridge.cli._run_server") as run_server:
            result = runner.invoke(main, ["--port", "9000", "--command-timeout", "5"], env={})

        assert result.exit_code == 0, result.output
        config, reload = run_server.call_args.args
        assert config.port == 9000
        assert config.command_timeout == 5.0
        assert reload is False

    def test_port_zero_is_not_ignored(self) -> None:
        with patch("document_bridge.cli._run_server") as run_server:
            result = CliRunner().invoke(main, ["--port", "0"], env={})

        assert result.exit_code == 0, result.output
        config, _ = run_server.call_args.args
        assert config.port == 0

    def test_certfile_requires_keyfile(self, tmp_path) -> None:
        cert = tmp_path / "cert.pem"
        cert.write_text("cert")

        result = CliRunner().invoke(main, ["--certfile", str(cert)])

        assert result.exit_code != 0
        assert "--keyfile" in result.output

    def test_rejects_non_positive_timeout(self) -> None:
        result = CliRunner().invoke(main, ["--command-timeout", "0"])
        assert result.exit_code != 0

    def test_invalid_env_is_usage_error(self) -> None:
        with patch("document_bridge.cli._run_server") as run_server:
            result = CliRunner().invoke(main, [], env={"DOCUMENT_BRIDGE_PORT": "abc"})

        assert result.exit_code == 2
        run_server.assert_not_called()


class TestConnectionsCommand:
    """Tests for `document-bridge connections`."""

    def test_table_output(self) -> None:
        payload = {
            "connections": [
                {"connection_id": "/docs/a.pptx", "source_path": "/docs/a.pptx", "ready": True},
                {"connection_id": "untitled-1", "source_path": None, "ready": False},
            ]
        }
        with patch("document_bridge.cli.httpx.request", return_value=make_response(200, payload)):
            result = CliRunner().invoke(main, ["connections"])

        assert result.exit_code == 0, result.output
        assert "/docs/a.pptx" in result.output
        assert "untitled-1" in result.output

    def test_json_output(self) -> None:
        payload = {"connections": []}
        with patch("document_bridge.cli.httpx.request", return_value=make_response(200, payload)):
            result = CliRunner().invoke(main, ["connections", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == []

    def test_empty_table(self) -> None:
        payload = {"connections": []}
        with patch("document_bridge.cli.httpx.request", return_value=make_response(200, payload)):
            result = CliRunner().invoke(main, ["connections"])

        assert "No documents connected" in result.output

    def test_server_unreachable(self) -> None:
        with patch(
            "document_bridge.cli.httpx.request",
            side_effect=httpx.ConnectError("refused"),
        ):
            result = CliRunner().invoke(main, ["connections"])

        assert result.exit_code == 1


class TestExecCommand:
    """Tests for `document-bridge exec`."""

    def test_prints_result(self) -> None:
        payload = {"connection_id": "a.pptx", "result": {"slides": 3}}
        request = MagicMock(return_value=make_response(200, payload))
        with patch("document_bridge.cli.httpx.request", request):
            result = CliRunner().invoke(
                main,
                ["exec", "executeCode", "--params", '{"code": "return 3"}', "--connection", "a"],
            )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"slides": 3}
        body = request.call_args.kwargs["json"]
        assert body == {
            "action": "executeCode",
            "params": {"code": "return 3"},
            "connection_id": "a",
        }

    def test_reports_bridge_error(self) -> None:
        payload = {"error": "No documents connected.", "kind": "no_connections"}
        with patch("document_bridge.cli.httpx.request", return_value=make_response(503, payload)):
            result = CliRunner().invoke(main, ["exec", "executeCode"])

        assert result.exit_code == 1
        assert "No documents connected" in result.output

    def test_rejects_invalid_params(self) -> None:
        result = CliRunner().invoke(main, ["exec", "executeCode", "--params", "not json"])

        assert result.exit_code == 2
        assert "--params" in result.output

    def test_rejects_non_object_params(self) -> None:
        result = CliRunner().invoke(main, ["exec", "executeCode", "--params", "[1]"])

        assert result.exit_code == 2
