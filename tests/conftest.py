"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from document_bridge.pool import Connection, ConnectionPool


@pytest.fixture
def pool() -> ConnectionPool:
    """Pool with a short deadline for fast timeout tests."""
    return ConnectionPool(command_timeout=0.1)


@pytest.fixture
def make_transport() -> Callable[..., MagicMock]:
    """Factory for transport doubles that record sent frames."""

    def _make(is_open: bool = True) -> MagicMock:
        transport = MagicMock()
        transport.is_open = is_open
        return transport

    return _make


@pytest.fixture
def make_connection(make_transport: Callable[..., MagicMock]) -> Callable[..., Connection]:
    """Factory for registry entries backed by mock transports."""

    def _make(
        connection_id: str = "test.pptx",
        transport: MagicMock | None = None,
        ready: bool = True,
        source_path: str | None = "/path/test.pptx",
    ) -> Connection:
        return Connection(
            connection_id=connection_id,
            transport=transport or make_transport(),
            ready=ready,
            source_path=source_path,
        )

    return _make


@pytest.fixture
def sent_frames() -> Callable[[MagicMock], list[dict[str, Any]]]:
    """Decode every frame sent on a mock transport."""

    def _frames(transport: MagicMock) -> list[dict[str, Any]]:
        return [json.loads(call.args[0]) for call in transport.send.call_args_list]

    return _frames
