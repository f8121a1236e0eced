"""Bridge server configuration.

Values come from DOCUMENT_BRIDGE_* environment variables, with command
line options taking precedence.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass

from .advisory import DEFAULT_SESSION_IDLE_TIMEOUT
from .pool import DEFAULT_COMMAND_TIMEOUT

ENV_PREFIX = "DOCUMENT_BRIDGE_"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class BridgeConfig:
    """Configuration for the bridge server."""

    host: str = "127.0.0.1"
    port: int = 8443
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT  # seconds
    session_idle_timeout: float = DEFAULT_SESSION_IDLE_TIMEOUT  # seconds

    # TLS is enabled only when both are set
    ssl_certfile: str | None = None
    ssl_keyfile: str | None = None

    log_level: str = "INFO"

    @property
    def tls_enabled(self) -> bool:
        return bool(self.ssl_certfile and self.ssl_keyfile)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> BridgeConfig:
        """Build a config from environment variables.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        config = cls()

        if host := env.get(f"{ENV_PREFIX}HOST"):
            config.host = host
        if port := env.get(f"{ENV_PREFIX}PORT"):
            try:
                config.port = int(port)
            except ValueError as e:
                raise ValueError(f"Invalid {ENV_PREFIX}PORT: {port!r}") from e
        if timeout := env.get(f"{ENV_PREFIX}COMMAND_TIMEOUT"):
            try:
                config.command_timeout = float(timeout)
            except ValueError as e:
                raise ValueError(f"Invalid {ENV_PREFIX}COMMAND_TIMEOUT: {timeout!r}") from e
            if config.command_timeout <= 0:
                raise ValueError(f"{ENV_PREFIX}COMMAND_TIMEOUT must be positive")
        if idle := env.get(f"{ENV_PREFIX}SESSION_IDLE_TIMEOUT"):
            try:
                config.session_idle_timeout = float(idle)
            except ValueError as e:
                raise ValueError(f"Invalid {ENV_PREFIX}SESSION_IDLE_TIMEOUT: {idle!r}") from e
            if config.session_idle_timeout <= 0:
                raise ValueError(f"{ENV_PREFIX}SESSION_IDLE_TIMEOUT must be positive")
        if certfile := env.get(f"{ENV_PREFIX}SSL_CERTFILE"):
            config.ssl_certfile = certfile
        if keyfile := env.get(f"{ENV_PREFIX}SSL_KEYFILE"):
            config.ssl_keyfile = keyfile
        if log_level := env.get(f"{ENV_PREFIX}LOG_LEVEL"):
            config.log_level = log_level.upper()

        return config


def configure_logging(level: str = "INFO") -> None:
    """Send all log output to stderr with a single handler."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(stderr_handler)
    root_logger.setLevel(level.upper())
