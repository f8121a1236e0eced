"""Session wire protocol.

Frames are JSON objects sent as WebSocket text messages. Commands carry
a correlation id that the session echoes back in its reply.
"""

from .messages import (
    CommandFrame,
    ErrorFrame,
    ErrorPayload,
    FrameDecodeError,
    MessageType,
    ReadyFrame,
    ResponseFrame,
    parse_frame,
)

__all__ = [
    "CommandFrame",
    "ErrorFrame",
    "ErrorPayload",
    "FrameDecodeError",
    "MessageType",
    "ReadyFrame",
    "ResponseFrame",
    "parse_frame",
]
