"""Wire frames exchanged with connected document sessions.

Every frame is a JSON object with a ``type`` discriminator:

- Outbound:  {"type": "command", "id": "...", "action": "...", "params": {...}}
- Inbound:   {"type": "response", "id": "...", "data": ...}
- Inbound:   {"type": "error", "id": "...", "error": {"message": "...", ...}}
  (a bare string "error" is taken as the message)
- Inbound:   {"type": "ready", "documentUrl": "..." | null}
"""

from __future__ import annotations

import json
import uuid
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator


class MessageType(str, Enum):
    """Frame types of the session protocol."""

    # Server -> session
    COMMAND = "command"

    # Session -> server
    RESPONSE = "response"
    ERROR = "error"
    READY = "ready"


class FrameDecodeError(ValueError):
    """Raised when an inbound frame cannot be decoded."""


class CommandFrame(BaseModel):
    """A command sent to a document session."""

    type: Literal["command"] = "command"
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    action: str
    params: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize to JSON."""
        return self.model_dump_json()


class ResponseFrame(BaseModel):
    """Successful reply to a command."""

    type: Literal["response"]
    id: str
    data: Any = None


class ErrorPayload(BaseModel):
    """Error details carried by an error frame. Extra keys are kept."""

    model_config = ConfigDict(extra="allow")

    message: str | None = None


class ErrorFrame(BaseModel):
    """Failed reply to a command."""

    type: Literal["error"]
    id: str
    error: ErrorPayload | None = None

    @field_validator("error", mode="before")
    @classmethod
    def _coerce_error(cls, value: Any) -> Any:
        """Accept a bare string as the message; other non-objects carry no details."""
        if isinstance(value, str):
            return {"message": value}
        if value is not None and not isinstance(value, dict):
            return {}
        return value


class ReadyFrame(BaseModel):
    """First-contact announcement from a session that finished initializing."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["ready"]
    document_url: str | None = Field(default=None, alias="documentUrl")


InboundFrame = Annotated[
    ResponseFrame | ErrorFrame | ReadyFrame,
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[ResponseFrame | ErrorFrame | ReadyFrame] = TypeAdapter(
    InboundFrame
)


def parse_frame(text: str | bytes) -> ResponseFrame | ErrorFrame | ReadyFrame:
    """Decode one inbound frame.

    Raises:
        FrameDecodeError: If the text is not JSON, not an object, or does
            not match any inbound frame shape.
    """
    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FrameDecodeError(f"Invalid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise FrameDecodeError(f"Expected a JSON object, got {type(raw).__name__}")

    try:
        return _inbound_adapter.validate_python(raw)
    except ValidationError as e:
        raise FrameDecodeError(f"Invalid frame: {e.error_count()} validation error(s)") from e
