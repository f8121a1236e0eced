"""Unit tests for session wire frames."""

import json

import pytest

from document_bridge.protocol import (
    CommandFrame,
    ErrorFrame,
    FrameDecodeError,
    MessageType,
    ReadyFrame,
    ResponseFrame,
    parse_frame,
)


class TestCommandFrame:
    """Tests for outbound command frames."""

    def test_to_json(self):
        """Command serializes with type, id, action and params."""
        frame = CommandFrame(id="abc", action="executeCode", params={"code": "return 1"})
        data = json.loads(frame.to_json())

        assert data == {
            "type": "command",
            "id": "abc",
            "action": "executeCode",
            "params": {"code": "return 1"},
        }

    def test_generates_128_bit_id(self):
        """Command ID should be a full uuid4 hex string."""
        frame = CommandFrame(action="ping")

        assert len(frame.id) == 32
        int(frame.id, 16)

    def test_ids_differ(self):
        assert CommandFrame(action="ping").id != CommandFrame(action="ping").id


class TestParseFrame:
    """Tests for decoding inbound frames."""

    def test_response(self):
        frame = parse_frame('{"type": "response", "id": "c1", "data": {"ok": true}}')

        assert isinstance(frame, ResponseFrame)
        assert frame.id == "c1"
        assert frame.data == {"ok": True}

    def test_response_without_data(self):
        frame = parse_frame('{"type": "response", "id": "c1"}')

        assert isinstance(frame, ResponseFrame)
        assert frame.data is None

    def test_error(self):
        frame = parse_frame('{"type": "error", "id": "c1", "error": {"message": "bad", "code": 7}}')

        assert isinstance(frame, ErrorFrame)
        assert frame.error.message == "bad"
        assert frame.error.model_extra == {"code": 7}

    def test_error_as_bare_string(self):
        frame = parse_frame('{"type": "error", "id": "c1", "error": "boom"}')

        assert isinstance(frame, ErrorFrame)
        assert frame.error.message == "boom"

    @pytest.mark.parametrize("value", ["42", "true", "[1]"])
    def test_error_non_object_has_no_message(self, value: str):
        frame = parse_frame(f'{{"type": "error", "id": "c1", "error": {value}}}')

        assert isinstance(frame, ErrorFrame)
        assert frame.error.message is None

    def test_ready_with_url(self):
        frame = parse_frame('{"type": "ready", "documentUrl": "/a.pptx"}')

        assert isinstance(frame, ReadyFrame)
        assert frame.document_url == "/a.pptx"

    def test_ready_without_url(self):
        frame = parse_frame('{"type": "ready"}')

        assert isinstance(frame, ReadyFrame)
        assert frame.document_url is None

    def test_invalid_json(self):
        with pytest.raises(FrameDecodeError, match="Invalid JSON"):
            parse_frame("not json")

    def test_not_an_object(self):
        with pytest.raises(FrameDecodeError, match="JSON object"):
            parse_frame('"ready"')

    def test_unknown_type(self):
        with pytest.raises(FrameDecodeError):
            parse_frame('{"type": "command", "id": "c1", "action": "x"}')

    def test_missing_id(self):
        with pytest.raises(FrameDecodeError):
            parse_frame('{"type": "error", "error": {"message": "bad"}}')

    def test_decode_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_frame("{")


class TestMessageType:
    """Tests for MessageType enum."""

    def test_values(self):
        assert {t.value for t in MessageType} == {"command", "response", "error", "ready"}
        assert MessageType.READY == "ready"
