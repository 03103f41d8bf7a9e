"""
Unit tests for the message schemas.

These tests validate that the Pydantic models accept the frames exchanged over
the relay and serialize outbound frames with the expected fields.
"""

import json

import pytest
from pydantic import ValidationError

from voice_relay.models import message_schemas
from voice_relay.models.message_schemas import (
    AudioResponseMessage,
    ConnectedMessage,
    ConnectionEstablishedMessage,
    EchoResponseMessage,
    ErrorMessage,
    PingMessage,
    ProcessingErrorMessage,
    RelayMessage,
    TextInputMessage,
    TranscriptMessage,
    UnknownMessageResponse,
)


class TestRelayMessage:
    """Tests for the inbound base model."""

    def test_message_type_prefers_type(self):
        message = RelayMessage(type="transcript", event="pong")
        assert message.message_type == "transcript"

    def test_message_type_falls_back_to_event(self):
        message = RelayMessage(event="ai_response")
        assert message.message_type == "ai_response"

    def test_extra_fields_are_kept(self):
        message = RelayMessage(**{"type": "custom", "payload": {"a": 1}})
        assert message.model_dump()["payload"] == {"a": 1}

    def test_transcript_defaults(self):
        message = TranscriptMessage(type="transcript")
        assert message.text is None
        assert message.isFinal is False

    def test_transcript_rejects_non_string_text(self):
        with pytest.raises(ValidationError):
            TranscriptMessage(type="transcript", text={"words": []})

    def test_audio_response(self):
        message = AudioResponseMessage(type="audio_response", audio="SGVsbG8=")
        assert message.audio == "SGVsbG8="

    def test_error_message_optional_fields(self):
        message = ErrorMessage(type="error")
        assert message.error is None

    def test_error_message_keeps_incidental_fields_as_received(self):
        message = ErrorMessage(
            type="error",
            error="Deepgram failed",
            details={"code": 503},
            timestamp="2024-01-01T00:00:00.000Z",
        )
        assert message.error == "Deepgram failed"
        assert message.timestamp == "2024-01-01T00:00:00.000Z"
        assert message.details == {"code": 503}

    def test_non_string_discriminator_has_no_message_type(self):
        assert RelayMessage(type=["transcript"]).message_type is None
        assert RelayMessage(type={"x": 1}, event="pong").message_type == "pong"


class TestClientMessages:
    """Tests for the frames the relay client sends."""

    def test_connected_message_serializes_handshake(self):
        message = ConnectedMessage(userId="u1", callId="browser-test", assistantId="demo")
        data = json.loads(message.model_dump_json())
        assert data["type"] == "connected"
        assert data["userId"] == "u1"
        assert data["callId"] == "browser-test"
        assert data["assistantId"] == "demo"
        assert isinstance(data["timestamp"], int)

    def test_connected_message_requires_ids(self):
        with pytest.raises(ValidationError):
            ConnectedMessage(userId="u1")

    def test_text_input_message(self):
        message = TextInputMessage(text="hello", timestamp=1700000000000)
        assert json.loads(message.model_dump_json()) == {
            "timestamp": 1700000000000,
            "type": "text_input",
            "text": "hello",
        }

    def test_type_cannot_be_overridden(self):
        with pytest.raises(ValidationError):
            TextInputMessage(type="transcript", text="hello")


class TestServerMessages:
    """Tests for the frames the test relay sends."""

    def test_connection_established_defaults(self):
        message = ConnectionEstablishedMessage(
            connectionId="abcd1234", userId="anonymous", callId="browser-session", assistantId="default"
        )
        assert message.type == "connection_established"
        assert message.capabilities == ["basic-websocket", "ping-pong", "echo"]
        assert message.message == "WebSocket test connection successful"

    def test_capabilities_not_shared_between_instances(self):
        first = ConnectionEstablishedMessage(
            connectionId="a", userId="u", callId="c", assistantId="x"
        )
        first.capabilities.append("extra")
        second = ConnectionEstablishedMessage(
            connectionId="b", userId="u", callId="c", assistantId="x"
        )
        assert "extra" not in second.capabilities

    def test_ping_message(self):
        assert PingMessage(connectionId="abcd1234").type == "ping"

    def test_echo_response_default_message(self):
        assert EchoResponseMessage(connectionId="abcd1234").originalMessage == "Hello from server!"

    def test_test_response(self):
        message = message_schemas.TestResponseMessage(connectionId="abcd1234")
        assert message.type == "test_response"
        assert message.message == "Test successful! WebSocket is working."

    def test_unknown_message_response(self):
        message = UnknownMessageResponse(receivedType="mystery", connectionId="abcd1234")
        assert message.type == "unknown_message_response"
        assert message.receivedType == "mystery"

    def test_processing_error_message(self):
        message = ProcessingErrorMessage(details="Expecting value")
        data = json.loads(message.model_dump_json())
        assert data["type"] == "error"
        assert data["error"] == "Message processing failed"
        assert data["details"] == "Expecting value"
