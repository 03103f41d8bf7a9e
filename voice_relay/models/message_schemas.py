"""
Pydantic models for the voice relay WebSocket message schemas.

This module defines structured data models for the frames exchanged between a
browser-side relay client and the relay endpoint. Every frame is a JSON object
discriminated by its "type" field, with the legacy "event" field accepted as a
fallback on inbound frames.
"""

import time
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from voice_relay.config.constants import (
    DEFAULT_ECHO_MESSAGE,
    PROCESSING_ERROR_MESSAGE,
    RELAY_CAPABILITIES,
)


def now_ms() -> int:
    """Return the current wall clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


# Base Models
class RelayMessage(BaseModel):
    """Base model for all inbound relay frames.

    Unknown fields are kept so a frame can be forwarded or inspected as received.
    """

    model_config = ConfigDict(extra="allow")

    type: Any = Field(None, description="Message type identifier")
    event: Any = Field(None, description="Legacy message type identifier")

    @property
    def message_type(self) -> Optional[str]:
        """The discriminator of the frame, "type" first and "event" second."""
        for value in (self.type, self.event):
            if isinstance(value, str) and value:
                return value
        return None


class TimestampedMessage(BaseModel):
    """Base model for outbound frames that carry a millisecond timestamp."""

    timestamp: int = Field(default_factory=now_ms, description="Epoch milliseconds")


# Client -> server
class ConnectedMessage(TimestampedMessage):
    """Handshake frame sent by the client as soon as the socket opens."""

    type: Literal["connected"] = "connected"
    userId: str
    callId: str
    assistantId: str


class TextInputMessage(TimestampedMessage):
    """Typed text sent by the client in place of speech."""

    type: Literal["text_input"] = "text_input"
    text: str


# Server -> client, consumed by the relay client
class TranscriptMessage(RelayMessage):
    """Speech-to-text result for the caller's audio."""

    text: Optional[str] = None
    isFinal: Optional[bool] = False


class AIResponseMessage(RelayMessage):
    text: Optional[str] = None


class AudioResponseMessage(RelayMessage):
    audio: Optional[str] = Field(None, description="Base64-encoded audio data")


class ErrorMessage(RelayMessage):
    """Error reported by the backend, or by the test relay for a bad frame."""

    error: Any = None


# Test relay server -> client
class ConnectionEstablishedMessage(TimestampedMessage):
    type: Literal["connection_established"] = "connection_established"
    connectionId: str
    message: str = "WebSocket test connection successful"
    userId: str
    callId: str
    assistantId: str
    capabilities: List[str] = Field(default_factory=lambda: list(RELAY_CAPABILITIES))


class PingMessage(TimestampedMessage):
    type: Literal["ping"] = "ping"
    connectionId: str


class PongMessage(TimestampedMessage):
    type: Literal["pong"] = "pong"
    connectionId: str


class EchoResponseMessage(TimestampedMessage):
    type: Literal["echo_response"] = "echo_response"
    originalMessage: str = DEFAULT_ECHO_MESSAGE
    connectionId: str


class TestResponseMessage(TimestampedMessage):
    type: Literal["test_response"] = "test_response"
    message: str = "Test successful! WebSocket is working."
    connectionId: str


class UnknownMessageResponse(TimestampedMessage):
    type: Literal["unknown_message_response"] = "unknown_message_response"
    receivedType: Optional[str] = None
    message: str = "Unknown message type received"
    connectionId: str


class ProcessingErrorMessage(TimestampedMessage):
    """Sent by the test relay when an inbound frame cannot be processed."""

    type: Literal["error"] = "error"
    error: str = PROCESSING_ERROR_MESSAGE
    details: str


# Union type for all frames the client sends
OutgoingClientMessage = Union[ConnectedMessage, TextInputMessage]

# Union type for all frames the test relay sends
OutgoingServerMessage = Union[
    ConnectionEstablishedMessage,
    PingMessage,
    PongMessage,
    EchoResponseMessage,
    TestResponseMessage,
    UnknownMessageResponse,
    ProcessingErrorMessage,
]
