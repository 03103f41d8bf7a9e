"""
Handles frames received by the relay client.

Each handler takes the decoded frame and the VoiceRelayClient that received it,
validates the frame against its schema and forwards the payload to the matching
client callback. Handlers return nothing; a frame that fails validation raises
ValidationError, which the MessageRouter logs and drops.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict

from voice_relay.config.constants import BACKEND_ERROR_MESSAGE, LOGGER_NAME
from voice_relay.models.message_schemas import (
    AIResponseMessage,
    AudioResponseMessage,
    ErrorMessage,
    TranscriptMessage,
)

if TYPE_CHECKING:
    from voice_relay.services.relay_client import VoiceRelayClient

logger = logging.getLogger(LOGGER_NAME)


async def handle_transcript(message: Dict[str, Any], client: "VoiceRelayClient") -> None:
    """
    Forward a transcript to the client's transcript callback.

    Only transcripts carrying non-empty text are forwarded. A missing isFinal
    flag is treated as an interim result.
    """
    transcript = TranscriptMessage(**message)
    if transcript.text:
        await client.emit(client.on_transcript, transcript.text, bool(transcript.isFinal))


async def handle_ai_response(message: Dict[str, Any], client: "VoiceRelayClient") -> None:
    response = AIResponseMessage(**message)
    if response.text:
        await client.emit(client.on_ai_response, response.text)


async def handle_audio_response(message: Dict[str, Any], client: "VoiceRelayClient") -> None:
    response = AudioResponseMessage(**message)
    if response.audio:
        await client.emit(client.on_audio_response, response.audio)


async def handle_error(message: Dict[str, Any], client: "VoiceRelayClient") -> None:
    """
    Surface a backend-reported error.

    The error is recorded on the client and passed to the error callback. The
    connection itself is left alone. Only the "error" field is read; when it
    is missing, empty or not a string the generic backend error is reported.
    """
    error = ErrorMessage(**message).error
    if not isinstance(error, str) or not error:
        error = BACKEND_ERROR_MESSAGE
    logger.error(f"Backend error: {error}")
    client.error = error
    await client.emit(client.on_error, error)


async def handle_pong(message: Dict[str, Any], client: "VoiceRelayClient") -> None:
    logger.debug("Received pong")
