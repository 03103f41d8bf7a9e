"""
Dispatch of inbound relay frames to their handlers.

The MessageRouter holds a table from message type to handler coroutine. Frames
are keyed by their "type" field, falling back to the legacy "event" field.
Types without a registered handler are ignored.
"""

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from voice_relay.config.constants import (
    LOGGER_NAME,
    MESSAGE_TYPE_AI_RESPONSE,
    MESSAGE_TYPE_AUDIO_RESPONSE,
    MESSAGE_TYPE_ERROR,
    MESSAGE_TYPE_PONG,
    MESSAGE_TYPE_TRANSCRIPT,
)
from voice_relay.handlers.client_handlers import (
    handle_ai_response,
    handle_audio_response,
    handle_error,
    handle_pong,
    handle_transcript,
)

if TYPE_CHECKING:
    from voice_relay.services.relay_client import VoiceRelayClient

logger = logging.getLogger(LOGGER_NAME)

# Type hint for handler functions
ClientHandlerFunc = Callable[[Dict[str, Any], "VoiceRelayClient"], Awaitable[None]]


def resolve_message_type(message: Dict[str, Any]) -> Optional[str]:
    """Return the discriminator of a frame: "type" if set, else "event".

    Only non-empty strings count; a frame without one has no type.
    """
    for key in ("type", "event"):
        value = message.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class MessageRouter:
    """Routes decoded relay frames to the handler registered for their type."""

    def __init__(self, handlers: Optional[Dict[str, ClientHandlerFunc]] = None):
        if handlers is None:
            handlers = {
                MESSAGE_TYPE_TRANSCRIPT: handle_transcript,
                MESSAGE_TYPE_AI_RESPONSE: handle_ai_response,
                MESSAGE_TYPE_AUDIO_RESPONSE: handle_audio_response,
                MESSAGE_TYPE_ERROR: handle_error,
                MESSAGE_TYPE_PONG: handle_pong,
            }
        self.handlers: Dict[str, ClientHandlerFunc] = dict(handlers)

    def register(self, message_type: str, handler: ClientHandlerFunc) -> None:
        """Register or replace the handler for a message type."""
        self.handlers[message_type] = handler

    async def route(self, message: Dict[str, Any], client: "VoiceRelayClient") -> bool:
        """
        Dispatch a frame to its handler.

        Args:
            message: The decoded JSON frame
            client: The client that received the frame

        Returns:
            True if a handler processed the frame, False if the frame was
            ignored or failed validation
        """
        message_type = resolve_message_type(message)
        handler = self.handlers.get(message_type)
        if handler is None:
            logger.debug(f"Ignoring message type: {message_type}")
            return False

        try:
            await handler(message, client)
        except ValidationError as e:
            logger.error(f"Invalid {message_type} message: {e}")
            return False
        return True
