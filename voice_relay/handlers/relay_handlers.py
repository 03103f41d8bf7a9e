"""
Handles frames received by the test relay endpoint.

The test relay exists to check WebSocket connectivity end to end. It answers
pings, echoes, test probes and anything it does not recognise, so a client can
verify that frames travel in both directions.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import WebSocket

from voice_relay.config.constants import DEFAULT_ECHO_MESSAGE, LOGGER_NAME
from voice_relay.models.connection_registry import RelayConnection
from voice_relay.models.message_schemas import (
    EchoResponseMessage,
    OutgoingServerMessage,
    PongMessage,
    TestResponseMessage,
    UnknownMessageResponse,
)

logger = logging.getLogger(LOGGER_NAME)


async def handle_ping(
    message: Dict[str, Any],
    websocket: WebSocket,
    connection: RelayConnection,
) -> PongMessage:
    """Answer a client ping with a pong."""
    logger.info(f"[{connection.connection_id}] Ping received, sending pong")
    return PongMessage(connectionId=connection.connection_id)


async def handle_pong(
    message: Dict[str, Any],
    websocket: WebSocket,
    connection: RelayConnection,
) -> None:
    """Record a pong sent in reply to a keepalive ping. No response is sent."""
    logger.info(f"[{connection.connection_id}] Pong received - connection healthy")
    return None


async def handle_echo(
    message: Dict[str, Any],
    websocket: WebSocket,
    connection: RelayConnection,
) -> EchoResponseMessage:
    """
    Echo the "message" field of the frame back to the client.

    Args:
        message: The echo frame, optionally carrying a "message" string
        websocket: The WebSocket connection the frame arrived on
        connection: The registered relay connection

    Returns:
        An echo_response frame carrying the original message, or a default
        greeting when the frame had none
    """
    logger.info(f"[{connection.connection_id}] Echo request received")
    original = message.get("message") or DEFAULT_ECHO_MESSAGE
    return EchoResponseMessage(
        originalMessage=str(original), connectionId=connection.connection_id
    )


async def handle_test(
    message: Dict[str, Any],
    websocket: WebSocket,
    connection: RelayConnection,
) -> TestResponseMessage:
    logger.info(f"[{connection.connection_id}] Test message received")
    return TestResponseMessage(connectionId=connection.connection_id)


async def handle_unknown(
    message: Dict[str, Any],
    websocket: WebSocket,
    connection: RelayConnection,
) -> Optional[OutgoingServerMessage]:
    """
    Report an unrecognised frame back to the client.

    Unlike the relay client, which silently ignores types it does not know,
    the test relay answers every unknown frame so the sender can see it arrived.
    """
    received_type = message.get("type") or message.get("event")
    logger.info(f"[{connection.connection_id}] Unknown message type: {received_type}")
    return UnknownMessageResponse(
        receivedType=received_type, connectionId=connection.connection_id
    )
