"""
WebSocket connection manager for the test relay endpoint.

This module implements the server side of the relay connectivity test:
- Accept WebSocket connections and register them
- Greet each connection with a connection_established frame
- Keep the connection alive with periodic pings
- Route incoming frames to handler functions by type
- Answer frames that cannot be processed with an error frame

Unknown frames are answered rather than dropped, so a client can confirm that
anything it sends reaches the server.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from voice_relay.config.constants import (
    KEEPALIVE_INTERVAL,
    LOGGER_NAME,
    MESSAGE_TYPE_ECHO,
    MESSAGE_TYPE_PING,
    MESSAGE_TYPE_PONG,
    MESSAGE_TYPE_TEST,
    SERVER_DEFAULT_ASSISTANT_ID,
    SERVER_DEFAULT_CALL_ID,
    SERVER_DEFAULT_USER_ID,
)
from voice_relay.handlers.relay_handlers import (
    handle_echo,
    handle_ping,
    handle_pong,
    handle_test,
    handle_unknown,
)
from voice_relay.models.connection_registry import ConnectionRegistry, RelayConnection
from voice_relay.models.message_schemas import (
    ConnectionEstablishedMessage,
    OutgoingServerMessage,
    PingMessage,
    ProcessingErrorMessage,
)

logger = logging.getLogger(LOGGER_NAME)

# Type hint for handler functions
HandlerFunc = Callable[
    [Dict[str, Any], WebSocket, RelayConnection],
    Awaitable[Optional[OutgoingServerMessage]],
]


class WebSocketManager:
    """Manages test relay connections and routes their frames to handlers.

    Each frame is routed by its "type" field, or its legacy "event" field when
    "type" is missing. Frames without a registered handler go to the unknown
    handler.
    """

    def __init__(self, keepalive_interval: float = KEEPALIVE_INTERVAL):
        self.connection_registry = ConnectionRegistry()
        self.keepalive_interval = keepalive_interval

        self.handlers: Dict[str, HandlerFunc] = {
            MESSAGE_TYPE_PING: handle_ping,
            MESSAGE_TYPE_PONG: handle_pong,
            MESSAGE_TYPE_ECHO: handle_echo,
            MESSAGE_TYPE_TEST: handle_test,
        }
        self.unknown_handler: HandlerFunc = handle_unknown

    def _create_connection(self, websocket: WebSocket) -> RelayConnection:
        params = websocket.query_params
        return RelayConnection(
            connection_id=uuid.uuid4().hex[:8],
            user_id=params.get("userId") or SERVER_DEFAULT_USER_ID,
            call_id=params.get("callId") or SERVER_DEFAULT_CALL_ID,
            assistant_id=params.get("assistantId") or SERVER_DEFAULT_ASSISTANT_ID,
            websocket=websocket,
        )

    async def _keepalive(self, websocket: WebSocket, connection: RelayConnection) -> None:
        """Send a ping every keepalive_interval seconds while the socket is open."""
        while True:
            await asyncio.sleep(self.keepalive_interval)
            if websocket.client_state != WebSocketState.CONNECTED:
                return
            try:
                ping = PingMessage(connectionId=connection.connection_id)
                await websocket.send_text(ping.model_dump_json())
                logger.debug(f"[{connection.connection_id}] Keepalive ping sent")
            except Exception as e:
                logger.error(f"[{connection.connection_id}] Keepalive ping failed: {e}")

    async def process_message(
        self, data: str, websocket: WebSocket, connection: RelayConnection
    ) -> Optional[OutgoingServerMessage]:
        """
        Decode a frame and run the handler for its type.

        Returns:
            The response frame to send, or None when no response is due

        Raises:
            ValueError: If the frame is not a JSON object
        """
        message = json.loads(data)
        if not isinstance(message, dict):
            raise ValueError("Message must be a JSON object")

        message_type = message.get("type") or message.get("event")
        logger.info(f"[{connection.connection_id}] Message type: {message_type}")

        handler = self.handlers.get(message_type, self.unknown_handler)
        return await handler(message, websocket, connection)

    async def handle_websocket(self, websocket: WebSocket):
        """Handle a test relay connection throughout its lifecycle.

        Args:
            websocket (WebSocket): The FastAPI WebSocket connection object

        This method:
        1. Accepts and registers the connection
        2. Sends the connection_established greeting and starts the keepalive
        3. Processes incoming frames in a loop, answering each as its handler decides
        4. Cleans up the keepalive and the registration when the connection ends
        """
        await websocket.accept()
        connection = self._create_connection(websocket)
        self.connection_registry.add_connection(connection)
        logger.info(
            f"[{connection.connection_id}] Connection opened for user {connection.user_id}, "
            f"call {connection.call_id}, assistant {connection.assistant_id}"
        )

        keepalive_task = None
        try:
            welcome = ConnectionEstablishedMessage(
                connectionId=connection.connection_id,
                userId=connection.user_id,
                callId=connection.call_id,
                assistantId=connection.assistant_id,
            )
            await websocket.send_text(welcome.model_dump_json())
            keepalive_task = asyncio.create_task(self._keepalive(websocket, connection))

            while True:
                data = await websocket.receive_text()
                try:
                    response = await self.process_message(data, websocket, connection)
                except Exception as e:
                    logger.error(f"[{connection.connection_id}] Error processing message: {e}")
                    response = ProcessingErrorMessage(details=str(e))

                if response is not None:
                    await websocket.send_text(response.model_dump_json())

        except WebSocketDisconnect as e:
            logger.info(f"[{connection.connection_id}] Client closed connection: {e.code}")
        except Exception as e:
            logger.error(f"[{connection.connection_id}] Error in WebSocket connection: {e}", exc_info=True)
        finally:
            if keepalive_task is not None:
                keepalive_task.cancel()
            self.connection_registry.remove_connection(connection.connection_id)
            if websocket.client_state == WebSocketState.CONNECTED:
                await websocket.close()
            logger.info(f"[{connection.connection_id}] WebSocket connection closed")
