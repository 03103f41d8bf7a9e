"""
WebSocket client for the voice relay.

This module provides the browser-side end of a live call session: it opens one
WebSocket to the relay, announces the user, call and assistant it belongs to,
forwards transcripts, AI responses and synthesized audio to callbacks, and
reconnects after an unexpected close.

Transport activity is turned into SocketOpened, SocketMessage, SocketError and
SocketClosed events and fed through VoiceRelayClient.handle(), so the state
machine can be driven without a network connection.
"""

import asyncio
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import websockets
from pydantic import BaseModel
from websockets.exceptions import ConnectionClosed, InvalidURI
from websockets.protocol import State

from voice_relay.config.constants import (
    CLOSE_ABNORMAL,
    CLOSE_NORMAL,
    CONNECTION_ERROR_MESSAGE,
    DEFAULT_ASSISTANT_ID,
    DEFAULT_CALL_ID,
    DEFAULT_RELAY_URL,
    LOGGER_NAME,
    MANUAL_DISCONNECT_REASON,
    RECONNECT_DELAY,
)
from voice_relay.models.connection import (
    ConnectionState,
    SocketClosed,
    SocketError,
    SocketEvent,
    SocketMessage,
    SocketOpened,
)
from voice_relay.models.message_schemas import ConnectedMessage, TextInputMessage
from voice_relay.services.message_router import MessageRouter, resolve_message_type

logger = logging.getLogger(LOGGER_NAME)

# Callbacks may be plain functions or coroutine functions
Callback = Optional[Callable[..., Union[None, Awaitable[None]]]]
ConnectFactory = Callable[[str], Awaitable[Any]]


class VoiceRelayClient:
    """
    Client side of a live voice session relayed over WebSocket.

    At most one socket is live per client. connect() is a no-op while a
    connection is being opened or is open. An unexpected close (any code other
    than 1000, without a prior disconnect()) schedules a single reconnect
    attempt after reconnect_delay seconds; a failed attempt closes abnormally
    and schedules the next one, with no limit on the number of attempts.
    Transport errors are reported through on_error but never trigger a
    reconnect by themselves.
    """

    def __init__(
        self,
        user_id: str,
        call_id: Optional[str] = None,
        assistant_id: Optional[str] = None,
        url: str = DEFAULT_RELAY_URL,
        *,
        on_connection_change: Callback = None,
        on_error: Callback = None,
        on_transcript: Callback = None,
        on_ai_response: Callback = None,
        on_audio_response: Callback = None,
        reconnect_delay: float = RECONNECT_DELAY,
        router: Optional[MessageRouter] = None,
        connect_factory: Optional[ConnectFactory] = None,
    ):
        """
        Initialize the relay client.

        Args:
            user_id: Identifier of the user owning the session
            call_id: Identifier of the call, defaults to "browser-test"
            assistant_id: Identifier of the assistant, defaults to "demo"
            url: WebSocket URL of the relay endpoint
            on_connection_change: Called with True on open and False on close
            on_error: Called with an error string on transport or backend errors
            on_transcript: Called with (text, is_final) for each transcript
            on_ai_response: Called with the text of each AI response
            on_audio_response: Called with the base64 payload of each audio response
            reconnect_delay: Seconds to wait before reconnecting after an
                unexpected close
            router: Dispatcher for inbound frames
            connect_factory: Coroutine function opening the socket for a URL,
                websockets.connect by default
        """
        self.url = url
        self.user_id = user_id
        self.call_id = call_id or DEFAULT_CALL_ID
        self.assistant_id = assistant_id or DEFAULT_ASSISTANT_ID

        self.on_connection_change = on_connection_change
        self.on_error = on_error
        self.on_transcript = on_transcript
        self.on_ai_response = on_ai_response
        self.on_audio_response = on_audio_response

        self.reconnect_delay = reconnect_delay
        self.router = router or MessageRouter()
        self._connect_factory = connect_factory or websockets.connect

        self.websocket = None
        self.state = ConnectionState.DISCONNECTED
        self.error: Optional[str] = None

        self._manual_disconnect = False
        # Bumped on every connect() and disconnect() so a slow connection
        # attempt can tell it has been superseded
        self._attempt = 0
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._recv_task: Optional[asyncio.Task] = None

        self._event_handlers = {
            SocketOpened: self._on_open,
            SocketMessage: self._on_message,
            SocketError: self._on_error,
            SocketClosed: self._on_close,
        }

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def is_connecting(self) -> bool:
        return self.state is ConnectionState.CONNECTING

    @property
    def reconnect_pending(self) -> bool:
        """True while a reconnect attempt is scheduled but has not fired yet."""
        return self._reconnect_handle is not None

    def build_url(self) -> str:
        """Return the relay URL with the userId, callId and assistantId parameters set."""
        parts = urlsplit(self.url)
        params = {"userId": self.user_id, "callId": self.call_id, "assistantId": self.assistant_id}
        query = [(k, v) for k, v in parse_qsl(parts.query) if k not in params]
        query.extend(params.items())
        return urlunsplit(parts._replace(query=urlencode(query)))

    async def connect(self) -> None:
        """
        Open the relay connection.

        Does nothing if the client is already connecting or connected. Failures
        are reported through the error callback, never raised.
        """
        if self.state is not ConnectionState.DISCONNECTED:
            logger.warning("Already connecting or connected")
            return

        self.state = ConnectionState.CONNECTING
        self.error = None
        self._manual_disconnect = False
        self._attempt += 1
        attempt = self._attempt

        url = self.build_url()
        logger.info(f"Connecting to voice relay at {url}")

        try:
            websocket = await self._connect_factory(url)
        except InvalidURI as e:
            # The socket could not even be created; there is nothing to reconnect to
            self.state = ConnectionState.DISCONNECTED
            self.error = f"Failed to create WebSocket: {e}"
            logger.error(self.error)
            await self.emit(self.on_error, str(e))
            return
        except Exception as e:
            if attempt != self._attempt:
                logger.debug(f"Superseded connection attempt failed: {e}")
                return
            logger.error(f"Failed to connect to voice relay: {e}")
            await self.handle(SocketError(str(e)))
            await self.handle(SocketClosed(CLOSE_ABNORMAL, str(e)))
            return

        if attempt != self._attempt:
            logger.info("Connection attempt superseded, closing new socket")
            await self._close_socket(websocket)
            return

        self.websocket = websocket
        await self.handle(SocketOpened())

        # The open callback may already have disconnected
        if self.websocket is websocket:
            self._recv_task = asyncio.create_task(self._receive_loop(websocket))

    async def disconnect(self) -> None:
        """
        Close the relay connection at the caller's request.

        Cancels any scheduled reconnect, closes an open socket with code 1000 and
        always leaves the client disconnected, whatever state it was in.
        """
        logger.info("Disconnecting from voice relay")
        self._manual_disconnect = True
        self._attempt += 1
        self._cancel_reconnect()

        websocket, self.websocket = self.websocket, None
        if websocket is not None and websocket.state is State.OPEN:
            await self._close_socket(websocket)

        recv_task, self._recv_task = self._recv_task, None
        if recv_task is not None and not recv_task.done() and recv_task is not asyncio.current_task():
            recv_task.cancel()

        self.state = ConnectionState.DISCONNECTED
        self.error = None
        await self.emit(self.on_connection_change, False)

    async def send_message(self, message: Union[Dict[str, Any], BaseModel]) -> bool:
        """
        Send a JSON frame over the relay.

        Args:
            message: A dict or a message model to serialize

        Returns:
            True if the frame was handed to an open socket, False otherwise
        """
        websocket = self.websocket
        if websocket is None or websocket.state is not State.OPEN:
            logger.warning("WebSocket not connected, cannot send message")
            return False

        try:
            if isinstance(message, BaseModel):
                payload = message.model_dump_json()
                message_type = getattr(message, "type", None)
            else:
                payload = json.dumps(message)
                message_type = message.get("type")
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize message: {e}")
            return False

        try:
            await websocket.send(payload)
        except ConnectionClosed as e:
            logger.warning(f"WebSocket closed while sending message: {e}")
            return False

        logger.debug(f"Sent message: {message_type or 'unknown'}")
        return True

    async def send_text(self, text: str) -> bool:
        """Send typed text to the session as a text_input frame."""
        return await self.send_message(TextInputMessage(text=text))

    async def handle(self, event: SocketEvent) -> None:
        """Apply a transport event to the connection state machine."""
        handler = self._event_handlers.get(type(event))
        if handler is None:
            logger.warning(f"Unhandled socket event: {event!r}")
            return
        await handler(event)

    async def emit(self, callback: Callback, *args: Any) -> None:
        """Invoke a user callback, awaiting it if needed. Failures are logged."""
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            name = getattr(callback, "__name__", repr(callback))
            logger.error(f"Error in relay callback {name}: {e}", exc_info=True)

    async def _on_open(self, event: SocketOpened) -> None:
        logger.info("WebSocket connected successfully")
        self.state = ConnectionState.CONNECTED
        self.error = None
        await self.emit(self.on_connection_change, True)

        handshake = ConnectedMessage(
            userId=self.user_id,
            callId=self.call_id,
            assistantId=self.assistant_id,
        )
        await self.send_message(handshake)

    async def _on_message(self, event: SocketMessage) -> None:
        try:
            message = json.loads(event.data)
        except (TypeError, ValueError) as e:
            logger.error(f"Error parsing WebSocket message: {e}")
            return

        if not isinstance(message, dict):
            logger.error(f"Ignoring non-object WebSocket message: {message!r}")
            return

        message_type = resolve_message_type(message)
        logger.debug(f"WebSocket message received: {message_type}")
        try:
            await self.router.route(message, self)
        except Exception as e:
            # A frame that breaks its handler must not end the receive loop
            logger.error(f"Error handling {message_type} message: {e}", exc_info=True)

    async def _on_error(self, event: SocketError) -> None:
        logger.error(f"WebSocket error: {event.error}")
        self.error = CONNECTION_ERROR_MESSAGE
        await self.emit(self.on_error, CONNECTION_ERROR_MESSAGE)

    async def _on_close(self, event: SocketClosed) -> None:
        logger.info(f"WebSocket closed: {event.code} - {event.reason}")
        self.websocket = None
        self.state = ConnectionState.DISCONNECTED
        await self.emit(self.on_connection_change, False)

        if not self._manual_disconnect and event.code != CLOSE_NORMAL:
            self._schedule_reconnect()

    async def _receive_loop(self, websocket) -> None:
        """Feed frames from one socket into handle() until it closes."""
        try:
            async for data in websocket:
                if websocket is not self.websocket:
                    break
                await self.handle(SocketMessage(data))
        except ConnectionClosed:
            pass
        except Exception as e:
            if websocket is self.websocket:
                await self.handle(SocketError(str(e)))

        if websocket is not self.websocket:
            logger.debug("Ignoring close of a replaced socket")
            return

        code = websocket.close_code or CLOSE_ABNORMAL
        reason = websocket.close_reason or ""
        await self.handle(SocketClosed(code, reason))

    async def _close_socket(self, websocket) -> None:
        try:
            await websocket.close(code=CLOSE_NORMAL, reason=MANUAL_DISCONNECT_REASON)
        except Exception as e:
            logger.warning(f"Error closing WebSocket: {e}")

    def _schedule_reconnect(self) -> None:
        self._cancel_reconnect()
        logger.info(f"Scheduling reconnection in {self.reconnect_delay}s")
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(self.reconnect_delay, self._fire_reconnect)

    def _fire_reconnect(self) -> None:
        self._reconnect_handle = None
        self._reconnect_task = asyncio.ensure_future(self.connect())

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    async def __aenter__(self) -> "VoiceRelayClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()
