import asyncio
import json
import pytest
from unittest.mock import AsyncMock

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from voice_relay.websocket_manager import WebSocketManager
from voice_relay.models.connection_registry import ConnectionRegistry
from voice_relay.models.message_schemas import PongMessage

@pytest.fixture
def websocket_manager():
    return WebSocketManager(keepalive_interval=60)

def make_websocket(frames, query_params=None):
    websocket = AsyncMock(spec=WebSocket)
    websocket.query_params = query_params or {}
    websocket.client_state = WebSocketState.CONNECTED
    websocket.receive_text.side_effect = list(frames) + [WebSocketDisconnect(code=1000)]
    return websocket

def sent_frames(websocket):
    return [json.loads(c.args[0]) for c in websocket.send_text.call_args_list]

@pytest.mark.asyncio
async def test_websocket_manager_initialization(websocket_manager):
    """Test that WebSocketManager initializes correctly"""
    assert isinstance(websocket_manager.connection_registry, ConnectionRegistry)
    assert set(websocket_manager.handlers) == {"ping", "pong", "echo", "test"}
    assert websocket_manager.keepalive_interval == 60

@pytest.mark.asyncio
async def test_connection_established_uses_query_params(websocket_manager):
    """The greeting carries the identifiers from the query string"""
    websocket = make_websocket([], {"userId": "user-1", "callId": "call-7"})

    await websocket_manager.handle_websocket(websocket)

    websocket.accept.assert_called_once()
    welcome = sent_frames(websocket)[0]
    assert welcome["type"] == "connection_established"
    assert welcome["userId"] == "user-1"
    assert welcome["callId"] == "call-7"
    assert welcome["assistantId"] == "default"
    assert welcome["capabilities"] == ["basic-websocket", "ping-pong", "echo"]
    assert len(welcome["connectionId"]) == 8

@pytest.mark.asyncio
async def test_connection_defaults(websocket_manager):
    websocket = make_websocket([])

    await websocket_manager.handle_websocket(websocket)

    welcome = sent_frames(websocket)[0]
    assert welcome["userId"] == "anonymous"
    assert welcome["callId"] == "browser-session"
    assert welcome["assistantId"] == "default"

@pytest.mark.asyncio
async def test_handle_websocket_flow(websocket_manager):
    """Test the full flow of handling a websocket connection"""
    websocket = make_websocket([
        json.dumps({"type": "ping"}),
        json.dumps({"type": "echo", "message": "hello"}),
        json.dumps({"event": "test"}),
        json.dumps({"type": "pong"}),
        json.dumps({"type": "mystery"}),
    ])

    await websocket_manager.handle_websocket(websocket)

    frames = sent_frames(websocket)
    assert [f["type"] for f in frames] == [
        "connection_established",
        "pong",
        "echo_response",
        "test_response",
        "unknown_message_response",
    ]
    assert frames[2]["originalMessage"] == "hello"
    assert frames[4]["receivedType"] == "mystery"
    connection_id = frames[0]["connectionId"]
    assert all(f["connectionId"] == connection_id for f in frames)

    # Assert the connection was cleaned up
    assert len(websocket_manager.connection_registry) == 0
    websocket.close.assert_called_once()

@pytest.mark.asyncio
async def test_invalid_frames_get_error_response(websocket_manager):
    websocket = make_websocket(["{not json", "[1, 2]", json.dumps({"type": "ping"})])

    await websocket_manager.handle_websocket(websocket)

    frames = sent_frames(websocket)
    assert frames[1]["type"] == "error"
    assert frames[1]["error"] == "Message processing failed"
    assert frames[2]["type"] == "error"
    assert frames[2]["details"] == "Message must be a JSON object"
    # The connection keeps working after a bad frame
    assert frames[3]["type"] == "pong"

@pytest.mark.asyncio
async def test_handler_failure_gets_error_response(websocket_manager):
    websocket_manager.handlers["echo"] = AsyncMock(side_effect=RuntimeError("boom"))
    websocket = make_websocket([json.dumps({"type": "echo"})])

    await websocket_manager.handle_websocket(websocket)

    frames = sent_frames(websocket)
    assert frames[1]["type"] == "error"
    assert frames[1]["details"] == "boom"

@pytest.mark.asyncio
async def test_handler_without_response_sends_nothing(websocket_manager):
    websocket = make_websocket([json.dumps({"type": "pong"})])

    await websocket_manager.handle_websocket(websocket)

    assert websocket.send_text.call_count == 1  # only the greeting

@pytest.mark.asyncio
async def test_custom_handler_response_is_sent(websocket_manager):
    handler = AsyncMock(return_value=PongMessage(connectionId="fixed"))
    websocket_manager.handlers["ping"] = handler
    websocket = make_websocket([json.dumps({"type": "ping"})])

    await websocket_manager.handle_websocket(websocket)

    handler.assert_called_once()
    assert sent_frames(websocket)[1]["connectionId"] == "fixed"

@pytest.mark.asyncio
async def test_handle_websocket_exception(websocket_manager):
    """Test that exceptions are handled properly"""
    websocket = AsyncMock(spec=WebSocket)
    websocket.query_params = {}
    websocket.client_state = WebSocketState.CONNECTED
    websocket.receive_text.side_effect = Exception("Test exception")

    # Handle websocket connection (should not raise)
    await websocket_manager.handle_websocket(websocket)

    websocket.accept.assert_called_once()
    websocket.close.assert_called_once()
    assert len(websocket_manager.connection_registry) == 0

@pytest.mark.asyncio
async def test_disconnected_socket_is_not_closed_again(websocket_manager):
    websocket = make_websocket([])
    websocket.client_state = WebSocketState.DISCONNECTED

    await websocket_manager.handle_websocket(websocket)

    websocket.close.assert_not_called()

@pytest.mark.asyncio
async def test_connection_registered_while_open(websocket_manager):
    seen = []

    async def receive():
        seen.append(len(websocket_manager.connection_registry))
        raise WebSocketDisconnect(code=1001)

    websocket = make_websocket([])
    websocket.receive_text.side_effect = receive

    await websocket_manager.handle_websocket(websocket)

    assert seen == [1]
    assert len(websocket_manager.connection_registry) == 0

@pytest.mark.asyncio
async def test_keepalive_sends_pings():
    manager = WebSocketManager(keepalive_interval=0.01)

    async def slow_disconnect():
        await asyncio.sleep(0.05)
        raise WebSocketDisconnect(code=1000)

    websocket = make_websocket([])
    websocket.receive_text.side_effect = slow_disconnect

    await manager.handle_websocket(websocket)

    pings = [f for f in sent_frames(websocket) if f["type"] == "ping"]
    assert len(pings) >= 2
    assert pings[0]["connectionId"] == sent_frames(websocket)[0]["connectionId"]

@pytest.mark.asyncio
async def test_keepalive_stops_after_close():
    manager = WebSocketManager(keepalive_interval=0.01)
    websocket = make_websocket([])

    await manager.handle_websocket(websocket)
    count = websocket.send_text.call_count
    await asyncio.sleep(0.05)

    assert websocket.send_text.call_count == count
