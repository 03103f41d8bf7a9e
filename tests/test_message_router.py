"""
Tests for the MessageRouter and the client frame handlers it dispatches to.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from voice_relay.handlers.client_handlers import (
    handle_ai_response,
    handle_audio_response,
    handle_error,
    handle_pong,
    handle_transcript,
)
from voice_relay.services.message_router import MessageRouter, resolve_message_type


def make_client():
    client = MagicMock()
    client.emit = AsyncMock()
    client.error = None
    return client


class TestResolveMessageType:

    def test_type_takes_precedence(self):
        assert resolve_message_type({"type": "transcript", "event": "pong"}) == "transcript"

    def test_falls_back_to_event(self):
        assert resolve_message_type({"event": "pong"}) == "pong"
        assert resolve_message_type({"type": "", "event": "pong"}) == "pong"

    def test_missing_discriminator(self):
        assert resolve_message_type({"text": "hi"}) is None

    def test_non_string_discriminator_is_not_a_type(self):
        assert resolve_message_type({"type": ["transcript"]}) is None
        assert resolve_message_type({"type": {"a": 1}, "event": "pong"}) == "pong"
        assert resolve_message_type({"type": 7}) is None


@pytest.mark.asyncio
class TestMessageRouter:

    async def test_default_handler_table(self):
        router = MessageRouter()

        assert set(router.handlers) == {
            "transcript",
            "ai_response",
            "audio_response",
            "error",
            "pong",
        }
        assert router.handlers["transcript"] is handle_transcript
        assert router.handlers["pong"] is handle_pong

    async def test_route_dispatches_to_handler(self):
        handler = AsyncMock()
        router = MessageRouter({"transcript": handler})
        client = make_client()
        message = {"type": "transcript", "text": "hi"}

        assert await router.route(message, client) is True
        handler.assert_awaited_once_with(message, client)

    async def test_unknown_type_is_ignored(self):
        handler = AsyncMock()
        router = MessageRouter({"transcript": handler})

        assert await router.route({"type": "echo_response"}, make_client()) is False
        assert await router.route({"no": "type"}, make_client()) is False
        assert await router.route({"type": ["transcript"]}, make_client()) is False
        handler.assert_not_awaited()

    async def test_register_adds_handler(self):
        router = MessageRouter()
        handler = AsyncMock()

        router.register("ping", handler)

        assert await router.route({"type": "ping"}, make_client()) is True
        handler.assert_awaited_once()

    async def test_invalid_frame_is_dropped(self):
        router = MessageRouter()
        client = make_client()

        # isFinal must be a boolean
        handled = await router.route(
            {"type": "transcript", "text": "hi", "isFinal": "perhaps"}, client
        )

        assert handled is False
        client.emit.assert_not_awaited()


@pytest.mark.asyncio
class TestClientHandlers:

    async def test_handle_transcript(self):
        client = make_client()

        await handle_transcript({"type": "transcript", "text": "hello", "isFinal": True}, client)

        client.emit.assert_awaited_once_with(client.on_transcript, "hello", True)

    async def test_handle_transcript_null_final_flag(self):
        client = make_client()

        await handle_transcript({"type": "transcript", "text": "hello", "isFinal": None}, client)

        client.emit.assert_awaited_once_with(client.on_transcript, "hello", False)

    async def test_handle_ai_response_without_text(self):
        client = make_client()

        await handle_ai_response({"type": "ai_response"}, client)

        client.emit.assert_not_awaited()

    async def test_handle_audio_response(self):
        client = make_client()

        await handle_audio_response({"type": "audio_response", "audio": "AAAA"}, client)

        client.emit.assert_awaited_once_with(client.on_audio_response, "AAAA")

    async def test_handle_error_records_error(self):
        client = make_client()

        await handle_error({"type": "error", "error": "quota exceeded"}, client)

        assert client.error == "quota exceeded"
        client.emit.assert_awaited_once_with(client.on_error, "quota exceeded")

    async def test_handle_pong_has_no_side_effects(self):
        client = make_client()

        await handle_pong({"type": "pong"}, client)

        client.emit.assert_not_awaited()
        assert client.error is None
