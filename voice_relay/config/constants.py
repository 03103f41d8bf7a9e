"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for protocol values, defaults and timings so the
relay client, the test relay server and the verification engine agree on them.
"""

# Logger name used throughout the application
LOGGER_NAME = "voice_relay"

# Service identification
SERVICE_NAME = "voice-relay"
SERVICE_VERSION = "1.0.0"

# Relay endpoint used by the client when none is configured
DEFAULT_RELAY_URL = "ws://localhost:8000/ws"

# Client-side connection parameter defaults
DEFAULT_CALL_ID = "browser-test"
DEFAULT_ASSISTANT_ID = "demo"

# Server-side connection parameter defaults
SERVER_DEFAULT_USER_ID = "anonymous"
SERVER_DEFAULT_CALL_ID = "browser-session"
SERVER_DEFAULT_ASSISTANT_ID = "default"

# WebSocket close codes
CLOSE_NORMAL = 1000
CLOSE_ABNORMAL = 1006

# Reconnect policy
RECONNECT_DELAY = 3.0  # seconds
MANUAL_DISCONNECT_REASON = "Manual disconnect"

# Error strings surfaced to callers
CONNECTION_ERROR_MESSAGE = "WebSocket connection error"
BACKEND_ERROR_MESSAGE = "Backend error"
PROCESSING_ERROR_MESSAGE = "Message processing failed"

# Client -> server message types
MESSAGE_TYPE_CONNECTED = "connected"
MESSAGE_TYPE_TEXT_INPUT = "text_input"

# Server -> client message types
MESSAGE_TYPE_CONNECTION_ESTABLISHED = "connection_established"
MESSAGE_TYPE_TRANSCRIPT = "transcript"
MESSAGE_TYPE_AI_RESPONSE = "ai_response"
MESSAGE_TYPE_AUDIO_RESPONSE = "audio_response"
MESSAGE_TYPE_ERROR = "error"
MESSAGE_TYPE_PING = "ping"
MESSAGE_TYPE_PONG = "pong"
MESSAGE_TYPE_ECHO = "echo"
MESSAGE_TYPE_ECHO_RESPONSE = "echo_response"
MESSAGE_TYPE_TEST = "test"
MESSAGE_TYPE_TEST_RESPONSE = "test_response"
MESSAGE_TYPE_UNKNOWN_RESPONSE = "unknown_message_response"

# Test relay server
KEEPALIVE_INTERVAL = 20.0  # seconds
RELAY_CAPABILITIES = ["basic-websocket", "ping-pong", "echo"]
DEFAULT_ECHO_MESSAGE = "Hello from server!"

# Call verification
VERIFICATION_CHECK_TYPES = [
    "signalwire_api",
    "call_status",
    "webhook_response",
    "ring_timeout",
]
VERIFICATION_CHECK_DELAY = 1.0  # seconds
VERIFICATION_PASS_PROBABILITY = 0.8
VERIFICATION_SESSION_MAX_AGE = 60 * 60  # seconds
SESSION_SWEEP_INTERVAL = 300.0  # seconds
