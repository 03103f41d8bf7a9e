"""
Connection state and transport events for the relay client.

The relay client never reacts to the transport directly. Its receive loop turns
what the underlying WebSocket does into one of the event records below and feeds
it to a single entry point, which keeps the ordering of open, message, error and
close handling explicit and lets tests drive the state machine without a socket.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class ConnectionState(str, Enum):
    """Lifecycle of one client-side relay connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class SocketOpened:
    """The opening handshake completed."""


@dataclass(frozen=True)
class SocketMessage:
    """A text frame arrived."""

    data: str


@dataclass(frozen=True)
class SocketError:
    """The transport reported a failure. Does not imply the socket closed."""

    error: str


@dataclass(frozen=True)
class SocketClosed:
    """The socket closed with the given close code."""

    code: int
    reason: str = ""


SocketEvent = Union[SocketOpened, SocketMessage, SocketError, SocketClosed]
