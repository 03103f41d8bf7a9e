"""
Connection state management for the test relay endpoint.

This module provides the ConnectionRegistry class which tracks the relay
connections currently served by the process, keyed by the short connection id
assigned when the socket is accepted.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class RelayConnection:
    """Identifiers of one accepted relay connection."""

    connection_id: str
    user_id: str
    call_id: str
    assistant_id: str
    websocket: Any = None


class ConnectionRegistry:
    """
    Registry of active relay connections.

    Owned by the WebSocketManager; the HTTP layer only reads from it to report
    how many sockets are open.
    """

    def __init__(self):
        """Initialize an empty dictionary of active connections."""
        self.active_connections: Dict[str, RelayConnection] = {}

    def add_connection(self, connection: RelayConnection) -> None:
        """Register an accepted connection under its connection id."""
        self.active_connections[connection.connection_id] = connection

    def get_connection(self, connection_id: str) -> Optional[RelayConnection]:
        """Return the connection with the given id, or None if it is not active."""
        return self.active_connections.get(connection_id)

    def remove_connection(self, connection_id: str) -> None:
        self.active_connections.pop(connection_id, None)

    def get_all_connections(self) -> Dict[str, RelayConnection]:
        return self.active_connections

    def __len__(self) -> int:
        return len(self.active_connections)
