"""
Models module for data structures and state management in the voice relay.

Key components:
- message_schemas: Pydantic models for every frame exchanged over the relay
  WebSocket, in both directions.
- connection: the client connection state enum and the transport event records
  consumed by the relay client's state machine.
- connection_registry: tracking of relay connections served by this process.
- verification: Pydantic models for call verification sessions and their checks.

Usage examples:
```python
from voice_relay.models.message_schemas import TextInputMessage, TranscriptMessage

frame = TextInputMessage(text="hello")
await websocket.send(frame.model_dump_json())

transcript = TranscriptMessage(**{"type": "transcript", "text": "hi", "isFinal": True})
```
"""

from voice_relay.models.connection import (
    ConnectionState,
    SocketClosed,
    SocketError,
    SocketMessage,
    SocketOpened,
)
from voice_relay.models.connection_registry import ConnectionRegistry, RelayConnection
from voice_relay.models.message_schemas import (
    AIResponseMessage,
    AudioResponseMessage,
    ConnectedMessage,
    ConnectionEstablishedMessage,
    EchoResponseMessage,
    ErrorMessage,
    OutgoingClientMessage,
    OutgoingServerMessage,
    PingMessage,
    PongMessage,
    ProcessingErrorMessage,
    RelayMessage,
    TestResponseMessage,
    TextInputMessage,
    TranscriptMessage,
    UnknownMessageResponse,
)
from voice_relay.models.verification import VerificationCheck, VerificationSession
