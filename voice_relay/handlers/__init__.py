"""
Handlers module for the voice relay WebSocket protocol.

Key components:
- client_handlers: Processes frames received by the relay client (transcripts,
  AI responses, synthesized audio, backend errors and pongs) and forwards their
  payloads to the client's callbacks.
- relay_handlers: Processes frames received by the test relay endpoint and
  builds the response frame for each (pong, echo_response, test_response,
  unknown_message_response).

Usage examples:
```python
from voice_relay.handlers import relay_handlers

response = await relay_handlers.handle_echo(
    {"type": "echo", "message": "hi"}, websocket, connection
)
await websocket.send_text(response.model_dump_json())
```
"""

# Handlers module initialization
