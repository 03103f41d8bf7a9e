"""
Services module for the voice relay.

Key components:
- relay_client: VoiceRelayClient, the client end of a live call session. It
  manages a single WebSocket to the relay, sends the connection handshake and
  text input, forwards transcripts, AI responses and audio to callbacks and
  reconnects after unexpected closes.
- message_router: MessageRouter, the type-keyed dispatch table used by the
  client for inbound frames.
- verification_service: CallVerificationService, the in-memory engine running
  simulated post-call-setup verification checks.

Usage examples:
```python
import asyncio
from voice_relay.services.relay_client import VoiceRelayClient

async def listen():
    client = VoiceRelayClient(
        "user-1",
        call_id="call-42",
        url="wss://relay.example.com/ws",
        on_transcript=lambda text, final: print(text, final),
    )
    async with client:
        await client.send_text("Hello there")
        await asyncio.sleep(30)

asyncio.run(listen())
```
"""

# Services module initialization
