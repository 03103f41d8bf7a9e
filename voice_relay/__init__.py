"""
Voice Relay - live call session relay and call verification for voice agents

This package provides the pieces of a voice agent platform that carry state
during a live call: the WebSocket relay between a browser session and the voice
backend, and the verification of freshly placed calls.

Architecture Overview:
- VoiceRelayClient: client end of a live session with a connection state
  machine, type-keyed message routing and fixed-delay reconnect
- FastAPI server exposing a test relay WebSocket endpoint that greets, pings
  and answers clients so connectivity can be checked end to end
- CallVerificationService: in-memory verification sessions running their
  checks sequentially in the background, swept periodically by the server

Key Components:
- config: Application-wide constants and logging setup
- handlers: Frame handlers for the client and for the test relay
- models: Pydantic message schemas, connection state and verification records
- services: Relay client, message router and verification engine
- websocket_manager: Lifecycle and routing for test relay connections

Getting Started:
1. Set up environment variables (optionally in a .env file):
   - PORT: Port to run the server on (default 8000)
   - HOST: Host to bind the server to (default 0.0.0.0)
   - LOG_LEVEL: Logging level (default INFO)
   - SESSION_SWEEP_INTERVAL: Seconds between verification session sweeps (default 300)
   - KEEPALIVE_INTERVAL: Seconds between test relay pings (default 20)

2. Start the server:
   ```bash
   python -m voice_relay.main
   ```

3. Point a VoiceRelayClient at ws://your-server:8000/ws
"""
