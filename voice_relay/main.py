"""
FastAPI server for the voice relay.

This module builds the FastAPI application hosting the test relay WebSocket
endpoint and the call verification API. Services are created per application
and kept on app.state, so every application instance, including the ones built
in tests, has its own connection registry and verification sessions.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import dotenv
from fastapi import FastAPI, HTTPException, Request, WebSocket

from voice_relay.config.constants import (
    KEEPALIVE_INTERVAL,
    LOGGER_NAME,
    SERVICE_NAME,
    SERVICE_VERSION,
    SESSION_SWEEP_INTERVAL,
)
from voice_relay.config.logging_config import configure_logging
from voice_relay.models.verification import (
    StartVerificationRequest,
    StartVerificationResponse,
    VerificationSession,
)
from voice_relay.services.verification_service import CallVerificationService
from voice_relay.websocket_manager import WebSocketManager

# Load environment variables from .env file if it exists
env_path = Path(".") / ".env"
if env_path.exists():
    dotenv.load_dotenv(env_path)

logger = logging.getLogger(LOGGER_NAME)

# Get configuration from environment variables
PORT = int(os.getenv("PORT", "8000"))
HOST = os.getenv("HOST", "0.0.0.0")
SWEEP_INTERVAL = float(os.getenv("SESSION_SWEEP_INTERVAL", str(SESSION_SWEEP_INTERVAL)))
PING_INTERVAL = float(os.getenv("KEEPALIVE_INTERVAL", str(KEEPALIVE_INTERVAL)))


async def sweep_sessions(service: CallVerificationService, interval: float) -> None:
    """Remove expired verification sessions every interval seconds."""
    while True:
        await asyncio.sleep(interval)
        try:
            removed = service.clear_old_sessions()
            logger.debug(f"Session sweep removed {removed} sessions")
        except Exception as e:
            logger.error(f"Error sweeping verification sessions: {e}", exc_info=True)


def create_app(
    verification_service: Optional[CallVerificationService] = None,
    websocket_manager: Optional[WebSocketManager] = None,
    sweep_interval: float = SWEEP_INTERVAL,
) -> FastAPI:
    """
    Build the voice relay application.

    Args:
        verification_service: Verification engine to serve, a new one by default
        websocket_manager: Test relay manager to serve, a new one by default
        sweep_interval: Seconds between removals of expired verification sessions

    Returns:
        The configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service = app.state.verification_service
        sweep_task = asyncio.create_task(sweep_sessions(service, sweep_interval))
        logger.info(f"Verification session sweep every {sweep_interval}s")
        try:
            yield
        finally:
            sweep_task.cancel()
            await service.shutdown()

    app = FastAPI(
        title="Voice Relay",
        description="WebSocket relay test endpoint and call verification API for voice agents",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.verification_service = verification_service or CallVerificationService()
    app.state.websocket_manager = websocket_manager or WebSocketManager(
        keepalive_interval=PING_INTERVAL
    )

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """WebSocket endpoint for relay connectivity tests.

        Query parameters userId, callId and assistantId identify the session.
        The endpoint greets the client, pings it periodically and answers ping,
        echo, test and unknown frames.
        """
        await websocket.app.state.websocket_manager.handle_websocket(websocket)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint for monitoring system status.

        Returns:
            dict: Status information including the number of open relay
            connections and of tracked verification sessions.
        """
        state = request.app.state
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "active_connections": len(state.websocket_manager.connection_registry),
            "verification_sessions": len(state.verification_service.sessions),
        }

    @app.get("/")
    async def root():
        """Root endpoint to display basic information about the API."""
        return {
            "name": "Voice Relay",
            "description": "WebSocket relay test endpoint and call verification API for voice agents",
            "version": SERVICE_VERSION,
            "endpoints": {
                "/ws": "WebSocket relay test endpoint",
                "/health": "Health check endpoint",
                "/verifications": "Call verification sessions",
            },
        }

    @app.post("/verifications", status_code=202, response_model=StartVerificationResponse)
    async def start_verification(body: StartVerificationRequest, request: Request):
        """Start verifying a call. The checks run in the background."""
        service = request.app.state.verification_service
        session_id = service.start_verification(body.callId, body.phoneNumber)
        return StartVerificationResponse(sessionId=session_id)

    @app.get("/verifications", response_model=List[VerificationSession])
    async def list_verifications(request: Request):
        return request.app.state.verification_service.get_all_sessions()

    @app.delete("/verifications/stale")
    async def clear_stale_verifications(request: Request):
        """Remove verification sessions older than one hour."""
        removed = request.app.state.verification_service.clear_old_sessions()
        return {"removed": removed}

    @app.get("/verifications/{session_id}", response_model=VerificationSession)
    async def get_verification(session_id: str, request: Request):
        session = request.app.state.verification_service.get_session_results(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail=f"Verification session not found: {session_id}")
        return session

    return app


# Configure logging
configure_logging()

app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on http://{HOST}:{PORT}")
    uvicorn.run(
        app,
        host=HOST,
        port=PORT,
        websocket_ping_interval=20,
        websocket_ping_timeout=20,
        http="h11"
    )
