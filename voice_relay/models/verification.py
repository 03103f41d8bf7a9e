"""
Data models for simulated post-call-setup verification.

A VerificationSession tracks the checks run for one call attempt. Checks are
appended in a fixed order and never modified once appended.
"""

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field

CheckType = Literal["signalwire_api", "call_status", "webhook_response", "ring_timeout"]
CheckStatus = Literal["passed", "failed"]
SessionStatus = Literal["running", "completed"]
OverallStatus = Literal["checking", "verified", "failed"]


class VerificationCheck(BaseModel):
    """Outcome of a single verification step."""

    id: str
    type: CheckType
    status: CheckStatus
    details: str
    timestamp: datetime


class VerificationSession(BaseModel):
    """In-memory record of a verification run for one call."""

    sessionId: str
    callId: str
    phoneNumber: str
    startTime: datetime
    lastUpdate: datetime
    status: SessionStatus = "running"
    overallStatus: OverallStatus = "checking"
    checks: List[VerificationCheck] = Field(default_factory=list)


class StartVerificationRequest(BaseModel):
    """Request body for starting a verification session over HTTP."""

    callId: str = Field(..., min_length=1)
    phoneNumber: str = Field(..., min_length=1)


class StartVerificationResponse(BaseModel):
    sessionId: str
