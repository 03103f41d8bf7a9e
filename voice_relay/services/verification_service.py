"""
Simulated post-call-setup verification.

CallVerificationService keeps an in-memory map of verification sessions. Each
session runs four checks strictly one after another, each after a fixed delay,
then records an overall verdict. Check outcomes are sampled from an injectable
random source; a production deployment would replace the sampling with calls
to the telephony provider's call status and webhook APIs.
"""

import asyncio
import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Dict, List, Optional

from voice_relay.config.constants import (
    LOGGER_NAME,
    VERIFICATION_CHECK_DELAY,
    VERIFICATION_CHECK_TYPES,
    VERIFICATION_PASS_PROBABILITY,
    VERIFICATION_SESSION_MAX_AGE,
)
from voice_relay.models.verification import VerificationCheck, VerificationSession

logger = logging.getLogger(LOGGER_NAME)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class CallVerificationService:
    """
    Registry and runner of call verification sessions.

    One instance is owned by the hosting application; sessions live only in
    memory and are removed by clear_old_sessions().
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        pass_probability: float = VERIFICATION_PASS_PROBABILITY,
        check_delay: float = VERIFICATION_CHECK_DELAY,
        max_age: float = VERIFICATION_SESSION_MAX_AGE,
        clock: Optional[Callable[[], datetime]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize the service.

        Args:
            rng: Random source used to decide check outcomes; seed it for
                reproducible runs
            pass_probability: Probability that a single check passes
            check_delay: Seconds to wait before running each check
            max_age: Age in seconds after which clear_old_sessions() removes a session
            clock: Returns the current time as an aware datetime
            sleep: Coroutine function used to wait between checks
        """
        self.sessions: Dict[str, VerificationSession] = {}
        self.pass_probability = pass_probability
        self.check_delay = check_delay
        self.max_age = max_age
        self._rng = rng or random.Random()
        self._clock = clock or utcnow
        self._sleep = sleep or asyncio.sleep
        self._tasks: Dict[str, asyncio.Task] = {}

    def start_verification(self, call_id: str, phone_number: str) -> str:
        """
        Create a verification session and start its checks in the background.

        Must be called from a running event loop. Returns without waiting for
        any check to run.

        Args:
            call_id: Identifier of the call being verified
            phone_number: Number that was dialled

        Returns:
            The new session id
        """
        now = self._clock()
        session_id = self._new_session_id(now)
        self.sessions[session_id] = VerificationSession(
            sessionId=session_id,
            callId=call_id,
            phoneNumber=phone_number,
            startTime=now,
            lastUpdate=now,
        )
        logger.info(f"Started verification {session_id} for call {call_id} to {phone_number}")

        task = asyncio.get_running_loop().create_task(self._run_verification_checks(session_id))
        self._tasks[session_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(session_id, None))
        return session_id

    def start_verification_session(self, call_id: str, phone_number: str) -> str:
        return self.start_verification(call_id, phone_number)

    def get_all_sessions(self) -> List[VerificationSession]:
        """Return every session in insertion order."""
        return list(self.sessions.values())

    def get_session_results(self, session_id: str) -> Optional[VerificationSession]:
        """Return the live session record, or None if it does not exist."""
        return self.sessions.get(session_id)

    def clear_old_sessions(self, now: Optional[datetime] = None) -> int:
        """
        Remove sessions that started more than max_age seconds ago.

        A session exactly max_age seconds old is kept.

        Returns:
            The number of sessions removed
        """
        cutoff = (now or self._clock()) - timedelta(seconds=self.max_age)
        stale = [sid for sid, session in self.sessions.items() if session.startTime < cutoff]
        for session_id in stale:
            del self.sessions[session_id]
        if stale:
            logger.info(f"Cleared {len(stale)} old verification sessions")
        return len(stale)

    async def wait_for_completion(self, session_id: str) -> Optional[VerificationSession]:
        """Wait until the checks of a session have finished and return the session."""
        task = self._tasks.get(session_id)
        if task is not None:
            await task
        return self.get_session_results(session_id)

    async def shutdown(self) -> None:
        """Cancel every verification still running."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _new_session_id(self, now: datetime) -> str:
        # Two sessions started in the same millisecond get a numeric suffix
        base = f"session-{to_millis(now)}"
        session_id, suffix = base, 1
        while session_id in self.sessions:
            session_id = f"{base}-{suffix}"
            suffix += 1
        return session_id

    async def _run_verification_checks(self, session_id: str) -> None:
        session = self.sessions.get(session_id)
        if session is None:
            return

        for check_type in VERIFICATION_CHECK_TYPES:
            await self._sleep(self.check_delay)
            now = self._clock()
            passed = self._rng.random() < self.pass_probability
            check = VerificationCheck(
                id=f"check-{to_millis(now)}",
                type=check_type,
                status="passed" if passed else "failed",
                details=f"{check_type} check completed",
                timestamp=now,
            )
            session.checks.append(check)
            session.lastUpdate = now
            logger.debug(f"Verification {session_id}: {check_type} {check.status}")

        session.overallStatus = (
            "verified" if all(c.status == "passed" for c in session.checks) else "failed"
        )
        session.status = "completed"
        logger.info(f"Verification {session_id} completed: {session.overallStatus}")
