"""Call session store with greeting tracking and duplicate suppression."""
import logging
import time
from collections import OrderedDict
from typing import Callable, Optional

from app.services.call_session.models import CallSession

logger = logging.getLogger(__name__)

DEDUP_WINDOW_SECONDS = 5.0


class CallSessionManager:
    """
    Bounded, in-process store of call sessions.

    Sessions are created on first use, evicted after ``ttl_seconds`` of
    inactivity, and the least recently used session is dropped once
    ``max_sessions`` is exceeded. None of the methods await, so a mutation is
    never interleaved with another handler's mutation of the same call.
    """

    def __init__(
        self,
        ttl_seconds: float = 1800.0,
        max_sessions: int = 10000,
        dedup_window_seconds: float = DEDUP_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self.dedup_window_seconds = dedup_window_seconds
        self._clock = clock
        self._sessions: "OrderedDict[str, CallSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, call_sid: str) -> bool:
        return self.get_session(call_sid) is not None

    def get_session(self, call_sid: str) -> Optional[CallSession]:
        """Get a live session without creating one."""
        session = self._sessions.get(call_sid)
        if session and session.is_expired(self._clock(), self.ttl_seconds):
            logger.debug(f"[SESSIONS] Session expired - CallSid: {call_sid}")
            del self._sessions[call_sid]
            return None
        return session

    def get_or_create(self, call_sid: str) -> CallSession:
        """Get the session for a call, creating it on first sight."""
        now = self._clock()
        session = self.get_session(call_sid)
        if session is None:
            session = CallSession(call_sid, now)
            self._sessions[call_sid] = session
            logger.debug(f"[SESSIONS] Session created - CallSid: {call_sid}")
            self._evict(now)
        else:
            session.touch(now)
            self._sessions.move_to_end(call_sid)
        return session

    def _evict(self, now: float) -> None:
        # Ordered by last use, so expired sessions sit at the front
        while self._sessions:
            sid, session = next(iter(self._sessions.items()))
            if not session.is_expired(now, self.ttl_seconds):
                break
            del self._sessions[sid]
            logger.debug(f"[SESSIONS] Session expired - CallSid: {sid}")
        while len(self._sessions) > self.max_sessions:
            sid, _ = self._sessions.popitem(last=False)
            logger.info(f"[SESSIONS] Session store full, evicted CallSid: {sid}")

    def mark_greeted(self, call_sid: str) -> bool:
        """
        Mark the call as greeted.

        Returns:
            True if this call had not been greeted before
        """
        session = self.get_or_create(call_sid)
        if session.greeted:
            return False
        session.greeted = True
        return True

    def is_greeted(self, call_sid: str) -> bool:
        session = self.get_session(call_sid)
        return bool(session and session.greeted)

    def should_process(self, call_sid: str, text: str) -> bool:
        """
        Decide whether a final transcript should be processed.

        The same text for the same call within the dedup window is dropped.
        A dropped duplicate does not restart the window.
        """
        session = self.get_or_create(call_sid)
        now = self._clock()
        if (
            session.last_final_text == text
            and session.last_final_at is not None
            and now - session.last_final_at < self.dedup_window_seconds
        ):
            return False
        session.last_final_text = text
        session.last_final_at = now
        return True

    def clear(self) -> None:
        self._sessions.clear()
