"""Call session models."""
from typing import Optional


class CallSession:
    """Per-call state for one Twilio CallSid."""

    def __init__(self, call_sid: str, now: float):
        self.call_sid = call_sid
        self.greeted = False
        self.last_final_text: Optional[str] = None
        self.last_final_at: Optional[float] = None
        self.created_at = now
        self.last_seen_at = now

    def touch(self, now: float) -> None:
        """Record activity on the call."""
        self.last_seen_at = now

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        """Check whether the call has been idle longer than the TTL."""
        return now - self.last_seen_at >= ttl_seconds

    def __repr__(self) -> str:
        return f"CallSession(call_sid={self.call_sid!r}, greeted={self.greeted})"
