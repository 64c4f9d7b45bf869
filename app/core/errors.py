"""Error taxonomy for downstream collaborators."""
from typing import Optional


class VoiceBridgeError(Exception):
    """Base class for failures talking to chat, speech or call-control providers."""


class TransportError(VoiceBridgeError):
    """The request never got a response (DNS, connect, timeout)."""


class ProviderError(VoiceBridgeError):
    """The provider answered with a non-success status."""

    def __init__(self, provider: str, status_code: int, body: str = ""):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(f"{provider} error {status_code}: {body[:300]}")


class MalformedResponseError(VoiceBridgeError):
    """The provider answered successfully but the payload is unusable."""

    def __init__(self, message: str, content_type: Optional[str] = None):
        self.content_type = content_type
        super().__init__(message)


class AudioStoreError(Exception):
    """An audio artifact could not be written."""
