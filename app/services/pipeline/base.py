"""Collaborator interfaces consumed by the call turn orchestrator."""
from abc import ABC, abstractmethod


class ChatProvider(ABC):
    """Produces an assistant reply for one user utterance."""

    @abstractmethod
    async def chat_reply(self, user_text: str) -> str:
        """Return the assistant's reply text."""
        pass


class SpeechSynthesizer(ABC):
    """Turns text into a complete WAV file."""

    @abstractmethod
    async def synthesize_speech(self, text: str) -> bytes:
        """Return validated WAV bytes or raise MalformedResponseError."""
        pass


class CallController(ABC):
    """Controls a live call."""

    @abstractmethod
    async def redirect_live_call(self, call_sid: str, audio_url: str, resume_url: str) -> None:
        """Play audio_url on the call, then continue at resume_url."""
        pass
