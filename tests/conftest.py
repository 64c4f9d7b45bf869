"""Shared test fixtures and configuration."""
import os
from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "ACtest")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "test-token")
os.environ.setdefault("VOICE_AGENT_HOST", "voice.example.com")

from app.main import app
from app.core.config import Settings
from app.core.dependencies import get_audio_store, get_orchestrator, get_settings, get_turn_worker
from app.services.call_session.manager import CallSessionManager
from app.services.orchestrator.turns import CallTurnOrchestrator
from app.services.pipeline.base import CallController, ChatProvider, SpeechSynthesizer
from app.services.speech.greeting import GreetingCache
from app.services.storage.audio_store import AudioStore
from app.services.transcription.classifier import TranscriptEvent


WAV_BYTES = b"RIFF\x24\x00\x00\x00WAVEfmt " + b"\x00" * 28


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeChat(ChatProvider):
    def __init__(self, reply: str = "Hi there, how can I help?"):
        self.reply = reply
        self.calls: List[str] = []
        self.error: Optional[Exception] = None

    async def chat_reply(self, user_text: str) -> str:
        self.calls.append(user_text)
        if self.error:
            raise self.error
        return self.reply


class FakeSynthesizer(SpeechSynthesizer):
    def __init__(self, audio: bytes = WAV_BYTES):
        self.audio = audio
        self.calls: List[str] = []
        self.error: Optional[Exception] = None

    async def synthesize_speech(self, text: str) -> bytes:
        self.calls.append(text)
        if self.error:
            raise self.error
        return self.audio


class FakeCallController(CallController):
    def __init__(self):
        self.calls: List[Tuple[str, str, str]] = []
        self.error: Optional[Exception] = None

    async def redirect_live_call(self, call_sid: str, audio_url: str, resume_url: str) -> None:
        self.calls.append((call_sid, audio_url, resume_url))
        if self.error:
            raise self.error


class RecordingWorker:
    """Stands in for TurnWorker in route tests."""

    def __init__(self):
        self.events: List[TranscriptEvent] = []

    def submit(self, event: TranscriptEvent) -> bool:
        self.events.append(event)
        return True


@pytest.fixture
def test_settings(tmp_path):
    """Settings for testing."""
    return Settings(
        openai_api_key="test-key",
        twilio_account_sid="ACtest",
        twilio_auth_token="test-token",
        twilio_validate_signature=False,
        voice_agent_host="voice.example.com",
        audio_dir=str(tmp_path / "audio"),
        greeting_text="Hello! How can I help?",
        max_response_chars=600,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def audio_store(test_settings):
    store = AudioStore(test_settings.audio_dir)
    store.ensure_dir()
    return store


@pytest.fixture
def fake_chat():
    return FakeChat()


@pytest.fixture
def fake_synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def fake_call_controller():
    return FakeCallController()


@pytest.fixture
def sessions(clock):
    return CallSessionManager(ttl_seconds=1800, max_sessions=100, clock=clock)


@pytest.fixture
def orchestrator(test_settings, sessions, audio_store, fake_chat, fake_synthesizer, fake_call_controller):
    """Orchestrator wired to fake collaborators."""
    return CallTurnOrchestrator(
        settings=test_settings,
        sessions=sessions,
        greeting_cache=GreetingCache(audio_store, fake_synthesizer, test_settings.greeting_text),
        chat=fake_chat,
        synthesizer=fake_synthesizer,
        call_controller=fake_call_controller,
        audio_store=audio_store,
    )


@pytest.fixture
def recording_worker():
    return RecordingWorker()


@pytest.fixture
def test_client(orchestrator, recording_worker, audio_store, test_settings):
    """Create FastAPI test client with overrides."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_turn_worker] = lambda: recording_worker
    app.dependency_overrides[get_audio_store] = lambda: audio_store

    client = TestClient(app)

    yield client

    # Clear overrides
    app.dependency_overrides.clear()
