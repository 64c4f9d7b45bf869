"""FastAPI dependencies."""
from fastapi import Request

from app.core import config
from app.core.config import Settings
from app.services.agent.chat import OpenAIChatService
from app.services.call_session.manager import CallSessionManager
from app.services.orchestrator.turns import CallTurnOrchestrator
from app.services.orchestrator.worker import TurnWorker
from app.services.speech.greeting import GreetingCache
from app.services.speech.tts import TextToSpeechService
from app.services.storage.audio_store import AudioStore
from app.services.telephony.call_control import TwilioCallController


def get_settings() -> Settings:
    """Get application settings."""
    return config.settings


def build_orchestrator(settings: Settings) -> CallTurnOrchestrator:
    """Wire the orchestrator to the OpenAI and Twilio collaborators."""
    audio_store = AudioStore(settings.audio_dir)
    audio_store.ensure_dir()
    synthesizer = TextToSpeechService(settings)
    return CallTurnOrchestrator(
        settings=settings,
        sessions=CallSessionManager(
            ttl_seconds=settings.session_ttl_seconds,
            max_sessions=settings.max_sessions,
        ),
        greeting_cache=GreetingCache(audio_store, synthesizer, settings.greeting_text),
        chat=OpenAIChatService(settings),
        synthesizer=synthesizer,
        call_controller=TwilioCallController(settings),
        audio_store=audio_store,
    )


def get_orchestrator(request: Request) -> CallTurnOrchestrator:
    """Get the orchestrator created at startup."""
    return request.app.state.orchestrator


def get_turn_worker(request: Request) -> TurnWorker:
    """Get the transcript worker created at startup."""
    return request.app.state.turn_worker


def get_audio_store(request: Request) -> AudioStore:
    """Get the audio store used by the orchestrator."""
    return request.app.state.orchestrator.audio_store
