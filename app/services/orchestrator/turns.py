"""Call turn orchestration: greeting, final transcripts and reply playback."""
import enum
import logging
from typing import Optional

from app.core.config import Settings
from app.core.errors import AudioStoreError, VoiceBridgeError
from app.services.call_session.manager import CallSessionManager
from app.services.pipeline.base import CallController, ChatProvider, SpeechSynthesizer
from app.services.speech.greeting import GreetingCache
from app.services.storage.audio_store import AudioStore
from app.services.telephony import twiml
from app.services.transcription.classifier import TranscriptEvent

logger = logging.getLogger(__name__)

TRANSCRIPTION_PATH = "/twilio/transcription"
RESUME_PATH = "/twilio/resume"


class TurnOutcome(str, enum.Enum):
    """What happened to a transcript event."""

    NO_CALL_SID = "no_call_sid"
    NOT_FINAL = "not_final"
    EMPTY_TEXT = "empty_text"
    DUPLICATE = "duplicate"
    FINALIZED = "finalized"
    FAILED = "failed"


class CallTurnOrchestrator:
    """Drives one call from greeting through repeated listen/reply turns."""

    def __init__(
        self,
        settings: Settings,
        sessions: CallSessionManager,
        greeting_cache: GreetingCache,
        chat: ChatProvider,
        synthesizer: SpeechSynthesizer,
        call_controller: CallController,
        audio_store: AudioStore,
    ):
        self.settings = settings
        self.sessions = sessions
        self.greeting_cache = greeting_cache
        self.chat = chat
        self.synthesizer = synthesizer
        self.call_controller = call_controller
        self.audio_store = audio_store

    def _listen_response(self, greeting: str = "") -> str:
        return twiml.build_listen_response(
            self.settings.absolute_url(TRANSCRIPTION_PATH),
            self.settings.language,
            greeting=greeting,
        )

    async def handle_call_start(self, call_sid: str) -> str:
        """
        Respond to the call-start webhook.

        The first call-start for a CallSid plays the greeting; later ones (for
        example when Twilio returns to the voice URL after a redirect) only
        restart transcription.
        """
        # Mark before awaiting so a concurrent call-start cannot greet twice
        first_time = bool(call_sid) and self.sessions.mark_greeted(call_sid)
        if not first_time:
            logger.info(f"[CALL START] Already greeted or no CallSid - CallSid: {call_sid or 'none'}")
            return self._listen_response()

        try:
            greeting_url = await self.greeting_cache.ensure_greeting(self.settings.voice_agent_host)
            greeting = twiml.greeting_block(audio_url=greeting_url)
        except Exception as e:
            # Already marked greeted, so this response is the only greeting
            logger.error(
                f"[CALL START] Failed to create greeting.wav, falling back to <Say> - "
                f"CallSid: {call_sid}, Error: {type(e).__name__}: {e}",
                exc_info=True,
            )
            greeting = twiml.greeting_block(text=self.settings.greeting_text)

        logger.info(f"[CALL START] Greeting call - CallSid: {call_sid}")
        return self._listen_response(greeting)

    def handle_resume(self) -> str:
        """Restart transcription after a reply was played. Never greets."""
        return self._listen_response()

    async def handle_transcript(self, event: TranscriptEvent) -> TurnOutcome:
        """Process one classified transcription event."""
        if not event.call_sid:
            logger.info(f"[TRANSCRIPTION] Skip: no CallSid - event: {event.event_type}")
            return TurnOutcome.NO_CALL_SID

        if not event.is_final:
            logger.debug(
                f"[TRANSCRIPTION] Non-final ignored - CallSid: {event.call_sid}, "
                f"event: {event.event_type}"
            )
            return TurnOutcome.NOT_FINAL

        logger.info(f"[TRANSCRIPTION] Explicit final - CallSid: {event.call_sid}, event: {event.event_type}")

        if not event.text:
            logger.info(f"[TRANSCRIPTION] Final had no text, skipped - CallSid: {event.call_sid}")
            return TurnOutcome.EMPTY_TEXT

        if not self.sessions.should_process(event.call_sid, event.text):
            logger.info(f"[TRANSCRIPTION] Duplicate final text dropped - CallSid: {event.call_sid}")
            return TurnOutcome.DUPLICATE

        try:
            await self.finalize(event.call_sid, event.text)
        except (VoiceBridgeError, AudioStoreError) as e:
            logger.error(
                f"[FINALIZE] Turn dropped - CallSid: {event.call_sid}, "
                f"Error: {type(e).__name__}: {e}"
            )
            return TurnOutcome.FAILED
        return TurnOutcome.FINALIZED

    async def generate_reply_audio(self, user_text: str, max_chars: Optional[int] = None) -> tuple:
        """
        Chat, synthesize and store a reply.

        Args:
            user_text: What the caller said
            max_chars: Cut the assistant reply to this many characters before TTS

        Returns:
            (assistant text, stored file name, audio byte count)
        """
        assistant_text = await self.chat.chat_reply(user_text)
        if max_chars is not None:
            assistant_text = assistant_text[:max_chars]
        logger.info(f"[FINALIZE] Chat reply ok - chars: {len(assistant_text)}")

        audio = await self.synthesizer.synthesize_speech(assistant_text)
        logger.info(f"[FINALIZE] TTS ok (wav) - bytes: {len(audio)}")

        file_name, _ = self.audio_store.save_reply(audio)
        return assistant_text, file_name, len(audio)

    async def finalize(self, call_sid: str, text: str) -> str:
        """
        Turn a final utterance into a played reply.

        Returns:
            The absolute URL of the reply audio
        """
        logger.info(f"[FINALIZE] Final transcript -> chat - CallSid: {call_sid}, chars: {len(text)}")
        _, file_name, _ = await self.generate_reply_audio(
            text, max_chars=self.settings.max_response_chars
        )

        play_url = self.settings.absolute_url(f"/audio/{file_name}")
        resume_url = self.settings.absolute_url(RESUME_PATH)
        await self.call_controller.redirect_live_call(call_sid, play_url, resume_url)

        logger.info(
            f"[FINALIZE] Reply redirected - CallSid: {call_sid}, play: {play_url}, resume: {resume_url}"
        )
        return play_url
