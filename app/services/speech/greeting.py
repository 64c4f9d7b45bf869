"""Lazily generated, cached greeting audio."""
import logging

from app.services.pipeline.base import SpeechSynthesizer
from app.services.storage.audio_store import GREETING_FILE, AudioStore

logger = logging.getLogger(__name__)


class GreetingCache:
    """
    Makes sure greeting.wav exists and returns its public URL.

    Two concurrent first calls may both synthesize; the file is written
    atomically so whichever rename lands last leaves a complete WAV.
    """

    def __init__(self, audio_store: AudioStore, synthesizer: SpeechSynthesizer, greeting_text: str):
        self.audio_store = audio_store
        self.synthesizer = synthesizer
        self.greeting_text = greeting_text

    async def ensure_greeting(self, host: str) -> str:
        """Return the absolute greeting URL, synthesizing it on first need."""
        if not self.audio_store.has_greeting():
            logger.info("[GREETING] greeting.wav missing, synthesizing")
            audio = await self.synthesizer.synthesize_speech(self.greeting_text)
            self.audio_store.save_greeting(audio)
            logger.info("[GREETING] greeting.wav created")
        return f"https://{host}/audio/{GREETING_FILE}"
