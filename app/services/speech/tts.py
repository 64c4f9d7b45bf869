"""Text-to-speech service producing strict WAV audio."""
import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from app.core.config import Settings
from app.core.errors import MalformedResponseError, ProviderError, TransportError
from app.services.pipeline.base import SpeechSynthesizer

logger = logging.getLogger(__name__)

RIFF_TAG = b"RIFF"
WAVE_TAG = b"WAVE"


def validate_wav(audio: bytes, content_type: str) -> None:
    """
    Reject anything that is not a WAV container.

    Raises:
        MalformedResponseError: if the content type is not audio or the
            RIFF/WAVE header is missing
    """
    content_type = (content_type or "").lower()
    if "audio" not in content_type:
        preview = audio[:200].decode("utf-8", errors="replace")
        raise MalformedResponseError(
            f"TTS returned non-audio ct={content_type or 'unknown'}; head={preview!r}",
            content_type=content_type,
        )
    if len(audio) < 12 or audio[0:4] != RIFF_TAG or audio[8:12] != WAVE_TAG:
        raise MalformedResponseError(
            f"Expected WAV bytes but got ct={content_type or 'unknown'} "
            f"headHex={audio[:32].hex()}",
            content_type=content_type,
        )


class TextToSpeechService(SpeechSynthesizer):
    """Service for converting text to speech."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.client = client or AsyncOpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
        )
        self.model = settings.openai_tts_model
        self.voice = settings.openai_tts_voice

    async def synthesize_speech(self, text: str) -> bytes:
        """
        Synthesize speech from text using OpenAI TTS.

        Args:
            text: Text to convert to speech

        Returns:
            Audio bytes (validated WAV)
        """
        logger.info(
            f"[TTS] Request - model: {self.model}, voice: {self.voice}, chars: {len(text)}"
        )
        try:
            response = await self.client.audio.speech.create(
                model=self.model,
                voice=self.voice,
                input=text,
                response_format="wav",
                extra_headers={"Accept": "audio/wav"},
            )
        except openai.APIConnectionError as e:
            logger.error(f"[TTS] Transport error: {type(e).__name__}: {e}")
            raise TransportError(f"OpenAI TTS request failed: {e}") from e
        except openai.APIStatusError as e:
            body = e.response.text if e.response is not None else ""
            logger.error(f"[TTS] Error - status: {e.status_code}, body: {body[:200]}")
            raise ProviderError("OpenAI TTS", e.status_code, body) from e

        audio = response.content
        content_type = response.response.headers.get("content-type", "")
        try:
            validate_wav(audio, content_type)
        except MalformedResponseError:
            logger.error(f"[TTS] Rejected payload - ct: {content_type}, bytes: {len(audio)}")
            raise

        logger.info(f"[TTS] OK - bytes: {len(audio)}")
        return audio
