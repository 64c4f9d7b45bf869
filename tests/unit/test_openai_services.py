"""Unit tests for the OpenAI chat and TTS services."""
from unittest.mock import AsyncMock, Mock

import httpx
import openai
import pytest

from app.core.errors import MalformedResponseError, ProviderError, TransportError
from app.services.agent.chat import OpenAIChatService
from app.services.speech.tts import TextToSpeechService, validate_wav


WAV_BYTES = b"RIFF\x24\x00\x00\x00WAVEfmt " + b"\x00" * 28
OPENAI_URL = "https://api.openai.com/v1/chat/completions"


def status_error(status: int, text: str) -> openai.APIStatusError:
    request = httpx.Request("POST", OPENAI_URL)
    response = httpx.Response(status, request=request, text=text)
    return openai.APIStatusError(text, response=response, body=None)


def connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=httpx.Request("POST", OPENAI_URL))


def speech_response(content: bytes, content_type: str) -> Mock:
    return Mock(content=content, response=Mock(headers={"content-type": content_type}))


@pytest.fixture
def mock_openai():
    """Mock OpenAI API client."""
    mock_client = Mock()
    mock_completion = Mock()
    mock_completion.choices = [Mock(message=Mock(content="  Sure, I can help.  "))]
    mock_client.chat.completions.create = AsyncMock(return_value=mock_completion)
    mock_client.audio.speech.create = AsyncMock(return_value=speech_response(WAV_BYTES, "audio/wav"))
    return mock_client


class TestValidateWav:
    """Test strict WAV validation."""

    def test_accepts_riff_wave(self):
        validate_wav(WAV_BYTES, "audio/wav")

    def test_rejects_bad_tags_even_with_audio_content_type(self):
        mp3 = b"ID3\x04" + b"\x00" * 40
        with pytest.raises(MalformedResponseError):
            validate_wav(mp3, "audio/wav")

    def test_rejects_wrong_format_tag(self):
        avi = b"RIFF\x24\x00\x00\x00AVI " + b"\x00" * 28
        with pytest.raises(MalformedResponseError):
            validate_wav(avi, "audio/wav")

    def test_rejects_short_payload(self):
        with pytest.raises(MalformedResponseError):
            validate_wav(b"RIFF", "audio/wav")

    def test_rejects_non_audio_content_type(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            validate_wav(WAV_BYTES, "application/json")
        assert exc_info.value.content_type == "application/json"


class TestChatService:
    """Test OpenAIChatService."""

    @pytest.mark.asyncio
    async def test_chat_reply(self, test_settings, mock_openai):
        service = OpenAIChatService(test_settings, client=mock_openai)

        reply = await service.chat_reply("hello")

        assert reply == "Sure, I can help."
        kwargs = mock_openai.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == test_settings.openai_chat_model
        assert kwargs["messages"] == [
            {"role": "system", "content": test_settings.system_prompt},
            {"role": "user", "content": "hello"},
        ]

    @pytest.mark.asyncio
    async def test_empty_system_prompt_omitted(self, test_settings, mock_openai):
        service = OpenAIChatService(test_settings, client=mock_openai)
        service.system_prompt = ""

        await service.chat_reply("hello")

        messages = mock_openai.chat.completions.create.call_args.kwargs["messages"]
        assert messages == [{"role": "user", "content": "hello"}]

    @pytest.mark.asyncio
    async def test_missing_content_returns_empty(self, test_settings, mock_openai):
        mock_openai.chat.completions.create.return_value.choices = [Mock(message=Mock(content=None))]
        service = OpenAIChatService(test_settings, client=mock_openai)

        assert await service.chat_reply("hello") == ""

    @pytest.mark.asyncio
    async def test_provider_error(self, test_settings, mock_openai):
        mock_openai.chat.completions.create.side_effect = status_error(429, "rate limited")
        service = OpenAIChatService(test_settings, client=mock_openai)

        with pytest.raises(ProviderError) as exc_info:
            await service.chat_reply("hello")
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_transport_error(self, test_settings, mock_openai):
        mock_openai.chat.completions.create.side_effect = connection_error()
        service = OpenAIChatService(test_settings, client=mock_openai)

        with pytest.raises(TransportError):
            await service.chat_reply("hello")


class TestTextToSpeechService:
    """Test TextToSpeechService."""

    @pytest.mark.asyncio
    async def test_synthesize_requests_wav(self, test_settings, mock_openai):
        service = TextToSpeechService(test_settings, client=mock_openai)

        audio = await service.synthesize_speech("Hello")

        assert audio == WAV_BYTES
        kwargs = mock_openai.audio.speech.create.call_args.kwargs
        assert kwargs["response_format"] == "wav"
        assert kwargs["voice"] == test_settings.openai_tts_voice
        assert kwargs["model"] == test_settings.openai_tts_model
        assert kwargs["input"] == "Hello"

    @pytest.mark.asyncio
    async def test_rejects_non_wav_audio(self, test_settings, mock_openai):
        mock_openai.audio.speech.create.return_value = speech_response(b"\xff\xfb" * 20, "audio/mpeg")
        service = TextToSpeechService(test_settings, client=mock_openai)

        with pytest.raises(MalformedResponseError):
            await service.synthesize_speech("Hello")

    @pytest.mark.asyncio
    async def test_provider_error(self, test_settings, mock_openai):
        mock_openai.audio.speech.create.side_effect = status_error(400, "bad voice")
        service = TextToSpeechService(test_settings, client=mock_openai)

        with pytest.raises(ProviderError) as exc_info:
            await service.synthesize_speech("Hello")
        assert exc_info.value.status_code == 400
        assert "bad voice" in exc_info.value.body
