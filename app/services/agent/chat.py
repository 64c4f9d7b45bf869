"""LLM chat service."""
import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from app.core.config import Settings
from app.core.errors import MalformedResponseError, ProviderError, TransportError
from app.services.pipeline.base import ChatProvider

logger = logging.getLogger(__name__)


class OpenAIChatService(ChatProvider):
    """Chat completions against OpenAI."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.client = client or AsyncOpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
        )
        self.model = settings.openai_chat_model
        self.system_prompt = settings.system_prompt
        self.temperature = 0.5

    def build_messages(self, user_text: str) -> list:
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": user_text})
        return messages

    async def chat_reply(self, user_text: str) -> str:
        """
        Ask the chat model for a reply.

        Args:
            user_text: Final transcript of the caller's utterance

        Returns:
            Assistant reply, stripped; empty if the model returned no content
        """
        logger.info(f"[CHAT] Request - model: {self.model}, chars: {len(user_text)}")
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(user_text),
                temperature=self.temperature,
            )
        except openai.APIConnectionError as e:
            logger.error(f"[CHAT] Transport error: {type(e).__name__}: {e}")
            raise TransportError(f"OpenAI chat request failed: {e}") from e
        except openai.APIStatusError as e:
            body = e.response.text if e.response is not None else ""
            logger.error(f"[CHAT] Error - status: {e.status_code}, body: {body[:300]}")
            raise ProviderError("OpenAI chat", e.status_code, body) from e

        try:
            content = completion.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise MalformedResponseError(f"OpenAI chat returned no choices: {e}") from e

        content = (content or "").strip()
        logger.info(f"[CHAT] OK - chars: {len(content)}")
        return content
