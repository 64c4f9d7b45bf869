"""Application configuration."""
import os
from typing import Tuple, Type

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables and config.yml."""

    # OpenAI
    openai_api_key: str
    openai_base_url: str = "https://api.openai.com/v1"
    openai_chat_model: str = "gpt-4.1-mini"
    openai_tts_model: str = "gpt-4o-mini-tts"
    openai_tts_voice: str = "coral"

    # Twilio
    twilio_account_sid: str
    twilio_auth_token: str
    twilio_validate_signature: bool = True

    # Public host used for absolute callback and audio URLs
    voice_agent_host: str = "localhost"

    # Conversation
    greeting_text: str = "Hello! How can I help?"
    system_prompt: str = "You are a helpful, concise, friendly voice assistant."
    max_response_chars: int = 600
    language: str = "en-US"

    # Storage
    audio_dir: str = "audio"

    # Call sessions
    session_ttl_seconds: float = 1800.0
    max_sessions: int = 10000

    # Turn worker
    turn_workers: int = 2
    turn_queue_size: int = 1000

    debug_endpoints: bool = True

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        yaml_file=os.environ.get("CONFIG_FILE", "config.yml"),
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over config.yml, config.yml wins over defaults
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def absolute_url(self, path: str) -> str:
        """Build an https URL on the public host."""
        if not path.startswith("/"):
            path = f"/{path}"
        return f"https://{self.voice_agent_host}{path}"


settings = Settings()
