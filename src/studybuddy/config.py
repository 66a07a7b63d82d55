"""
StudyBuddy Configuration Management

Centralized configuration using pydantic-settings with environment variable support.
Values are loaded once at startup and treated as read-only afterwards.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ══════════════════════════════════════════════════════════════
    # Application
    # ══════════════════════════════════════════════════════════════
    app_name: str = "StudyBuddy"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool = False
    # Same paths the front end already calls for its edge functions
    api_prefix: str = "/functions/v1"

    # ══════════════════════════════════════════════════════════════
    # OpenAI
    # ══════════════════════════════════════════════════════════════
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"

    # ══════════════════════════════════════════════════════════════
    # Realtime Voice Relay
    # ══════════════════════════════════════════════════════════════
    openai_realtime_url: str = "wss://api.openai.com/v1/realtime"
    openai_realtime_model: str = "gpt-4o-realtime-preview-2024-10-01"
    openai_realtime_beta: str = "realtime=v1"
    # Unset means the upstream handshake is never timed out
    openai_realtime_open_timeout: float | None = Field(default=None, gt=0)

    realtime_voice: str = "alloy"
    realtime_instructions: str = (
        "You are a helpful AI study assistant. Help students with their academic "
        "questions and provide clear, educational explanations. Be encouraging and "
        "supportive in your responses."
    )
    realtime_audio_format: str = "pcm16"
    realtime_transcription_model: str = "whisper-1"
    realtime_temperature: float = Field(default=0.8, ge=0.6, le=1.2)
    realtime_vad_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    realtime_vad_prefix_padding_ms: int = Field(default=300, ge=0)
    realtime_vad_silence_duration_ms: int = Field(default=1000, ge=0)

    # ══════════════════════════════════════════════════════════════
    # Quiz Generation
    # ══════════════════════════════════════════════════════════════
    quiz_model: str = "gpt-4o-mini"
    quiz_temperature: float = 0.7
    quiz_request_timeout: float = 60.0

    @field_validator("openai_api_key", mode="before")
    @classmethod
    def strip_api_key(cls, v: str | None) -> str:
        return (v or "").strip()

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def realtime_endpoint(self) -> str:
        """Full upstream realtime URL including the model query parameter."""
        return f"{self.openai_realtime_url}?model={self.openai_realtime_model}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export
settings = get_settings()
