"""
Realtime Relay Protocol

Defines the session configuration sent upstream and the small set of
messages and close codes the relay itself originates. Everything else on the
wire is forwarded untouched.
"""

from enum import Enum
from typing import Literal

import orjson
from pydantic import BaseModel, ConfigDict, Field

from studybuddy.config import Settings


class RelayState(str, Enum):
    """Lifecycle of a client/upstream relay pair."""

    INIT = "init"
    AWAITING_UPSTREAM = "awaiting_upstream"
    BRIDGED = "bridged"
    CLOSED = "closed"


class CloseCode:
    """WebSocket close codes used by the relay (RFC 6455)."""

    NORMAL = 1000
    INTERNAL_ERROR = 1011


MISSING_API_KEY_REASON = "OpenAI API key not configured"
UPSTREAM_FAILED_REASON = "Connection to AI service failed"


# ══════════════════════════════════════════════════════════════
# Session Configuration
# ══════════════════════════════════════════════════════════════


class InputAudioTranscription(BaseModel):
    """Transcription of the user's audio input."""

    model_config = ConfigDict(frozen=True)

    model: str = "whisper-1"


class TurnDetection(BaseModel):
    """Server-side voice activity detection."""

    model_config = ConfigDict(frozen=True)

    type: Literal["server_vad"] = "server_vad"
    threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    prefix_padding_ms: int = Field(default=300, ge=0)
    silence_duration_ms: int = Field(default=1000, ge=0)


class SessionConfig(BaseModel):
    """Upstream realtime session configuration."""

    model_config = ConfigDict(frozen=True)

    modalities: tuple[str, ...] = ("text", "audio")
    instructions: str = ""
    voice: str = "alloy"
    input_audio_format: str = "pcm16"
    output_audio_format: str = "pcm16"
    input_audio_transcription: InputAudioTranscription = Field(
        default_factory=InputAudioTranscription
    )
    turn_detection: TurnDetection = Field(default_factory=TurnDetection)
    temperature: float = 0.8
    max_response_output_tokens: int | Literal["inf"] = "inf"

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionConfig":
        """Build the deployment's session configuration."""
        return cls(
            instructions=settings.realtime_instructions,
            voice=settings.realtime_voice,
            input_audio_format=settings.realtime_audio_format,
            output_audio_format=settings.realtime_audio_format,
            input_audio_transcription=InputAudioTranscription(
                model=settings.realtime_transcription_model,
            ),
            turn_detection=TurnDetection(
                threshold=settings.realtime_vad_threshold,
                prefix_padding_ms=settings.realtime_vad_prefix_padding_ms,
                silence_duration_ms=settings.realtime_vad_silence_duration_ms,
            ),
            temperature=settings.realtime_temperature,
        )


class SessionUpdateEvent(BaseModel):
    """The `session.update` event sent once when the upstream opens."""

    model_config = ConfigDict(frozen=True)

    type: Literal["session.update"] = "session.update"
    session: SessionConfig

    def encode(self) -> str:
        """Serialize to the JSON text frame sent upstream."""
        return orjson.dumps(self.model_dump(mode="json")).decode()


# ══════════════════════════════════════════════════════════════
# Relay-originated Messages
# ══════════════════════════════════════════════════════════════


class RelayErrorMessage(BaseModel):
    """Diagnostic delivered to the client when the upstream fails."""

    type: Literal["error"] = "error"
    message: str = UPSTREAM_FAILED_REASON

    def encode(self) -> str:
        return orjson.dumps(self.model_dump(mode="json")).decode()
