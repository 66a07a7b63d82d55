"""
OpenAI Integration

HTTP client for the OpenAI chat completions API, used to generate
multiple-choice study quizzes.
"""

from typing import Any

import httpx
import orjson
import structlog
from pydantic import BaseModel, Field

from studybuddy.config import settings
from studybuddy.errors import ConfigurationError, QuizGenerationError

logger = structlog.get_logger()

MISSING_API_KEY_MESSAGE = (
    "OpenAI API key not configured. Please add your OpenAI API key to the "
    "StudyBuddy environment (OPENAI_API_KEY)."
)

QUIZ_SYSTEM_PROMPT = (
    "You are an educational content creator that generates high-quality quiz "
    "questions. Always return valid JSON."
)


# ══════════════════════════════════════════════════════════════
# Models
# ══════════════════════════════════════════════════════════════


class QuizRequest(BaseModel):
    """Body of a quiz generation request."""

    subject: str = Field(min_length=1, max_length=200)
    difficulty: str = Field(min_length=1, max_length=50)
    count: int = Field(default=5, ge=1, le=50)


def build_quiz_prompt(subject: str, difficulty: str, count: int) -> str:
    """Build the user prompt describing the exact JSON structure to return."""
    return f"""Generate {count} multiple-choice quiz questions for {subject} at {difficulty} difficulty level.

Return a JSON array of questions with this exact structure:
[
  {{
    "id": "unique_id",
    "question": "Question text",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correctAnswer": 0,
    "subject": "{subject}",
    "difficulty": "{difficulty}",
    "explanation": "Detailed explanation of why the correct answer is right"
  }}
]

Make sure:
- Questions are educational and appropriate for the subject
- Options are plausible but only one is correct
- Explanations are clear and helpful
- Use proper academic language
- Return valid JSON only, no additional text"""


# ══════════════════════════════════════════════════════════════
# OpenAI Client
# ══════════════════════════════════════════════════════════════


class OpenAIClient:
    """
    HTTP client for OpenAI API interactions.

    Usage:
        client = OpenAIClient()
        questions = await client.generate_quiz("Biology", "medium", count=5)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = (settings.openai_api_key if api_key is None else api_key).strip()
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.model = model or settings.quiz_model
        self.temperature = settings.quiz_temperature if temperature is None else temperature
        self.timeout = timeout or settings.quiz_request_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ──────────────────────────────────────────────────────────
    # Chat Completions
    # ──────────────────────────────────────────────────────────

    async def chat_completion(
        self,
        messages: list[dict[str, str]],
        temperature: float | None = None,
    ) -> str:
        """
        Run a chat completion and return the first choice's content.

        Raises:
            ConfigurationError: No API key configured
            QuizGenerationError: The API call failed or returned no content
        """
        if not self.is_configured:
            raise ConfigurationError(MISSING_API_KEY_MESSAGE)

        client = await self._get_client()
        try:
            response = await client.post(
                "/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "messages": messages,
                    "temperature": self.temperature if temperature is None else temperature,
                },
            )
        except httpx.HTTPError as e:
            logger.error("OpenAI request failed", error=str(e))
            raise QuizGenerationError(f"OpenAI request failed: {e}") from e

        if response.is_error:
            logger.error(
                "OpenAI API error",
                status=response.status_code,
                body=response.text,
            )
            raise QuizGenerationError(
                f"OpenAI API error: {response.status_code} - {response.text}"
            )

        try:
            return response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise QuizGenerationError("Invalid response format from OpenAI") from e

    # ──────────────────────────────────────────────────────────
    # Quiz Generation
    # ──────────────────────────────────────────────────────────

    async def generate_quiz(
        self,
        subject: str,
        difficulty: str,
        count: int = 5,
    ) -> list[dict[str, Any]]:
        """Generate `count` multiple-choice questions for a subject."""
        logger.info(
            "Generating quiz questions",
            subject=subject,
            difficulty=difficulty,
            count=count,
        )

        content = await self.chat_completion(
            [
                {"role": "system", "content": QUIZ_SYSTEM_PROMPT},
                {"role": "user", "content": build_quiz_prompt(subject, difficulty, count)},
            ]
        )

        try:
            questions = orjson.loads(content)
        except (orjson.JSONDecodeError, TypeError) as e:
            logger.error("Failed to parse OpenAI response", raw=content)
            raise QuizGenerationError("Invalid response format from OpenAI") from e

        if not isinstance(questions, list):
            logger.error("OpenAI response is not an array", response=questions)
            raise QuizGenerationError("OpenAI response is not an array")

        logger.info("Generated quiz questions", count=len(questions))
        return questions


# ══════════════════════════════════════════════════════════════
# Singleton Client
# ══════════════════════════════════════════════════════════════

_openai_client: OpenAIClient | None = None


def get_openai_client() -> OpenAIClient:
    """Get singleton OpenAI client instance."""
    global _openai_client
    if _openai_client is None:
        _openai_client = OpenAIClient()
    return _openai_client


async def close_openai_client() -> None:
    """Close the singleton client, if one was created."""
    global _openai_client
    if _openai_client is not None:
        await _openai_client.close()
        _openai_client = None
