"""External service integrations."""

from .openai import OpenAIClient, QuizRequest, get_openai_client

__all__ = [
    "OpenAIClient",
    "QuizRequest",
    "get_openai_client",
]
