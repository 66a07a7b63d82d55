"""
Quiz Generation Routes

Stateless endpoint that asks OpenAI for multiple-choice study questions.
"""

import structlog
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import ORJSONResponse
from pydantic import ValidationError

from studybuddy.api.cors import CORS_HEADERS, preflight_response
from studybuddy.errors import StudyBuddyError
from studybuddy.integrations.openai import OpenAIClient, QuizRequest, get_openai_client

logger = structlog.get_logger()

router = APIRouter()

QUIZ_PATH = "/generate-quiz"


def error_response(message: str) -> ORJSONResponse:
    return ORJSONResponse(
        {"error": message},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        headers=CORS_HEADERS,
    )


@router.options(QUIZ_PATH)
async def generate_quiz_preflight() -> Response:
    """CORS pre-flight."""
    return preflight_response()


@router.post(QUIZ_PATH)
async def generate_quiz(
    request: Request,
    client: OpenAIClient = Depends(get_openai_client),
) -> ORJSONResponse:
    """
    Generate quiz questions for a subject and difficulty.

    Body: {"subject": str, "difficulty": str, "count": int = 5}

    Returns {"questions": [...]} on success. Every failure, including a
    malformed body, returns {"error": "..."} with status 500 so the browser
    can read it.
    """
    try:
        quiz = QuizRequest.model_validate_json(await request.body())
        questions = await client.generate_quiz(
            subject=quiz.subject,
            difficulty=quiz.difficulty,
            count=quiz.count,
        )
    except ValidationError as e:
        logger.warning("Invalid quiz request", errors=e.errors(include_url=False))
        return error_response(f"Invalid request body: {e.error_count()} validation error(s)")
    except StudyBuddyError as e:
        logger.error("Error generating quiz questions", error=str(e))
        return error_response(str(e))
    except Exception as e:
        logger.exception("Unexpected error generating quiz questions")
        return error_response(str(e) or e.__class__.__name__)

    return ORJSONResponse({"questions": questions}, headers=CORS_HEADERS)
