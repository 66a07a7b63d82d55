"""
StudyBuddy FastAPI Application

Main application factory and configuration.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse

from studybuddy import __version__
from studybuddy.config import settings
from studybuddy.integrations.openai import close_openai_client
from studybuddy.logging_config import configure_logging

from .routes import health, quiz, realtime

logger = structlog.get_logger()


# ══════════════════════════════════════════════════════════════
# Lifespan Management
# ══════════════════════════════════════════════════════════════


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    configure_logging(settings.log_level, json_logs=settings.json_logs)

    logger.info(
        "Starting StudyBuddy API",
        version=__version__,
        environment=settings.app_env,
        openai_configured=settings.openai_configured,
    )
    if not settings.openai_configured:
        logger.warning("OPENAI_API_KEY is not set; realtime chat and quizzes will fail")

    yield

    logger.info("Shutting down StudyBuddy API")
    await close_openai_client()
    logger.info("StudyBuddy API shutdown complete")


# ══════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="StudyBuddy API",
        description="Realtime voice tutoring and AI quiz generation for students",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # ──────────────────────────────────────────────────────────
    # Middleware
    # ──────────────────────────────────────────────────────────

    # CORS is answered per route with fixed headers, see api.cors

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing."""
        start = time.perf_counter()

        response = await call_next(request)

        duration = (time.perf_counter() - start) * 1000
        logger.info(
            "Request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration, 2),
        )

        return response

    # ──────────────────────────────────────────────────────────
    # Routes
    # ──────────────────────────────────────────────────────────

    # Health checks (no auth required)
    app.include_router(
        health.router,
        tags=["Health"],
    )

    app.include_router(
        quiz.router,
        prefix=settings.api_prefix,
        tags=["Quiz"],
    )

    # WebSocket relay plus its HTTP fallbacks
    app.include_router(
        realtime.router,
        prefix=settings.api_prefix,
        tags=["Realtime"],
    )

    return app


# Create default app instance
app = create_app()
