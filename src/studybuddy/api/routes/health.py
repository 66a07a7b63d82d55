"""Health check endpoints."""

from fastapi import APIRouter, Depends

from studybuddy import __version__
from studybuddy.config import Settings, get_settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Basic health check."""
    return {
        "status": "healthy",
        "version": __version__,
    }


@router.get("/health/ready")
async def readiness_check(config: Settings = Depends(get_settings)) -> dict:
    """Readiness probe. Reports whether the OpenAI key is configured."""
    return {
        "status": "ready",
        "openai_configured": config.openai_configured,
    }


@router.get("/health/live")
async def liveness_check() -> dict:
    """Liveness probe."""
    return {"status": "alive"}
