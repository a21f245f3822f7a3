"""
Health check endpoint.
"""

from fastapi import APIRouter
from sqlalchemy import text
from datetime import datetime, timezone
import logging

from app.config.settings import get_settings
from app.core.db import get_session_factory
from app.core.error_handlers import error_handler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Application status with a database round trip and error counters."""
    settings = get_settings()
    database = {"status": "healthy"}
    try:
        async with get_session_factory()() as db:
            await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        database = {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy" if database["status"] == "healthy" else "degraded",
        "version": settings.app_version,
        "environment": settings.environment.value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "details": {"database": database},
        "error_statistics": error_handler.get_error_statistics(),
    }
