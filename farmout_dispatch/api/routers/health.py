"""
Health check endpoints for monitoring and orchestration.

- /health: Basic liveness check (always returns 200)
- /health/db: Database connectivity check
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from farmout_dispatch.api.deps import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness probe. Returns 200 OK if the application is running."""
    return {"status": "ok", "service": "farmout-dispatch"}


@router.get("/health/db")
async def health_check_db(session: AsyncSession = Depends(get_db_session)):
    """
    Database connectivity health check.

    Returns 503 Service Unavailable if the database is down.
    """
    try:
        result = await session.execute(text("SELECT 1"))
        result.scalar()

        return {"status": "healthy", "component": "database"}
    except Exception as e:
        logger.error("Database health check failed", exc_info=e)
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "component": "database",
                "error": "Database connection failed"
            }
        )
