"""
Health check endpoints for monitoring and orchestration (K8s, Docker, etc.)

Provides multiple health check endpoints:
- /health: Basic liveness check (always returns 200)
- /health/db: Database connectivity check
- /health/ready: Readiness check (database plus reconfirmation poller state)
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_reconfirmation_poller, get_session
from app.config import Settings, get_settings
from app.infrastructure.messaging.reconfirmation_poller import ReconfirmationPoller

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "booking-orchestrator"


async def _database_healthy(session: AsyncSession | None) -> bool:
    if session is None:
        # In-memory mode has no database to reach
        return True
    try:
        result = await session.execute(text("SELECT 1"))
        result.scalar()
        return True
    except SQLAlchemyError as e:
        logger.error("Database health check failed", exc_info=e)
        return False


@router.get("/health")
async def health_check():
    """
    Basic liveness probe.

    Returns 200 OK if the application is running.
    """
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/db")
async def health_check_db(session: AsyncSession | None = Depends(get_session)):
    """
    Database connectivity health check.

    Returns 503 Service Unavailable if database is down.
    """
    if await _database_healthy(session):
        return {"status": "healthy", "component": "database"}
    return JSONResponse(
        status_code=503,
        content={
            "status": "unhealthy",
            "component": "database",
            "error": "Database connection failed",
        },
    )


@router.get("/health/ready")
async def health_check_ready(
    session: AsyncSession | None = Depends(get_session),
    poller: ReconfirmationPoller = Depends(get_reconfirmation_poller),
    settings: Settings = Depends(get_settings),
):
    """
    Readiness probe.

    Checks database connectivity and, when enabled, that the reconfirmation
    poller is running. Returns 503 if not ready to accept requests.
    """
    health_status = {
        "status": "ready",
        "checks": {},
    }

    if await _database_healthy(session):
        health_status["checks"]["database"] = "healthy"
    else:
        health_status["status"] = "not_ready"
        health_status["checks"]["database"] = "unhealthy"

    if settings.reconfirmation_poller_enabled:
        poller_ok = poller.is_running
        health_status["checks"]["reconfirmation_poller"] = "running" if poller_ok else "stopped"
        if not poller_ok:
            health_status["status"] = "not_ready"
    else:
        health_status["checks"]["reconfirmation_poller"] = "disabled"

    if health_status["status"] != "ready":
        return JSONResponse(status_code=503, content=health_status)
    return health_status


@router.get("/health/live")
async def health_check_live():
    """
    Alias for /health for Kubernetes liveness probe.
    """
    return {"status": "ok", "service": SERVICE_NAME}
