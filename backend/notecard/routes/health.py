"""
Notecard — Health Check Route
===============================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs `SELECT 1` against the database and asks the storage backend for
       its own lightweight check.

Status levels:
    healthy    database and storage reachable (HTTP 200)
    degraded   storage unreachable; notes still list without images (HTTP 200)
    unhealthy  database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from notecard import __version__
from notecard.database import get_db_session
from notecard.schemas.note import HealthResponse
from notecard.services.base import StorageService
from notecard.services.storage_service import get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    storage: StorageService = Depends(get_storage_service),
) -> HealthResponse:
    db_status = "connected"
    storage_status = "available"
    overall = "healthy"

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not await storage.health_check():
        storage_status = "unavailable"
        if overall == "healthy":
            overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
