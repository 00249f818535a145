"""
Potluck Backend: Health Check Route
====================================

Status levels:
    healthy:    database and object storage reachable      (HTTP 200)
    degraded:   storage unreachable, database fine         (HTTP 200)
    unhealthy:  database unreachable                       (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from potluck import __version__
from potluck.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(request: Request):
    db_status = "connected"
    storage_status = "available"
    overall = "healthy"

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", e)

    if not await request.app.state.storage.check():
        storage_status = "unavailable"
        if overall == "healthy":
            overall = "degraded"
        logger.warning("Health check: object storage unavailable")

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=503 if overall == "unhealthy" else 200,
        content=body.model_dump(),
    )
