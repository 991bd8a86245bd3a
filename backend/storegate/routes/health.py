"""
Storegate Backend - Health Check Route
=======================================

What:  Liveness endpoint for load balancers and container probes.
How:   Reports process liveness plus audit store reachability. The store is
       probed only once it is installed; before that it reports
       "not_installed" without touching the database.
When:  Polled every few seconds; excluded from the access log.

Status levels:
    - healthy:   process up, store connected or not yet installed (HTTP 200)
    - degraded:  process up, installed store unreachable (HTTP 200, flag for monitoring)
"""

import logging
import time

from fastapi import APIRouter, Request
from sqlalchemy import text

from storegate import __version__
from storegate.database import get_engine
from storegate.schemas.audit import HealthResponse
from storegate.services.installation import database_is_installed

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health/live",
    response_model=HealthResponse,
    summary="Service liveness check",
)
async def health_live(request: Request) -> HealthResponse:
    """
    Check the process and, once installed, the audit store.

    Returns:
        HealthResponse with overall status, store status and uptime.
    """
    overall = "healthy"

    if not database_is_installed(request.app.state.settings):
        db_status = "not_installed"
    else:
        db_status = "connected"
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            db_status = "disconnected"
            overall = "degraded"
            logger.warning("Health check: audit store unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
