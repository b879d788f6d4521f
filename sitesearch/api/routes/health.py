"""
Health check endpoint.
"""

import time

import structlog
from fastapi import APIRouter, Depends

from sitesearch import __version__
from sitesearch.api.dependencies import get_database
from sitesearch.api.models import ComponentHealth, HealthResponse
from sitesearch.storage.database import Database

router = APIRouter()
logger = structlog.get_logger(__name__)


async def _check_database(db: Database) -> ComponentHealth:
    """Check database connectivity and measure latency."""
    start = time.perf_counter()
    try:
        healthy = await db.health_check()
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="healthy" if healthy else "unhealthy",
            latency_ms=round(latency_ms, 2),
        )
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.warning("Database health check failed", error=str(e))
        return ComponentHealth(
            status="unhealthy",
            latency_ms=round(latency_ms, 2),
            details={"error": str(e)},
        )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Check the health of the service and its database.",
)
async def health_check(db: Database = Depends(get_database)) -> HealthResponse:
    db_health = await _check_database(db)
    return HealthResponse(
        status=db_health.status,
        components={"database": db_health},
        version=__version__,
    )
