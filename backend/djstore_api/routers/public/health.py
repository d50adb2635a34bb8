"""
Health check endpoints for the REST API.

- GET /api/health: liveness, no dependency is touched
- GET /status: readiness, opens a raw connection to the configured store
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from djstore_shared.config.settings import settings
from djstore_shared.infrastructure.db import check_database_connection, engine
from djstore_shared.utils.health import (
    HealthStatus,
    aggregate_health_checks,
    health_check_with_timeout,
)


router = APIRouter(tags=["health"])


def get_store_engine() -> AsyncEngine:
    """Engine the readiness check connects to (overridable in tests)."""
    return engine


@router.get("/api/health")
def health_check():
    """
    Basic health check endpoint.
    Returns service status without checking dependencies.
    """
    return {
        "status": "healthy",
        "service": "djstore-api",
        "environment": settings.environment,
    }


@router.get("/status")
async def readiness_check(bind: AsyncEngine = Depends(get_store_engine)):
    """
    Readiness check.

    Returns 503 Service Unavailable when the store cannot be reached.
    """

    @health_check_with_timeout(timeout=settings.health_check_timeout, component="sql")
    async def check_sql_health() -> dict:
        return await check_database_connection(bind)

    report = await aggregate_health_checks([check_sql_health()])

    if report["Status"] != HealthStatus.HEALTHY.value:
        return JSONResponse(content=report, status_code=503)
    return report
