"""
Health Check Endpoints

Liveness, readiness and a detailed health report for orchestration.
Only the store decides readiness; a failing cache degrades the report but
the API keeps serving from the store.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel
from redis.exceptions import RedisError

from footfall.config.settings import Settings
from footfall.database.connection import check_database_health
from footfall.domain.errors import StoreUnavailableError
from footfall.serving.api.dependencies import get_app_settings, get_footfall_service
from footfall.serving.cache import get_redis

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


async def _store_check(request: Request) -> Dict[str, Any]:
    if get_app_settings(request).footfall.store_backend == "memory":
        return {"status": "healthy", "backend": "memory"}
    report = await check_database_health(getattr(request.app.state, "engine", None))
    return {**report, "backend": "sql"}


async def _cache_check() -> Dict[str, Any]:
    client = get_redis()
    if client is None:
        return {"status": "disabled"}
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy"}


async def _telecom_freshness(request: Request) -> Dict[str, Any]:
    """Newest telecom window on record; informational only."""
    try:
        latest = await get_footfall_service(request).store.latest_telecom_window_start()
    except StoreUnavailableError as e:
        return {"status": "unavailable", "error": str(e)}
    return {"status": "ok" if latest else "empty", "latest_window_start": latest}


@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse:
    checks = {
        "database": await _store_check(request),
        "redis": await _cache_check(),
        "telecom": await _telecom_freshness(request),
    }

    if checks["database"]["status"] != "healthy":
        status = "unhealthy"
    elif checks["redis"]["status"] == "unhealthy":
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(request: Request, response: Response) -> Dict[str, str]:
    """503 until the store answers."""
    if (await _store_check(request))["status"] != "healthy":
        response.status_code = 503
        return {"status": "not_ready", "reason": "database_unavailable"}
    return {"status": "ready"}


@router.get("/info")
async def api_info(settings: Settings = Depends(get_app_settings)) -> Dict[str, Any]:
    return {
        "name": "Tourism Footfall API",
        "version": settings.version,
        "environment": settings.app_env,
        "store_backend": settings.footfall.store_backend,
        "default_state": settings.footfall.default_state,
        "documentation": "/docs",
    }
