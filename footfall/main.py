"""
FastAPI Production Application

Main entry point for the Tourism Footfall API.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from footfall.config.logging import configure_logging
from footfall.config.settings import Settings, get_settings
from footfall.database.connection import close_database, create_schema, init_database
from footfall.domain.errors import StoreUnavailableError, ValidationError
from footfall.serving.api.middleware import RequestLoggingMiddleware
from footfall.serving.api.routes import (
    checkin_router,
    footfall_router,
    health_router,
    hotels_router,
    recommendations_router,
    stats_router,
    tickets_router,
)
from footfall.serving.cache import close_redis, init_redis
from footfall.services.footfall_service import FootfallService
from footfall.store import FootfallStore, InMemoryFootfallStore, SqlFootfallStore

logger = structlog.get_logger(__name__)


async def open_store(app: FastAPI, settings: Settings) -> FootfallStore:
    """Build the configured store; the SQL engine is kept on app state."""
    if settings.footfall.store_backend == "memory":
        logger.info("Using in-memory store")
        return InMemoryFootfallStore(history_limit=settings.footfall.history_limit)

    engine = await init_database(settings.database)
    app.state.engine = engine
    if settings.database.create_schema or engine.dialect.name == "sqlite":
        await create_schema(engine)
    return SqlFootfallStore(engine, history_limit=settings.footfall.history_limit)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    configure_logging(settings.monitoring.log_level, settings.monitoring.log_format)

    logger.info("Starting Tourism Footfall API", environment=settings.app_env)

    owns_service = app.state.service is None
    if owns_service:
        store = await open_store(app, settings)
        app.state.service = FootfallService(store, settings.footfall)

    try:
        await init_redis(settings.redis)
    except (RedisError, OSError) as e:
        logger.warning("Redis unavailable, caching disabled", error=str(e))

    yield

    logger.info("Shutting down...")
    await close_redis()
    if owns_service:
        await app.state.service.store.close()
        await close_database(app.state.engine)
        app.state.service = None
        app.state.engine = None


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("Request rejected", path=request.url.path, reasons=list(exc.reasons))
    return JSONResponse(
        status_code=422,
        content={"success": False, "errors": list(exc.reasons)},
    )


async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    logger.error("Store unavailable", path=request.url.path, error=exc.message)
    return JSONResponse(
        status_code=503,
        content={"success": False, "error": "Store unavailable"},
    )


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[FootfallService] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Application settings, loaded from the environment if omitted
        service: Prebuilt service; when given the lifespan opens no store

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Tourism Footfall API",
        description="Telecom and ticket footfall reconciliation for tourist places",
        version=settings.version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = service
    app.state.engine = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(footfall_router, prefix="/api/v1/footfall", tags=["Footfall"])
    app.include_router(recommendations_router, prefix="/api/v1/recommendations", tags=["Recommendations"])
    app.include_router(tickets_router, prefix="/api/v1/tickets", tags=["Tickets"])
    app.include_router(checkin_router, prefix="/api/v1/checkin", tags=["Check-in"])
    app.include_router(stats_router, prefix="/api/v1/dashboard", tags=["Dashboard"])
    app.include_router(hotels_router, prefix="/api/v1/hotels", tags=["Hotels"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
