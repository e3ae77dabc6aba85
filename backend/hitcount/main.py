"""
Hitcount API - Main Application Entry Point.

Privacy-preserving pageview analytics: a tracking beacon endpoint and a
dashboard read API over pre-aggregated rollups.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hitcount.core.config import settings
from hitcount.core.database import async_session_factory, close_db, init_db
from hitcount.core.logging import configure_logging, get_logger
from hitcount.core.redis import create_redis
from hitcount.middleware import ErrorHandlerMiddleware, RequestIdMiddleware
from hitcount.routers import count_router, health_router, stats_router
from hitcount.services.job_queue import create_queue_pool

# Configure logging before anything else
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(
        "Starting application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Initialize database and the reserved rows
    await init_db()
    app.state.session_factory = async_session_factory

    # Sessions and the hit queue share Redis
    app.state.redis = create_redis()
    app.state.arq_pool = None
    if settings.redis_url:
        try:
            app.state.arq_pool = await create_queue_pool()
            logger.info("Hit queue connected")
        except Exception as e:
            logger.warning("Hit queue unavailable, processing in-process", error=str(e))

    # Initialize Sentry if configured
    if settings.sentry_dsn:
        import sentry_sdk

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
            send_default_pii=False,
        )
        logger.info("Sentry initialized")

    yield

    # Shutdown
    logger.info("Shutting down application")
    if app.state.arq_pool is not None:
        await app.state.arq_pool.aclose()
    if app.state.redis is not None:
        await app.state.redis.aclose()
    await close_db()


def create_app() -> FastAPI:
    """
    Application factory function.
    Creates and configures the FastAPI application.
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Privacy-preserving pageview analytics API",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # Add middleware (order matters - last added = outermost)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials="*" not in settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "X-Request-ID",
        ],
    )

    # Register routers
    app.include_router(health_router)
    app.include_router(count_router)
    app.include_router(stats_router)

    logger.info(
        "Application created",
        routes=len(app.routes),
        cors_origins=len(settings.allowed_origins),
    )

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hitcount.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
