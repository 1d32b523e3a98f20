"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from .core.config import settings
from .core.database import async_session_factory, close_db, engine, init_db
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    problem_details_handler,
    validation_exception_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_NAME,
    SERVICE_VERSION,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_metrics,
    setup_structured_logging,
    setup_tracing,
)
from .routers import booking_router, health_router, metrics_router, room_router
from .schemas.health import ReadinessResponse, ServiceInfo

setup_structured_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Sets up tracing and creates the schema on startup; disposes the engine
    on shutdown.
    """
    logger.info(
        "Starting FastAPI application",
        extra={"environment": settings.environment, "debug": settings.debug}
    )

    try:
        setup_tracing(SERVICE_NAME)
        setup_metrics(SERVICE_NAME)
        instrument_sqlalchemy(engine)
        logger.info("Observability setup completed")

        await init_db()
        logger.info("Database initialized successfully")
    except Exception:
        logger.exception("Failed to initialize application")
        raise

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down FastAPI application")
    await close_db()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="Hotel Booking API",
        description="RPC-over-HTTP API for hotel room bookings with per-room-number availability and housekeeping state",
        version=SERVICE_VERSION,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Idempotent-Replayed"],
    )

    setup_middleware(app, enable_logging=True)

    instrument_fastapi(app)

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health Check",
        response_model=dict,
    )
    async def health_check():
        """Liveness probe."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "environment": settings.environment,
        }

    @app.get(
        "/ready",
        tags=["Health"],
        summary="Readiness Check",
        response_model=ReadinessResponse,
    )
    async def readiness_check():
        """Readiness probe; fails with 503 when the database is unreachable."""
        try:
            async with async_session_factory() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning("Readiness check failed", extra={"error": str(e)})
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content=ReadinessResponse(
                    status="unavailable",
                    service=SERVICE_NAME,
                    checks={"database": "error"}
                ).model_dump()
            )

        return ReadinessResponse(status="ready", service=SERVICE_NAME, checks={"database": "ok"})

    @app.get(
        "/info",
        tags=["Info"],
        summary="Service Information",
        response_model=ServiceInfo,
    )
    async def service_info():
        return ServiceInfo(
            service=SERVICE_NAME,
            version=SERVICE_VERSION,
            environment=settings.environment,
            debug=settings.debug,
            checkout_day_free=settings.checkout_day_free,
            docs="/docs" if settings.debug else None,
        )

    app.include_router(health_router)
    app.include_router(booking_router)
    app.include_router(room_router)
    app.include_router(metrics_router)

    logger.info("FastAPI application created and configured")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hotel_booking.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
