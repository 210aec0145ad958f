"""
Crowdfund Platform Main Application

Single FastAPI application mounting every service router under the API
prefix. Every response, success or failure, uses the
``{success, message, data?}`` envelope.
Port: 5000
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import PlatformConfig, get_settings
from core.errors import PlatformError
from core.responses import error_response, success_response
from microservices.account_service.routes import router as account_router
from microservices.admin_service.routes import router as admin_router
from microservices.campaign_service.routes import (
    campaigns_router,
    drafts_router,
    milestones_router,
)
from microservices.engagement_service.routes import router as engagement_router
from microservices.notification_service.routes import router as notification_router
from microservices.payment_service.routes import router as payment_router

from .factory import PlatformServiceFactory

logger = logging.getLogger(__name__)

# Track startup time for uptime calculation
startup_time = time.time()


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def create_app(
    settings: Optional[PlatformConfig] = None,
    factory: Optional[PlatformServiceFactory] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Platform configuration (environment by default)
        factory: Pre-bound factory; when given the lifespan does not open
            a database pool and does not close the factory
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        owned = factory is None
        app.state.factory = factory or PlatformServiceFactory(settings)
        logger.info(f"Starting {settings.service_name} on port {settings.service_port}")
        if owned:
            await app.state.factory.initialize()

        yield

        logger.info(f"Shutting down {settings.service_name}")
        if owned:
            await app.state.factory.close()

    app = FastAPI(
        title="Crowdfund Platform API",
        description="Crowdfunding campaigns, approvals, engagement tracking and funding ledger",
        version=settings.version,
        lifespan=lifespan,
    )
    if factory is not None:
        app.state.factory = factory

    # ====================
    # Exception Handlers
    # ====================

    @app.exception_handler(PlatformError)
    async def platform_error_handler(request: Request, exc: PlatformError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return error_response(exc.message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response(_first_validation_message(exc), status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(str(exc.detail), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return error_response("Internal server error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    # ====================
    # Health Endpoints
    # ====================

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint"""
        db_healthy = await request.app.state.factory.health_check()
        return success_response(
            "Service is healthy",
            {
                "service": settings.service_name,
                "version": settings.version,
                "dependencies": {"postgres": "healthy" if db_healthy else "unhealthy"},
                "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            },
        )

    @app.get("/health/ready", tags=["Health"])
    async def readiness_check(request: Request):
        """Readiness check endpoint"""
        ready = await request.app.state.factory.health_check()
        if not ready:
            return error_response("Database unavailable", status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
        return success_response("Service is ready", {"ready": True})

    @app.get("/health/live", tags=["Health"])
    async def liveness_check():
        """Liveness check endpoint"""
        return success_response("Service is alive", {"alive": True, "uptime_seconds": time.time() - startup_time})

    # ====================
    # Routers
    # ====================

    # Engagement routes go before campaigns so /campaigns/most-viewed is not
    # captured by /campaigns/{campaign_id}
    for router in (
        account_router,
        engagement_router,
        drafts_router,
        campaigns_router,
        milestones_router,
        payment_router,
        notification_router,
        admin_router,
    ):
        app.include_router(router, prefix=settings.api_prefix)

    return app


get_settings().logging.configure()
app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "microservices.platform_service.main:app",
        host="0.0.0.0",
        port=settings.service_port,
        reload=settings.debug,
        log_level=settings.logging.log_level.lower(),
        access_log=settings.logging.access_log,
    )
