"""
Civic Complaint Escalation Service - Main FastAPI Application

This is the entry point for the FastAPI application.
It configures middleware, routes, and lifecycle handlers.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from .config.settings import settings
from .api.routes import api_router
from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .repositories.mongo_client import create_indexes, close_connection, health_check
from .scheduler.escalation_scheduler import start_scheduler, stop_scheduler
from .utils.logger import setup_logging, get_logger

# Setup logging first
setup_logging()
logger = get_logger(__name__)

APP_VERSION = "1.0.0"


# =============================================================================
# Application Lifecycle
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Creates MongoDB indexes
        - Starts the escalation scheduler (when enabled)

    Shutdown:
        - Stops scheduler
        - Closes database connections
    """
    logger.info("Starting civic escalation service...")

    try:
        create_indexes()
    except PyMongoError as e:
        logger.error(f"Failed to create indexes: {e}")

    if settings.escalation_scheduler_enabled:
        start_scheduler()
    else:
        logger.info("Escalation scheduler disabled; cycles run only on demand")

    if settings.pilot_dry_run:
        logger.info(
            f"PILOT DRY RUN enabled (SLA override {settings.pilot_dry_run_sla_override_minutes} minutes)"
        )
    if settings.test_escalation_override_minutes > 0:
        logger.warning(
            f"TEST ESCALATION OVERRIDE active: SLA is {settings.test_escalation_override_minutes} minutes"
        )

    logger.info("Application started successfully")

    yield

    logger.info("Shutting down...")
    stop_scheduler()
    close_connection()
    logger.info("Application shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    application = FastAPI(
        title="Civic Complaint Escalation Service",
        description="Periodic escalation of civic complaints that outlive their SLA",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        openapi_url="/api/openapi.json" if settings.debug else None,
    )

    _configure_middleware(application)
    register_error_handlers(application)
    _configure_routes(application)

    return application


def _configure_middleware(app: FastAPI) -> None:
    """Configure application middleware."""
    # allow_credentials must be False when allowing all origins
    allow_all = settings.cors_origins.strip() == "*"

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_origins_list,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )
    app.add_middleware(CorrelationIdMiddleware)


def _configure_routes(app: FastAPI) -> None:
    """Configure application routes."""
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    def health():
        """Application health including database connectivity."""
        mongo_health = health_check()
        return {
            "status": "healthy" if mongo_health.get("status") == "healthy" else "degraded",
            "version": APP_VERSION,
            "environment": settings.environment,
            "escalation_interval_seconds": settings.escalation_interval_seconds,
            "mongo": mongo_health
        }


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()
