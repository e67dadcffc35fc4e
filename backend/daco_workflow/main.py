"""
DACO Application Workflow Service - Main FastAPI Application

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
from .scheduler.reminder_scheduler import start_scheduler, stop_scheduler, scheduler_status
from .utils.logger import setup_logging, get_logger

# Setup logging first
setup_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"


# =============================================================================
# Application Lifecycle
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Creates MongoDB indexes
        - Starts the reminder scheduler (when enabled)

    Shutdown:
        - Cancels and stops the scheduler
        - Closes database connections
    """
    logger.info("Starting DACO Application Workflow Service...")

    try:
        create_indexes()
    except PyMongoError as e:
        logger.error(f"Failed to create indexes: {e}")

    if settings.reminder_scheduler_enabled:
        start_scheduler()
    else:
        logger.info("Reminder scheduler disabled by configuration")

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
    show_docs = settings.debug and not settings.is_production

    application = FastAPI(
        title="DACO Application Workflow Service",
        description="Controlled-data access applications: review state machine, audit log and reminders",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if show_docs else None,
        redoc_url="/api/redoc" if show_docs else None,
        openapi_url="/api/openapi.json" if show_docs else None,
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

    # Health check endpoint (no auth required)
    @app.get("/health", tags=["Health"])
    async def health():
        """
        Health check endpoint.

        Returns application health including database connectivity and
        whether the reminder scheduler is running.
        """
        mongo_health = health_check()
        return {
            "status": "healthy" if mongo_health.get("status") == "healthy" else "degraded",
            "version": VERSION,
            "environment": settings.environment,
            "mongo": mongo_health,
            "reminder_scheduler": scheduler_status()
        }


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()
