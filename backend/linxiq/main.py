"""
Main FastAPI application entry point.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from linxiq.api.v1.api import api_router
from linxiq.core import settings
from linxiq.core.error_responses import assessment_error_handler
from linxiq.core.exceptions import AssessmentError
from linxiq.core.logging_config import setup_logging
from linxiq.middleware import RequestLoggingMiddleware
from linxiq.models import Base, engine

# Configure logging before anything else logs
setup_logging()

logger = logging.getLogger(__name__)

tags_metadata = [
    {"name": "health", "description": "Liveness and connectivity checks."},
    {"name": "assignments", "description": "Assign tests and manage their status."},
    {
        "name": "sessions",
        "description": "Start or resume attempts, report proctoring events, submit.",
    },
    {"name": "results", "description": "Results and per-result skill-gap analysis."},
    {"name": "reports", "description": "Person and organisation skill-gap reports."},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan event handler.

    Creates missing tables outside production; production schemas are
    managed by migrations.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENV})")
    if settings.ENV != "production":
        Base.metadata.create_all(bind=engine)
    yield
    logger.info(f"Shutting down {settings.APP_NAME}")


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            "**LinxIQ API** - corporate technical assessment lifecycle.\n\n"
            "* Test assignment and result release\n"
            "* Timed sessions with proctoring events\n"
            "* Idempotent scoring and result recording\n"
            "* Skill-gap analytics per person and across the organisation\n\n"
            "## Authentication\n\n"
            "Every endpoint except health checks requires a JWT Bearer token."
        ),
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    if settings.REQUEST_LOGGING_ENABLED:
        app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    app.add_exception_handler(AssessmentError, assessment_error_handler)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions.

        Generates a unique error_id so support can trace the failure in logs.
        """
        error_id = str(uuid.uuid4())
        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={"error_id": error_id},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error", "error_id": error_id},
        )

    return app


app = create_application()


@app.get("/")
async def root():
    """
    Root endpoint.
    """
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs",
    }
