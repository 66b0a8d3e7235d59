"""EnrollFlow Backend - Main FastAPI Application

Document verification and registration progression for student enrollment
through partner organizations.

This module creates and configures the FastAPI application:
- Documents and Registrations routers
- Request ID middleware
- Exception handlers mapping domain errors to HTTP status codes
- Engine lifecycle (created on startup, disposed on shutdown)
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import get_settings
from .database import dispose_engine, init_engine
from .dependencies import get_storage
from .domain.documents.ports.object_storage_port import StorageError
from .domain.errors import EnrollmentError
from .documents.router import router as documents_router
from .infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .registrations.router import router as registrations_router

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


async def check_document_store(storage: S3StorageAdapter, environment: str) -> bool:
    """Verify the document bucket at startup.

    A missing or unreachable bucket aborts startup in production and is only
    logged elsewhere, so local runs work without MinIO.

    Raises:
        StorageError: In production, if the bucket check fails
    """
    try:
        return await storage.verify_bucket_exists()
    except StorageError as e:
        if environment == "production":
            raise
        logger.warning(f"Document store check failed: {e}")
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Startup: create the database engine
    - Startup: verify the document bucket
    - Shutdown: dispose pooled connections
    """
    logger.info("EnrollFlow API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    init_engine()
    await check_document_store(get_storage(), settings.ENVIRONMENT)

    yield

    dispose_engine()
    logger.info("EnrollFlow API shutting down...")


_docs_enabled = settings.ENVIRONMENT != "production"

app = FastAPI(
    title="EnrollFlow API",
    description="Enrollment document verification and registration progression",
    version="0.1.0",
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    openapi_url="/openapi.json" if _docs_enabled else None,
    lifespan=lifespan,
)

app.add_middleware(RequestIDMiddleware)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(EnrollmentError)
async def enrollment_error_handler(
    request: Request,
    exc: EnrollmentError
) -> JSONResponse:
    """Map domain errors to their HTTP status codes."""
    log = logger.warning if exc.status_code >= 500 else logger.info
    log(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
        extra={"status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic request validation errors with field-level details."""
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Request validation failed",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "A database error occurred. Please try again later."},
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(documents_router, prefix="/api/v1")
app.include_router(registrations_router, prefix="/api/v1")


@app.get("/health", include_in_schema=False)
async def health() -> dict[str, Any]:
    return {"status": "ok", "version": "0.1.0"}


def create_app() -> FastAPI:
    """Application factory for tests and ASGI servers."""
    return app
