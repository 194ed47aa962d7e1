"""
MediaVault FastAPI Application Entry Point

This module builds the MediaVault backend application:

- FastAPI application with lifespan-managed MongoDB connection
- Structured logging configured from Settings
- CORS middleware for the frontend origin(s)
- Request body size guard ahead of multipart parsing
- A single exception handler rendering IngestionError subclasses
- Health check endpoint for load balancers
- API router registration under the /api/v1 prefix

API Structure:
    /api/v1/video_upload/{video_id} - Video upload for an existing record
    /api/v1/videos/{video_id}       - Record with signed retrieval URL

Usage:
    uvicorn mediavault.main:app --host 0.0.0.0 --port 8091
"""

import logging

from contextlib import asynccontextmanager
from datetime import UTC, datetime

import uvicorn

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mediavault import __version__
from mediavault.api.v1 import api_router
from mediavault.config import get_settings
from mediavault.core.database import close_db, get_db_client, init_db
from mediavault.core.exceptions import IngestionError
from mediavault.core.middleware import MULTIPART_OVERHEAD_BYTES, RequestSizeLimitMiddleware
from mediavault.utils.logger import setup_logging


# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Application Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Startup: configure logging and connect to MongoDB.
    Shutdown: close the MongoDB connection.
    """
    settings = get_settings()
    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    logger.info(
        "MediaVault API starting",
        extra={"environment": settings.app_env, "host": settings.host, "port": settings.port},
    )

    try:
        await init_db(settings)
    except RuntimeError:
        logger.exception("Failed to initialize MongoDB")
        raise

    yield

    logger.info("MediaVault API shutting down")
    await close_db()


# =============================================================================
# FastAPI Application Instance
# =============================================================================

_settings = get_settings()

app = FastAPI(
    title="MediaVault API",
    description=(
        "Authenticated video ingestion: uploads are inspected, remuxed for fast "
        "start and stored in S3-compatible object storage under unguessable keys."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=_settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(
    RequestSizeLimitMiddleware,
    max_body_bytes=_settings.max_upload_size_bytes + MULTIPART_OVERHEAD_BYTES,
)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(IngestionError)
async def ingestion_error_handler(request: Request, exc: IngestionError) -> JSONResponse:
    """Render pipeline errors as ``{"error": code, "message": text}``."""
    logger.debug(
        "Returning error response",
        extra={
            "path": request.url.path,
            "status_code": exc.status_code,
            "error_code": exc.error_code,
            "stage": exc.stage.value if exc.stage else None,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# =============================================================================
# Health Check Endpoints
# =============================================================================


@app.get("/", tags=["health"])
async def root() -> dict:
    return {
        "name": _settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health", tags=["health"])
async def health_check() -> dict:
    """
    Liveness probe.

    Reports ``healthy`` while the process is serving and includes the
    database ping result without failing the probe on it.
    """
    try:
        database = "connected" if await get_db_client().ping() else "unavailable"
    except RuntimeError:
        database = "not_initialized"

    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "database": database,
    }


# =============================================================================
# Router Registration
# =============================================================================

app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    uvicorn.run(
        "mediavault.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.debug,
        log_level=_settings.log_level,
    )
