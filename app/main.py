"""
Media Storage Gateway - Main Application Entry Point.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import get_settings
from app.core.exceptions import MediaGatewayException
from app.api.v1.router import api_router
from app.auth.permissions import get_authorization_gateway
from app.services.audit import get_audit_publisher
from app.services.metrics import MetricsMiddleware

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.PROJECT_NAME}")
    logger.info(f"Storage backend: {settings.STORAGE_BACKEND}")
    logger.info(f"Default tenant: {settings.DEFAULT_TENANT}")
    logger.info(f"Permission service: {settings.PERMISSION_SERVICE_URL}")
    if settings.KAFKA_AUDIT_TOPIC:
        logger.info(f"Audit topic: {settings.KAFKA_AUDIT_TOPIC}")
    else:
        logger.warning("KAFKA_AUDIT_TOPIC not set - audit events are disabled")
    logger.info(f"Dev mode (bypass auth): {settings.DEV_MODE}")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.PROJECT_NAME}")
    get_audit_publisher().close()
    get_authorization_gateway().close()


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
## Media Storage Gateway

Multi-tenant media storage over blob storage.

### Features
- **Tenant isolation**: one storage container per tenant, created on first use
- **Uploads**: random object keys, image metadata extracted from the bytes
- **Downloads**: every read authorized by the permission service
- **Audit**: upload and delete events published to Kafka

### Storage Backends
- Local filesystem
- S3 / MinIO
- Azure Blob Storage
    """,
    version=__version__,
    openapi_tags=[
        {"name": "media", "description": "Media object operations"},
        {"name": "health", "description": "Service health checks"},
    ],
    lifespan=lifespan,
)

# CORS middleware for cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware for request tracking
app.add_middleware(MetricsMiddleware)


@app.exception_handler(MediaGatewayException)
async def gateway_exception_handler(request: Request, exc: MediaGatewayException) -> JSONResponse:
    """
    Global exception handler for gateway exceptions.
    Returns standardized error responses.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all exception handler for unexpected errors.
    Logs the full error but returns a sanitized response.
    """
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
        },
    )


# Include API routers
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint with service information."""
    return {
        "name": settings.PROJECT_NAME,
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
        "api": settings.API_V1_PREFIX,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
