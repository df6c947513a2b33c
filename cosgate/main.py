"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order

For local development:
    uvicorn cosgate.main:app --reload

For production:
    gunicorn cosgate.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.dependencies import get_upload_config
from .api.routes import files, health, uploads
from .config.settings import get_settings

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds the scene registries before the first request so a broken
    scene definition stops the process instead of failing uploads.
    """
    settings = get_settings()

    logger.info(
        "cosgate starting",
        extra={
            "version": __version__,
            "mock_mode": settings.storage_mock_mode,
            "credential_mode": settings.credential_mode,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    # Raises RegistrationError on malformed scenes or content types
    config = get_upload_config(settings)
    logger.info(
        "Upload scenes registered",
        extra={"scenes": len(config.scenes), "content_types": len(config.content_types)},
    )

    yield

    logger.info("cosgate shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        description="""
        Scene-based uploads and presigned URLs for object storage.

        ## Authentication

        All endpoints except health require an API key in the `X-API-Key` header.

        ## Workflow

        1. **Get an upload URL**: `POST /api/v1/uploads/presign`
           - Returns the URL, the object path and the headers to send
        2. **Upload**: `PUT` the file to the URL with exactly those headers
        3. **Read it back**: `GET /api/v1/files/url?path=...`
           - or `/preview-url` for documents, `/cdn-url` through the CDN
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        uploads.router,
        prefix="/api/v1/uploads",
        tags=["Uploads"],
    )

    app.include_router(
        files.router,
        prefix="/api/v1/files",
        tags=["Files"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint - redirect to docs."""
        return {
            "message": "cosgate",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Keeps stack traces from leaking to clients. We log the full error
        server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    logger.info(
        "FastAPI application created",
        extra={"title": settings.api_title, "version": __version__},
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "cosgate.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
