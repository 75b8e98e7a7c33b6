"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because
tests need to build apps around their own storage service.

For local development:
    uvicorn resume_storage.main:app --reload

For production:
    gunicorn resume_storage.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.dependencies import build_storage_service
from .api.routes import health, storage
from .config.settings import get_settings
from .core.storage.models import StorageError, StorageErrorKind
from .core.storage.service import StorageService

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)

STORAGE_ERROR_STATUS = {
    StorageErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    StorageErrorKind.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    StorageErrorKind.INVALID_CONTENT: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def create_app(storage_service: Optional[StorageService] = None) -> FastAPI:
    """
    Application factory.

    Args:
        storage_service: Pre-built gateway to use instead of one built
            from settings (tests pass an in-memory one here).
    """
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Build the shared storage gateway and provision the bucket.

        A StorageError raised by provisioning propagates out of here and
        aborts startup: without its bucket the service is useless.
        """
        logger.info(
            "Resume storage API starting",
            extra={
                "version": __version__,
                "bucket": settings.storage_bucket,
                "mock_mode": settings.storage_mock_mode,
            }
        )

        missing_fields = settings.validate_required_fields()
        if missing_fields:
            logger.error(
                "Missing required configuration",
                extra={"missing_fields": missing_fields}
            )

        service = storage_service or build_storage_service(settings)
        await service.ensure_bucket_ready()
        app.state.storage = service

        yield

        logger.info("Resume storage API shutting down")

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Object storage for the resume builder.

        ## Files

        - **pictures**: profile pictures, stored as JPEG bounded to 600x600
        - **previews**: resume thumbnails, stored as JPEG bounded to 600x600
        - **resumes**: exported PDFs, stored unchanged

        Objects live at `{owner_id}/{category}/{name}.{ext}` and are
        publicly readable under the configured storage URL.

        ## Authentication

        Storage endpoints require an API key in the `X-API-Key` header.
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
        storage.router,
        prefix="/api/v1/storage",
        tags=["Storage"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint - points to docs."""
        return {
            "message": "Resume Storage API",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        """Translate gateway failures into JSON, keeping the error kind."""
        status_code = STORAGE_ERROR_STATUS.get(
            exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR
        )

        logger.warning(
            "Storage request failed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "kind": exc.kind.value,
                "error": exc.message,
            }
        )

        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "kind": exc.kind.value},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Logs the full error server-side but returns a generic message.
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

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "resume_storage.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
