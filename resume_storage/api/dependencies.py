"""
FastAPI dependency injection.

Dependencies provide instances of services and configuration to route
handlers. Routes never construct their own storage client: the single
StorageService built at startup lives on app.state and is handed to
every request from there.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.storage.service import StorageService
from ..infrastructure.storage.client import StorageConfig, create_object_store

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Validate API key from request header.

    Raises 403 if key is invalid or missing.
    """
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list:
        logger.warning(
            "Invalid API key attempt",
            extra={"key_prefix": api_key[:8]}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def build_storage_service(settings: Settings) -> StorageService:
    """
    Create the storage gateway from settings.

    Called once from the application lifespan. The returned service
    (and the S3 client inside it) is shared by all requests.
    """
    config = StorageConfig(
        endpoint=settings.storage_endpoint,
        port=settings.storage_port,
        access_key=settings.storage_access_key,
        secret_key=settings.storage_secret_key,
        bucket_name=settings.storage_bucket,
        region=settings.storage_region,
        use_ssl=settings.storage_use_ssl,
    )

    store = create_object_store(config=config, mock_mode=settings.storage_mock_mode)

    # the in-memory bucket only exists once provisioning has run
    skip_bucket_check = settings.storage_skip_bucket_check and not settings.storage_mock_mode

    return StorageService(
        store=store,
        public_url=settings.storage_url,
        skip_bucket_check=skip_bucket_check,
    )


def get_storage_service(request: Request) -> StorageService:
    """Provide the storage gateway created at startup."""
    service = getattr(request.app.state, "storage", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage is not initialized",
        )
    return service


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
StorageServiceDep = Annotated[StorageService, Depends(get_storage_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
