"""
Health check endpoints.

- /health: liveness, never touches the object store
- /health/ready: configuration and bucket reachability
"""

import logging
from typing import Any

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ... import __version__
from ...core.storage.models import StorageError
from ...core.storage.service import StorageService
from ..dependencies import SettingsDep, StorageServiceDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessCheck(BaseModel):
    name: str
    status: str  # "ok" or "error"
    error: str | None = None


class ReadinessResponse(BaseModel):
    status: str  # "ready" or "not_ready"
    version: str
    checks: list[ReadinessCheck]


@router.get("", response_model=HealthResponse, summary="Liveness check")
async def health_check(settings: SettingsDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "mock_mode": settings.storage_mock_mode,
            "bucket": settings.storage_bucket,
        }
    )


async def _storage_check(storage: StorageService) -> ReadinessCheck:
    try:
        exists = await storage.bucket_exists()
    except StorageError as e:
        logger.error(
            "Storage health check failed",
            extra={"kind": e.kind.value, "error": e.message}
        )
        return ReadinessCheck(name="storage", status="error", error=e.message)

    if not exists:
        return ReadinessCheck(
            name="storage",
            status="error",
            error=f"Bucket '{storage.bucket_name}' does not exist",
        )
    return ReadinessCheck(name="storage", status="ok")


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_check(
    response: Response,
    settings: SettingsDep,
    storage: StorageServiceDep,
) -> ReadinessResponse:
    """Returns 503 when configuration is incomplete or the bucket is unreachable."""
    missing_fields = settings.validate_required_fields()
    config_check = ReadinessCheck(
        name="configuration",
        status="error" if missing_fields else "ok",
        error=f"Missing required fields: {', '.join(missing_fields)}" if missing_fields else None,
    )
    checks = [config_check, await _storage_check(storage)]

    ready = all(check.status == "ok" for check in checks)
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "Readiness check failed",
            extra={"checks": [check.model_dump() for check in checks]}
        )

    return ReadinessResponse(
        status="ready" if ready else "not_ready",
        version=__version__,
        checks=checks,
    )
