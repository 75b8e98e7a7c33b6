"""
Storage API endpoints.

Thin HTTP layer over the StorageService:
1. Upload a picture, preview or resume → returns its public URL
2. Delete one object by (owner, category, name)
3. Delete everything an owner has stored

Errors raised by the gateway are StorageError instances; the exception
handler registered in main.py turns them into JSON responses.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile, status
from pydantic import BaseModel, Field

from ...core.storage.models import UploadType
from ..dependencies import AuthenticatedUser, SettingsDep, StorageServiceDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class UploadResponse(BaseModel):
    """Response after storing a file."""
    url: str = Field(description="Public URL of the stored object")


class FolderDeleteResponse(BaseModel):
    """Response after removing an owner's folder."""
    prefix: str = Field(description="Path prefix that was cleared")
    deleted: int = Field(description="Number of objects removed")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/{owner_id}/{category}",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a file",
    description="Store a picture, preview or resume PDF and return its public URL",
)
async def upload_file(
    owner_id: str,
    category: UploadType,
    file: Annotated[UploadFile, File(description="Image (pictures, previews) or PDF (resumes)")],
    api_key: AuthenticatedUser,
    storage: StorageServiceDep,
    settings: SettingsDep,
    name: Annotated[Optional[str], Form(description="Object name; a random id if omitted")] = None,
) -> UploadResponse:
    """
    Upload a file for an owner.

    Pictures and previews are resized to fit 600x600 and stored as JPEG.
    Resumes are stored unchanged and download with their original name.
    """
    data = await file.read()

    max_size_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(data) > max_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size: {settings.max_upload_size_mb}MB"
        )

    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )

    url = await storage.upload(owner_id, category, data, name=name or None)

    return UploadResponse(url=url)


@router.delete(
    "/{owner_id}/{category}/{name:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a file",
    description="Remove a single stored object",
)
async def delete_file(
    owner_id: str,
    category: UploadType,
    name: str,
    api_key: AuthenticatedUser,
    storage: StorageServiceDep,
) -> Response:
    """
    Delete one object. Returns 404 if nothing is stored at that path.

    The name may contain "/" (uploads accept it), so it spans the rest
    of the URL.
    """
    await storage.delete(owner_id, category, name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{owner_id}",
    response_model=FolderDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete all files of an owner",
    description="Remove every picture, preview and resume stored for an owner",
)
async def delete_owner_files(
    owner_id: str,
    api_key: AuthenticatedUser,
    storage: StorageServiceDep,
) -> FolderDeleteResponse:
    """
    Delete an owner's whole folder.

    Best effort: files uploaded for the same owner while the deletion
    runs may survive it.
    """
    prefix = f"{owner_id}/"
    deleted = await storage.delete_folder(prefix)

    logger.info(
        "Owner files deleted",
        extra={"owner_id": owner_id, "count": deleted}
    )

    return FolderDeleteResponse(prefix=prefix, deleted=deleted)
