"""
Object storage gateway for the resume application.

The gateway owns the rules: where an object lives, how it is encoded,
which headers it carries and what the public URL looks like. The actual
bytes go through an ObjectStore, which may be MinIO, S3 or an in-memory
dictionary. This module doesn't know or care which.
"""

import asyncio
import functools
import inspect
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar
from uuid import uuid4

from .images import normalize_image
from .models import (
    ObjectMetadata,
    ObjectPath,
    StorageError,
    StorageErrorKind,
    UploadType,
    build_public_url,
)
from .policy import render_public_read_policy

logger = logging.getLogger(__name__)

T = TypeVar("T")

# LogRecord attributes cannot be passed through `extra`
_RESERVED_LOG_KEYS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class ObjectStore(Protocol):
    """
    Interface for a single bucket in an S3-compatible object store.

    Implementations raise StorageError with a classified kind; they never
    let backend-specific exceptions escape.
    """

    @property
    def bucket_name(self) -> str:
        ...

    async def bucket_exists(self) -> bool:
        ...

    async def create_bucket(self) -> None:
        ...

    async def put_bucket_policy(self, policy: str) -> None:
        ...

    async def put_object(self, key: str, data: bytes, metadata: ObjectMetadata) -> None:
        ...

    async def object_exists(self, key: str) -> bool:
        ...

    async def delete_object(self, key: str) -> None:
        ...

    async def list_objects(self, prefix: str) -> list[str]:
        """Return every key under prefix, recursively."""
        ...

    async def delete_objects(self, keys: list[str]) -> None:
        ...


# ---------------------------------------------------------------------------
# Operation logging
# ---------------------------------------------------------------------------

def _describe_arguments(
    signature: inspect.Signature, args: tuple, kwargs: dict
) -> dict[str, Any]:
    bound = signature.bind_partial(*args, **kwargs)
    context: dict[str, Any] = {}
    for name, value in bound.arguments.items():
        if name == "self":
            continue
        key = f"arg_{name}" if name in _RESERVED_LOG_KEYS else name
        if isinstance(value, (bytes, bytearray)):
            context[f"{key}_size_bytes"] = len(value)
        elif isinstance(value, Enum):
            context[key] = value.value
        else:
            context[key] = value
    return context


def log_storage_operation(
    operation: str,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Log start, success and failure of a gateway operation.

    Keeps the observability out of the operation bodies: arguments are
    logged as structured extra fields (raw bytes as their size), along
    with the duration and the error kind on failure.
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            context = {"operation": operation, **_describe_arguments(signature, args, kwargs)}
            logger.debug("Storage operation started", extra=context)
            started = time.perf_counter()

            try:
                result = await func(*args, **kwargs)
            except StorageError as e:
                logger.error(
                    "Storage operation failed",
                    extra={
                        **context,
                        "kind": e.kind.value,
                        "path": e.path,
                        "error": e.message,
                    }
                )
                raise

            logger.info(
                "Storage operation completed",
                extra={
                    **context,
                    "result": result.value if isinstance(result, Enum) else result,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                }
            )
            return result

        return wrapper

    return decorator


# ---------------------------------------------------------------------------
# Storage Service
# ---------------------------------------------------------------------------

class BucketStatus(Enum):
    """Outcome of startup provisioning."""
    SKIPPED = "skipped"
    CONNECTED = "connected"
    CREATED = "created"


class StorageService:
    """
    Category-aware upload, delete and folder delete on a single bucket.

    One instance is created at startup and shared by every request. It
    holds no mutable state: the bucket name, the public URL and the store
    handle never change after construction.
    """

    def __init__(
        self,
        store: ObjectStore,
        public_url: str,
        skip_bucket_check: bool = False,
    ) -> None:
        self._store = store
        self._public_url = public_url
        self._skip_bucket_check = skip_bucket_check

    @property
    def bucket_name(self) -> str:
        return self._store.bucket_name

    @log_storage_operation("ensure_bucket_ready")
    async def ensure_bucket_ready(self) -> BucketStatus:
        """
        Make sure the bucket exists and is publicly readable.

        Called once during startup. Any failure here is fatal: the
        application should not serve traffic without its bucket.
        An existing bucket is left untouched, policy included.
        """
        if self._skip_bucket_check:
            logger.warning(
                "Skipping the verification of whether the storage bucket exists",
                extra={"bucket": self.bucket_name}
            )
            return BucketStatus.SKIPPED

        try:
            exists = await self._store.bucket_exists()
        except StorageError as e:
            raise StorageError(
                f"There was an error while checking if the storage bucket "
                f"'{self.bucket_name}' exists: {e.message}",
                kind=e.kind,
            ) from e

        if exists:
            return BucketStatus.CONNECTED

        try:
            await self._store.create_bucket()
        except StorageError as e:
            raise StorageError(
                f"There was an error while creating the storage bucket "
                f"'{self.bucket_name}': {e.message}",
                kind=e.kind,
            ) from e

        try:
            await self._store.put_bucket_policy(
                render_public_read_policy(self.bucket_name)
            )
        except StorageError as e:
            raise StorageError(
                f"There was an error while applying the policy to the storage "
                f"bucket '{self.bucket_name}': {e.message}",
                kind=e.kind,
            ) from e

        return BucketStatus.CREATED

    async def bucket_exists(self) -> bool:
        """Cheap reachability probe for readiness checks."""
        return await self._store.bucket_exists()

    @log_storage_operation("upload")
    async def upload(
        self,
        owner_id: str,
        category: UploadType | str,
        data: bytes,
        name: Optional[str] = None,
    ) -> str:
        """
        Store an object and return its public URL.

        Pictures and previews are normalized to a bounded JPEG first;
        resumes are stored exactly as given, with a download disposition
        carrying the original name. The name defaults to a fresh id.
        """
        path = ObjectPath(
            owner_id=owner_id,
            category=UploadType.parse(category),
            name=name or uuid4().hex,
        )

        if path.category.is_image:
            # Pillow is CPU bound; keep it off the event loop
            data = await asyncio.to_thread(normalize_image, data)

        try:
            await self._store.put_object(path.key, data, ObjectMetadata.for_path(path))
        except StorageError as e:
            raise StorageError(
                f"There was an error while uploading the file to '{path}': {e.message}",
                kind=e.kind,
                path=path.key,
            ) from e

        await self._verify_upload(path)

        return build_public_url(self._public_url, path)

    async def _verify_upload(self, path: ObjectPath) -> None:
        """Re-check the written object. Informational only, never fails the upload."""
        try:
            exists = await self._store.object_exists(path.key)
        except StorageError as e:
            logger.warning(
                "Could not verify uploaded object",
                extra={"path": path.key, "kind": e.kind.value, "error": e.message}
            )
            return

        if not exists:
            logger.warning(
                "Uploaded object not visible after write",
                extra={"path": path.key}
            )

    @log_storage_operation("delete")
    async def delete(
        self,
        owner_id: str,
        category: UploadType | str,
        name: str,
    ) -> None:
        """
        Remove the object at the derived path.

        Raises StorageError(NOT_FOUND) if nothing is stored there.
        S3 deletes succeed silently on missing keys, so existence is
        checked first.
        """
        path = ObjectPath(
            owner_id=owner_id,
            category=UploadType.parse(category),
            name=name,
        )

        try:
            exists = await self._store.object_exists(path.key)
            if exists:
                await self._store.delete_object(path.key)
        except StorageError as e:
            raise StorageError(
                f"There was an error while deleting the document at the "
                f"specified path: {path}. {e.message}",
                kind=e.kind,
                path=path.key,
            ) from e

        if not exists:
            raise StorageError(
                f"There is no document at the specified path: {path}",
                kind=StorageErrorKind.NOT_FOUND,
                path=path.key,
            )

    @log_storage_operation("delete_folder")
    async def delete_folder(self, prefix: str) -> int:
        """
        Remove every object under prefix. Returns how many were removed.

        Listing and removal are two separate calls and are not atomic:
        an object written under the prefix after the listing survives.
        Callers that need a clean folder must stop writers first.
        """
        if not prefix or not prefix.strip("/"):
            raise StorageError(
                "Refusing to delete with an empty prefix",
                kind=StorageErrorKind.INVALID_REQUEST,
            )

        try:
            keys = await self._store.list_objects(prefix)
        except StorageError as e:
            raise StorageError(
                f"There was an error while listing the folder '{prefix}' in "
                f"bucket '{self.bucket_name}': {e.message}",
                kind=e.kind,
                path=prefix,
            ) from e

        if not keys:
            return 0

        try:
            await self._store.delete_objects(keys)
        except StorageError as e:
            raise StorageError(
                f"There was an error while deleting the folder at the specified "
                f"path: {self.bucket_name}/{prefix}. {e.message}",
                kind=e.kind,
                path=prefix,
            ) from e

        return len(keys)
