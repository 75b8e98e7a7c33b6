"""
Object store adapters for resume files.

Supports any S3-compatible store (MinIO in development, S3 or R2 in
production) with mock mode for local development.

Mock mode keeps objects in memory, enabling API testing without
provisioning actual object storage.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from ...core.storage.models import ObjectMetadata, StorageError, StorageErrorKind
from ...core.storage.service import ObjectStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# S3 DeleteObjects accepts at most this many keys per request
DELETE_BATCH_SIZE = 1000

NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}
DENIED_CODES = {
    "403",
    "AccessDenied",
    "AllAccessDisabled",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "AccountProblem",
}
QUOTA_CODES = {
    "QuotaExceeded",
    "SlowDown",
    "EntityTooLarge",
    "XMinioStorageFull",
    "XMinioAdminBucketQuotaExceeded",
    "TooManyBuckets",
}


@dataclass
class StorageConfig:
    """Connection settings for an S3-compatible object store."""
    endpoint: str
    port: int
    access_key: str
    secret_key: str
    bucket_name: str
    region: str = "us-east-1"
    use_ssl: bool = False

    @property
    def endpoint_url(self) -> str:
        scheme = "https" if self.use_ssl else "http"
        return f"{scheme}://{self.endpoint}:{self.port}"


def classify_error(error: Exception) -> StorageErrorKind:
    """Map a boto3/botocore exception onto a StorageErrorKind."""
    if isinstance(error, ClientError):
        details = error.response.get("Error", {})
        code = str(details.get("Code", ""))
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")

        if code in NOT_FOUND_CODES or status == 404:
            return StorageErrorKind.NOT_FOUND
        if code in DENIED_CODES or status == 403:
            return StorageErrorKind.POLICY_DENIED
        if code in QUOTA_CODES or status in (413, 503, 507):
            return StorageErrorKind.QUOTA
        return StorageErrorKind.UNKNOWN

    if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
        return StorageErrorKind.POLICY_DENIED
    if isinstance(error, (BotoConnectionError, HTTPClientError)):
        return StorageErrorKind.NETWORK
    return StorageErrorKind.UNKNOWN


class S3ObjectStore:
    """
    A single bucket in an S3-compatible object store.

    Uses boto3 with path-style addressing so MinIO works without DNS
    tricks. The boto3 client is created once and shared; it is safe to
    use from multiple threads.

    boto3 is synchronous, so every call runs in a worker thread to keep
    the event loop free.
    """

    def __init__(self, config: StorageConfig) -> None:
        self._config = config

        # MinIO requires v4 signatures and path-style URLs
        boto_config = Config(
            signature_version='s3v4',
            s3={'addressing_style': 'path'},
        )

        self._s3_client = boto3.client(
            's3',
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 storage client",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
            }
        )

    @property
    def bucket_name(self) -> str:
        return self._config.bucket_name

    async def _call(
        self,
        description: str,
        func: Callable[..., T],
        *args: Any,
        path: Optional[str] = None,
        **kwargs: Any,
    ) -> T:
        """Run a blocking boto3 call in a thread and classify its failure."""
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(
                f"{description} failed: {e}",
                kind=classify_error(e),
                path=path,
            ) from e

    async def bucket_exists(self) -> bool:
        try:
            await self._call(
                "Bucket check",
                self._s3_client.head_bucket,
                Bucket=self.bucket_name,
            )
        except StorageError as e:
            if e.kind is StorageErrorKind.NOT_FOUND:
                return False
            raise
        return True

    async def create_bucket(self) -> None:
        params: dict[str, Any] = {"Bucket": self.bucket_name}
        # us-east-1 is the implicit default and must not be sent explicitly
        if self._config.region and self._config.region != "us-east-1":
            params["CreateBucketConfiguration"] = {
                "LocationConstraint": self._config.region,
            }

        await self._call("Bucket creation", self._s3_client.create_bucket, **params)

    async def put_bucket_policy(self, policy: str) -> None:
        await self._call(
            "Bucket policy update",
            self._s3_client.put_bucket_policy,
            Bucket=self.bucket_name,
            Policy=policy,
        )

    async def put_object(self, key: str, data: bytes, metadata: ObjectMetadata) -> None:
        params: dict[str, Any] = {
            "Bucket": self.bucket_name,
            "Key": key,
            "Body": data,
            "ContentType": metadata.content_type,
        }
        if metadata.content_disposition:
            params["ContentDisposition"] = metadata.content_disposition

        await self._call("Upload", self._s3_client.put_object, path=key, **params)

    async def object_exists(self, key: str) -> bool:
        try:
            await self._call(
                "Object check",
                self._s3_client.head_object,
                path=key,
                Bucket=self.bucket_name,
                Key=key,
            )
        except StorageError as e:
            if e.kind is StorageErrorKind.NOT_FOUND:
                return False
            raise
        return True

    async def delete_object(self, key: str) -> None:
        await self._call(
            "Delete",
            self._s3_client.delete_object,
            path=key,
            Bucket=self.bucket_name,
            Key=key,
        )

    def _list_keys(self, prefix: str) -> list[str]:
        paginator = self._s3_client.get_paginator("list_objects_v2")
        keys: list[str] = []
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
            keys.extend(obj["Key"] for obj in page.get("Contents", []))
        return keys

    async def list_objects(self, prefix: str) -> list[str]:
        return await self._call("Listing", self._list_keys, prefix, path=prefix)

    async def delete_objects(self, keys: list[str]) -> None:
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start:start + DELETE_BATCH_SIZE]
            response = await self._call(
                "Bulk delete",
                self._s3_client.delete_objects,
                Bucket=self.bucket_name,
                Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
            )

            # DeleteObjects reports per-key failures in a 200 response
            errors = response.get("Errors", [])
            if errors:
                first = errors[0]
                code = str(first.get("Code", ""))
                if code in NOT_FOUND_CODES:
                    kind = StorageErrorKind.NOT_FOUND
                elif code in DENIED_CODES:
                    kind = StorageErrorKind.POLICY_DENIED
                else:
                    kind = StorageErrorKind.UNKNOWN
                raise StorageError(
                    f"Bulk delete failed for {len(errors)} object(s), first "
                    f"'{first.get('Key')}': {first.get('Message', code)}",
                    kind=kind,
                    path=first.get("Key"),
                )


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

@dataclass
class StoredObject:
    """An object held by the in-memory store."""
    data: bytes
    metadata: ObjectMetadata


class InMemoryObjectStore:
    """
    In-memory object store for local development.

    Behaves like a real bucket where it matters: operations on a bucket
    that was never created fail with NOT_FOUND, and deleting a missing
    key is silently accepted, as S3 does.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self, bucket_name: str = "default", bucket_exists: bool = False) -> None:
        self._bucket_name = bucket_name
        self._bucket_created = bucket_exists
        self._objects: dict[str, StoredObject] = {}
        self.policy: Optional[str] = None
        logger.info("Initialized mock storage client (in-memory)")

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    def _require_bucket(self) -> None:
        if not self._bucket_created:
            raise StorageError(
                f"Bucket not found: {self._bucket_name}",
                kind=StorageErrorKind.NOT_FOUND,
            )

    async def bucket_exists(self) -> bool:
        return self._bucket_created

    async def create_bucket(self) -> None:
        self._bucket_created = True

    async def put_bucket_policy(self, policy: str) -> None:
        self._require_bucket()
        self.policy = policy

    async def put_object(self, key: str, data: bytes, metadata: ObjectMetadata) -> None:
        self._require_bucket()
        self._objects[key] = StoredObject(data=bytes(data), metadata=metadata)

    async def object_exists(self, key: str) -> bool:
        self._require_bucket()
        return key in self._objects

    async def delete_object(self, key: str) -> None:
        self._require_bucket()
        self._objects.pop(key, None)

    async def list_objects(self, prefix: str) -> list[str]:
        self._require_bucket()
        return sorted(key for key in self._objects if key.startswith(prefix))

    async def delete_objects(self, keys: list[str]) -> None:
        self._require_bucket()
        for key in keys:
            self._objects.pop(key, None)

    def get_object(self, key: str) -> StoredObject:
        """Retrieve an object for inspection."""
        if key not in self._objects:
            raise StorageError(
                f"Object not found: {key}",
                kind=StorageErrorKind.NOT_FOUND,
                path=key,
            )
        return self._objects[key]


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_object_store(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> ObjectStore:
    """
    Create an object store based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory store

    Returns:
        ObjectStore implementation (S3 or in-memory)
    """
    if mock_mode:
        bucket_name = config.bucket_name if config else "default"
        return InMemoryObjectStore(bucket_name=bucket_name)

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3ObjectStore(config)
