"""
Resume object storage logic.

Contains the storage gateway, domain models, image normalization and
the bucket policy.
"""

from .models import (
    ObjectMetadata,
    ObjectPath,
    StorageError,
    StorageErrorKind,
    UploadType,
    build_public_url,
    decode_name,
    encode_name,
)
from .service import BucketStatus, ObjectStore, StorageService

__all__ = [
    "ObjectMetadata",
    "ObjectPath",
    "StorageError",
    "StorageErrorKind",
    "UploadType",
    "build_public_url",
    "decode_name",
    "encode_name",
    "BucketStatus",
    "ObjectStore",
    "StorageService",
]
