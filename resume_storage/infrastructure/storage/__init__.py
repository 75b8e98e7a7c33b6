"""
Object storage integration for resume files.

Supports MinIO, S3 and other S3-compatible stores via boto3.
Includes mock mode for local development without credentials.
"""

from .client import (
    InMemoryObjectStore,
    S3ObjectStore,
    StorageConfig,
    StoredObject,
    create_object_store,
)

__all__ = [
    "InMemoryObjectStore",
    "S3ObjectStore",
    "StorageConfig",
    "StoredObject",
    "create_object_store",
]
