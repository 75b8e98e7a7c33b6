"""
Shared fixtures.

Nothing here talks to a real object store: the gateway runs against the
in-memory store, and the S3 adapter against a mocked boto3 client.
"""

import io

import pytest
from PIL import Image

from resume_storage.core.storage.service import StorageService
from resume_storage.infrastructure.storage.client import InMemoryObjectStore

PUBLIC_URL = "http://localhost:9000/default"


def make_image(width: int, height: int, fmt: str = "JPEG", mode: str = "RGB") -> bytes:
    """Encode a solid-colour image of the given size."""
    color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
    image = Image.new(mode, (width, height), color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def image_size(data: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(data)) as image:
        return image.size


@pytest.fixture
def store() -> InMemoryObjectStore:
    return InMemoryObjectStore(bucket_name="default", bucket_exists=True)


@pytest.fixture
def service(store: InMemoryObjectStore) -> StorageService:
    return StorageService(store=store, public_url=PUBLIC_URL)
