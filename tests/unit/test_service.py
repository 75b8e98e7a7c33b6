"""
Unit tests for the storage gateway.

The gateway runs against the in-memory store for behaviour, and against
AsyncMock stores where a backend failure has to be simulated.
"""

import json
import logging
from unittest.mock import AsyncMock

import pytest

from resume_storage.core.storage.models import StorageError, StorageErrorKind, UploadType
from resume_storage.core.storage.service import BucketStatus, StorageService
from resume_storage.infrastructure.storage.client import InMemoryObjectStore
from tests.conftest import PUBLIC_URL, image_size, make_image

PDF_BYTES = b"%PDF-1.7\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n"


def failing_store(**failures: StorageError) -> AsyncMock:
    """An ObjectStore mock where the named methods raise."""
    store = AsyncMock()
    store.bucket_name = "default"
    store.bucket_exists.return_value = True
    store.object_exists.return_value = True
    store.list_objects.return_value = []
    for method, error in failures.items():
        getattr(store, method).side_effect = error
    return store


# ---------------------------------------------------------------------------
# Bucket Provisioning Tests
# ---------------------------------------------------------------------------

class TestEnsureBucketReady:
    """Tests for startup provisioning."""

    @pytest.mark.asyncio
    async def test_missing_bucket_is_created_with_policy(self):
        store = InMemoryObjectStore(bucket_name="resumes")
        service = StorageService(store=store, public_url=PUBLIC_URL)

        status = await service.ensure_bucket_ready()

        assert status is BucketStatus.CREATED
        assert await store.bucket_exists()
        resources = json.loads(store.policy)["Statement"][0]["Resource"]
        assert "arn:aws:s3:::resumes/*/pictures/*" in resources

    @pytest.mark.asyncio
    async def test_existing_bucket_is_left_alone(self, store, service):
        status = await service.ensure_bucket_ready()

        assert status is BucketStatus.CONNECTED
        assert store.policy is None

    @pytest.mark.asyncio
    async def test_skip_flag_avoids_the_store(self, caplog):
        store = failing_store()
        service = StorageService(store=store, public_url=PUBLIC_URL, skip_bucket_check=True)

        with caplog.at_level(logging.WARNING):
            status = await service.ensure_bucket_ready()

        assert status is BucketStatus.SKIPPED
        store.bucket_exists.assert_not_awaited()
        assert "Skipping" in caplog.text

    @pytest.mark.asyncio
    async def test_check_failure_is_fatal(self):
        store = failing_store(
            bucket_exists=StorageError("connection refused", kind=StorageErrorKind.NETWORK)
        )
        service = StorageService(store=store, public_url=PUBLIC_URL)

        with pytest.raises(StorageError, match="checking if the storage bucket") as exc_info:
            await service.ensure_bucket_ready()

        assert exc_info.value.kind is StorageErrorKind.NETWORK

    @pytest.mark.asyncio
    async def test_creation_failure_is_fatal(self):
        store = failing_store(
            create_bucket=StorageError("denied", kind=StorageErrorKind.POLICY_DENIED)
        )
        store.bucket_exists.return_value = False
        service = StorageService(store=store, public_url=PUBLIC_URL)

        with pytest.raises(StorageError, match="creating the storage bucket"):
            await service.ensure_bucket_ready()

        store.put_bucket_policy.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_policy_failure_is_fatal(self):
        store = failing_store(put_bucket_policy=StorageError("boom"))
        store.bucket_exists.return_value = False
        service = StorageService(store=store, public_url=PUBLIC_URL)

        with pytest.raises(StorageError, match="applying the policy"):
            await service.ensure_bucket_ready()


# ---------------------------------------------------------------------------
# Upload Tests
# ---------------------------------------------------------------------------

class TestUpload:
    """Tests for category-aware uploads."""

    @pytest.mark.asyncio
    async def test_picture_is_resized_and_stored_as_jpeg(self, store, service):
        url = await service.upload("u1", "pictures", make_image(2000, 1000), "avatar")

        assert url == f"{PUBLIC_URL}/u1/pictures/avatar.jpg"
        stored = store.get_object("u1/pictures/avatar.jpg")
        assert image_size(stored.data) == (600, 300)
        assert stored.metadata.content_type == "image/jpeg"
        assert stored.metadata.content_disposition is None

    @pytest.mark.asyncio
    async def test_small_preview_keeps_its_size(self, store, service):
        await service.upload("u1", UploadType.PREVIEWS, make_image(300, 400, fmt="PNG"), "r1")

        stored = store.get_object("u1/previews/r1.jpg")
        assert image_size(stored.data) == (300, 400)

    @pytest.mark.asyncio
    async def test_resume_is_stored_byte_for_byte(self, store, service):
        url = await service.upload("u1", "resumes", PDF_BYTES, "My Resume")

        assert url == f"{PUBLIC_URL}/u1/resumes/My%20Resume.pdf"
        stored = store.get_object("u1/resumes/My%20Resume.pdf")
        assert stored.data == PDF_BYTES
        assert stored.metadata.content_type == "application/pdf"
        assert "My%20Resume.pdf" in stored.metadata.content_disposition

    @pytest.mark.asyncio
    async def test_missing_name_gets_generated_id(self, store, service):
        url = await service.upload("u1", "resumes", PDF_BYTES)

        keys = await store.list_objects("u1/resumes/")
        assert len(keys) == 1
        assert url.endswith(keys[0])

    @pytest.mark.asyncio
    async def test_unknown_category_is_rejected(self, store, service):
        with pytest.raises(StorageError) as exc_info:
            await service.upload("u1", "videos", PDF_BYTES, "clip")

        assert exc_info.value.kind is StorageErrorKind.INVALID_REQUEST
        assert await store.list_objects("u1/") == []

    @pytest.mark.asyncio
    async def test_broken_image_fails_the_upload(self, store, service):
        with pytest.raises(StorageError) as exc_info:
            await service.upload("u1", "pictures", b"not an image", "avatar")

        assert exc_info.value.kind is StorageErrorKind.INVALID_CONTENT
        assert not await store.object_exists("u1/pictures/avatar.jpg")

    @pytest.mark.asyncio
    async def test_write_failure_keeps_kind_and_path(self):
        store = failing_store(
            put_object=StorageError("bucket full", kind=StorageErrorKind.QUOTA)
        )
        service = StorageService(store=store, public_url=PUBLIC_URL)

        with pytest.raises(StorageError, match="uploading the file") as exc_info:
            await service.upload("u1", "resumes", PDF_BYTES, "cv")

        assert exc_info.value.kind is StorageErrorKind.QUOTA
        assert exc_info.value.path == "u1/resumes/cv.pdf"

    @pytest.mark.asyncio
    async def test_failed_verification_does_not_fail_upload(self, caplog):
        store = failing_store(
            object_exists=StorageError("timeout", kind=StorageErrorKind.NETWORK)
        )
        service = StorageService(store=store, public_url=PUBLIC_URL)

        with caplog.at_level(logging.WARNING):
            url = await service.upload("u1", "resumes", PDF_BYTES, "cv")

        assert url == f"{PUBLIC_URL}/u1/resumes/cv.pdf"
        assert "Could not verify" in caplog.text

    @pytest.mark.asyncio
    async def test_operation_is_logged_with_context(self, service, caplog):
        with caplog.at_level(logging.INFO):
            await service.upload("u1", "resumes", PDF_BYTES, "cv")

        record = next(r for r in caplog.records if r.getMessage() == "Storage operation completed")
        assert record.operation == "upload"
        assert record.owner_id == "u1"
        assert record.arg_name == "cv"
        assert record.data_size_bytes == len(PDF_BYTES)


# ---------------------------------------------------------------------------
# Delete Tests
# ---------------------------------------------------------------------------

class TestDelete:
    """Tests for single object deletion."""

    @pytest.mark.asyncio
    async def test_removes_the_object(self, store, service):
        await service.upload("u1", "resumes", PDF_BYTES, "cv")

        await service.delete("u1", "resumes", "cv")

        assert not await store.object_exists("u1/resumes/cv.pdf")

    @pytest.mark.asyncio
    async def test_missing_object_raises_not_found(self, service):
        with pytest.raises(StorageError, match="u1/pictures/ghost.jpg") as exc_info:
            await service.delete("u1", "pictures", "ghost")

        assert exc_info.value.kind is StorageErrorKind.NOT_FOUND
        assert exc_info.value.path == "u1/pictures/ghost.jpg"

    @pytest.mark.asyncio
    async def test_backend_failure_names_the_path(self):
        store = failing_store(
            delete_object=StorageError("denied", kind=StorageErrorKind.POLICY_DENIED)
        )
        service = StorageService(store=store, public_url=PUBLIC_URL)

        with pytest.raises(StorageError, match="u1/resumes/cv.pdf") as exc_info:
            await service.delete("u1", "resumes", "cv")

        assert exc_info.value.kind is StorageErrorKind.POLICY_DENIED


# ---------------------------------------------------------------------------
# Folder Delete Tests
# ---------------------------------------------------------------------------

class TestDeleteFolder:
    """Tests for prefix deletion."""

    @pytest.mark.asyncio
    async def test_removes_everything_under_prefix(self, store, service):
        await service.upload("u1", "resumes", PDF_BYTES, "cv")
        await service.upload("u1", "pictures", make_image(50, 50), "avatar")
        await service.upload("u2", "resumes", PDF_BYTES, "cv")

        deleted = await service.delete_folder("u1/")

        assert deleted == 2
        assert await store.list_objects("u1/") == []
        assert await store.list_objects("u2/") == ["u2/resumes/cv.pdf"]

    @pytest.mark.asyncio
    async def test_empty_folder_issues_no_delete(self):
        store = failing_store()
        service = StorageService(store=store, public_url=PUBLIC_URL)

        assert await service.delete_folder("u1/") == 0
        store.delete_objects.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deletes_exactly_the_listed_keys(self):
        store = failing_store()
        store.list_objects.return_value = ["u1/resumes/a.pdf", "u1/resumes/b.pdf"]
        service = StorageService(store=store, public_url=PUBLIC_URL)

        await service.delete_folder("u1/resumes/")

        store.delete_objects.assert_awaited_once_with(["u1/resumes/a.pdf", "u1/resumes/b.pdf"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("prefix", ["", "/", "//"])
    async def test_empty_prefix_is_refused(self, service, prefix):
        with pytest.raises(StorageError) as exc_info:
            await service.delete_folder(prefix)

        assert exc_info.value.kind is StorageErrorKind.INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_bulk_failure_names_bucket_and_prefix(self):
        store = failing_store(delete_objects=StorageError("boom"))
        store.list_objects.return_value = ["u1/resumes/a.pdf"]
        service = StorageService(store=store, public_url=PUBLIC_URL)

        with pytest.raises(StorageError, match="default/u1/"):
            await service.delete_folder("u1/")
