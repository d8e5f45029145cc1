"""Tests for the upload pipeline and its compensation on partial failure."""

import logging
from unittest.mock import AsyncMock

import pytest

from app.repositories.resource_repo import ResourceRepository
from app.services.blob_storage import BlobSink, StoredBlob
from app.services.upload_service import UploadService
from app.utils.errors import BlobStorageError, StorageError, ValidationError

FIELDS = {
    "title": "Calculus Notes",
    "description": None,
    "category": "Notes",
    "course": "B.Tech",
    "specialization": "CSE",
}


class RecordingSink(BlobSink):
    def __init__(self, fail_delete=False, fail_put=False):
        self.stored = {}
        self.deleted = []
        self.fail_delete = fail_delete
        self.fail_put = fail_put

    async def put(self, filename, content, content_type):
        if self.fail_put:
            raise BlobStorageError("bucket unavailable")
        key = f"k{len(self.stored) + 1}/{filename}"
        self.stored[key] = content
        return StoredBlob(key=key, url=f"https://blobs.example/{key}")

    async def delete(self, key):
        if self.fail_delete:
            raise BlobStorageError("delete failed")
        self.deleted.append(key)
        self.stored.pop(key, None)


def failing_repo():
    repo = AsyncMock(spec=ResourceRepository)
    repo.create.side_effect = StorageError("insert failed")
    return repo


async def test_successful_upload_links_blob_url(session):
    sink = RecordingSink()
    service = UploadService(ResourceRepository(session), sink)

    record = await service.upload(
        "calc.pdf", b"%PDF-1.4 data", "application/pdf", FIELDS
    )

    assert record.id is not None
    assert record.file_url == "https://blobs.example/k1/calc.pdf"
    assert record.file_type == "application/pdf"
    assert record.course == "B.Tech"
    assert list(sink.stored) == ["k1/calc.pdf"]


async def test_validation_happens_before_blob_write():
    sink = RecordingSink()
    service = UploadService(failing_repo(), sink)

    with pytest.raises(ValidationError):
        await service.upload(
            "calc.pdf", b"data", "application/pdf", {**FIELDS, "title": "ab"}
        )
    assert sink.stored == {}


async def test_failed_insert_removes_blob():
    sink = RecordingSink()
    service = UploadService(failing_repo(), sink)

    with pytest.raises(StorageError, match="insert failed"):
        await service.upload("calc.pdf", b"data", "application/pdf", FIELDS)

    assert sink.deleted == ["k1/calc.pdf"]
    assert sink.stored == {}


async def test_failed_cleanup_is_logged_and_original_error_kept(caplog):
    sink = RecordingSink(fail_delete=True)
    service = UploadService(failing_repo(), sink)

    with caplog.at_level(logging.ERROR, logger="app.services.upload_service"):
        with pytest.raises(StorageError, match="insert failed"):
            await service.upload(
                "calc.pdf", b"data", "application/pdf", FIELDS
            )

    assert "k1/calc.pdf" in caplog.text
    assert "k1/calc.pdf" in sink.stored


async def test_blob_failure_creates_no_record():
    repo = AsyncMock(spec=ResourceRepository)
    service = UploadService(repo, RecordingSink(fail_put=True))

    with pytest.raises(BlobStorageError):
        await service.upload("calc.pdf", b"data", "application/pdf", FIELDS)
    repo.create.assert_not_called()


async def test_custom_size_ceiling():
    service = UploadService(failing_repo(), RecordingSink(), max_size=4)
    with pytest.raises(ValidationError):
        await service.upload("calc.pdf", b"12345", "application/pdf", FIELDS)


async def test_upload_api_storage_failure_is_generic(client, test_app):
    from app.services.blob_storage import get_blob_sink

    test_app.dependency_overrides[get_blob_sink] = (
        lambda: RecordingSink(fail_put=True)
    )
    r = await client.post(
        "/api/v1/upload",
        data={k: v for k, v in FIELDS.items() if v},
        files={"file": ("calc.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "Internal Server Error"
    assert "bucket unavailable" not in r.text
