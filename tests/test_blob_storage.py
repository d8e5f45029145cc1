"""Tests for the local and S3 blob sinks."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from app.services import blob_storage
from app.services.blob_storage import (
    LocalBlobSink,
    S3BlobSink,
    get_blob_sink,
    safe_filename,
)
from app.utils.errors import BlobStorageError


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("notes.pdf", "notes.pdf"),
        ("week 1 notes.pdf", "week_1_notes.pdf"),
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\scan.png", "scan.png"),
        ("...", "file"),
    ],
)
def test_safe_filename(raw, expected):
    assert safe_filename(raw) == expected


class TestLocalBlobSink:
    async def test_put_writes_file_and_returns_url(self, tmp_path):
        sink = LocalBlobSink(root=tmp_path, base_url="https://cdn.example/")
        blob = await sink.put("notes.pdf", b"%PDF", "application/pdf")

        assert blob.key.endswith("/notes.pdf")
        assert blob.url == f"https://cdn.example/api/v1/files/{blob.key}"
        assert (tmp_path / blob.key).read_bytes() == b"%PDF"

    async def test_default_url_is_host_relative(self, tmp_path):
        sink = LocalBlobSink(root=tmp_path, base_url="")
        blob = await sink.put("notes.pdf", b"%PDF", "application/pdf")

        assert blob.url == f"/api/v1/files/{blob.key}"

    def test_missing_public_base_url_is_logged(self, caplog, monkeypatch):
        monkeypatch.setattr(blob_storage, "BLOB_BACKEND", "local")
        monkeypatch.setattr(blob_storage, "PUBLIC_BASE_URL", "")
        get_blob_sink.cache_clear()
        try:
            sink = get_blob_sink()
        finally:
            get_blob_sink.cache_clear()

        assert isinstance(sink, LocalBlobSink)
        assert "PUBLIC_BASE_URL is not set" in caplog.text

    async def test_keys_are_unique(self, tmp_path):
        sink = LocalBlobSink(root=tmp_path)
        first = await sink.put("same.pdf", b"1", "application/pdf")
        second = await sink.put("same.pdf", b"2", "application/pdf")
        assert first.key != second.key

    async def test_delete_removes_file(self, tmp_path):
        sink = LocalBlobSink(root=tmp_path)
        blob = await sink.put("notes.pdf", b"%PDF", "application/pdf")
        await sink.delete(blob.key)
        assert not (tmp_path / blob.key).exists()

    async def test_delete_missing_is_noop(self, tmp_path):
        await LocalBlobSink(root=tmp_path).delete("nope/missing.pdf")

    def test_resolve_refuses_traversal(self, tmp_path):
        sink = LocalBlobSink(root=tmp_path / "blobs")
        with pytest.raises(BlobStorageError):
            sink.resolve("../outside.txt")


class TestS3BlobSink:
    async def test_put_object(self):
        s3 = MagicMock()
        sink = S3BlobSink("library", region="eu-west-1", client=s3)

        blob = await sink.put("notes.pdf", b"%PDF", "application/pdf")

        s3.put_object.assert_called_once_with(
            Bucket="library",
            Key=blob.key,
            Body=b"%PDF",
            ContentType="application/pdf",
        )
        assert blob.url == (
            f"https://library.s3.eu-west-1.amazonaws.com/{blob.key}"
        )

    async def test_public_url_override(self):
        sink = S3BlobSink(
            "library", public_url="https://files.uni.example/", client=MagicMock()
        )
        blob = await sink.put("a.png", b"x", "image/png")
        assert blob.url == f"https://files.uni.example/{blob.key}"

    async def test_client_error_becomes_blob_storage_error(self):
        s3 = MagicMock()
        s3.put_object.side_effect = ClientError(
            {"Error": {"Code": "503", "Message": "Slow Down"}}, "PutObject"
        )
        sink = S3BlobSink("library", client=s3)
        with pytest.raises(BlobStorageError):
            await sink.put("a.png", b"x", "image/png")

    async def test_delete_object(self):
        s3 = MagicMock()
        sink = S3BlobSink("library", client=s3)
        await sink.delete("k/a.png")
        s3.delete_object.assert_called_once_with(Bucket="library", Key="k/a.png")
