"""
Blob storage backends for uploaded library files.

A blob sink stores the raw bytes of an upload and hands back a durable,
publicly retrievable URL. Two backends are provided:

- ``LocalBlobSink`` writes under ``BLOB_STORAGE_DIR`` and relies on the
  ``/api/v1/files`` router to serve the files back.
- ``S3BlobSink`` writes to an S3 (or S3-compatible) bucket via boto3.

The active backend is chosen with ``BLOB_BACKEND`` and injected into routes
through the ``get_blob_sink`` dependency.
"""

import logging
import os
import re
import uuid
from contextlib import suppress
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from app.utils.errors import BlobStorageError

logger = logging.getLogger(__name__)

BLOB_BACKEND = os.getenv("BLOB_BACKEND", "local").lower()
BLOB_STORAGE_DIR = Path(os.getenv("BLOB_STORAGE_DIR", "media"))
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")
FILES_ROUTE = "/api/v1/files"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    """Reduce a client supplied filename to a storage-safe basename."""
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "file"


def make_blob_key(filename: str) -> str:
    return f"{uuid.uuid4().hex}/{safe_filename(filename)}"


@dataclass(frozen=True)
class StoredBlob:
    key: str
    url: str


class BlobSink:
    """Interface for blob storage backends."""

    async def put(
        self, filename: str, content: bytes, content_type: str
    ) -> StoredBlob:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError


class LocalBlobSink(BlobSink):
    """Stores blobs on the local filesystem."""

    def __init__(self, root: Path = BLOB_STORAGE_DIR, base_url: str = PUBLIC_BASE_URL):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def url_for(self, key: str) -> str:
        return f"{self.base_url}{FILES_ROUTE}/{key}"

    def resolve(self, key: str) -> Path:
        """Map a key to a path, refusing anything outside the storage root."""
        root = self.root.resolve()
        path = (self.root / key).resolve()
        if root != path and root not in path.parents:
            raise BlobStorageError(f"Blob key escapes storage root: {key}")
        return path

    async def put(
        self, filename: str, content: bytes, content_type: str
    ) -> StoredBlob:
        key = make_blob_key(filename)
        path = self.resolve(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as exc:
            logger.error(f"Failed to save blob {path}: {exc}")
            raise BlobStorageError("Failed to save file") from exc
        logger.info(f"Blob saved successfully: {path} ({len(content)} bytes)")
        return StoredBlob(key=key, url=self.url_for(key))

    async def delete(self, key: str) -> None:
        path = self.resolve(key)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            logger.warning(f"Blob already absent: {key}")
            return
        except OSError as exc:
            raise BlobStorageError(f"Failed to delete blob {key}") from exc
        # Drop the per-upload directory once it is empty
        with suppress(OSError):
            path.parent.rmdir()
        logger.info(f"Deleted blob: {key}")


class S3BlobSink(BlobSink):
    """Stores blobs in an S3 bucket exposed through a public base URL."""

    def __init__(
        self,
        bucket: str,
        region: Optional[str] = None,
        public_url: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.region = region
        self.client = client or boto3.client("s3", region_name=region)
        if public_url:
            self.public_url = public_url.rstrip("/")
        elif region:
            self.public_url = f"https://{bucket}.s3.{region}.amazonaws.com"
        else:
            self.public_url = f"https://{bucket}.s3.amazonaws.com"

    async def put(
        self, filename: str, content: bytes, content_type: str
    ) -> StoredBlob:
        key = make_blob_key(filename)
        try:
            await run_in_threadpool(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error(f"Error uploading blob {key} to {self.bucket}: {exc}")
            raise BlobStorageError("Failed to upload file to storage") from exc
        logger.info(f"Uploaded blob: s3://{self.bucket}/{key}")
        return StoredBlob(key=key, url=f"{self.public_url}/{key}")

    async def delete(self, key: str) -> None:
        try:
            await run_in_threadpool(
                self.client.delete_object, Bucket=self.bucket, Key=key
            )
        except (BotoCoreError, ClientError) as exc:
            raise BlobStorageError(f"Failed to delete blob {key}") from exc
        logger.info(f"Deleted blob: s3://{self.bucket}/{key}")


@lru_cache(maxsize=1)
def get_blob_sink() -> BlobSink:
    """FastAPI dependency returning the configured blob sink."""
    if BLOB_BACKEND == "s3":
        bucket = os.getenv("S3_BUCKET_NAME")
        if not bucket:
            raise BlobStorageError("S3_BUCKET_NAME is not configured")
        return S3BlobSink(
            bucket=bucket,
            region=os.getenv("AWS_REGION"),
            public_url=os.getenv("S3_PUBLIC_URL"),
        )
    if not PUBLIC_BASE_URL:
        logger.warning(
            "PUBLIC_BASE_URL is not set; local blob URLs will be host-relative"
        )
    return LocalBlobSink()
