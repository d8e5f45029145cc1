"""
Upload pipeline for library resources.

Runs file admission and metadata validation, writes the file to the blob
sink and records the resource. The blob write and the record insert are not
one transaction: when the insert fails the freshly written blob is deleted
again on a best-effort basis so that no unreferenced file is left behind.
"""

import logging
from typing import Mapping, Optional

from app.models.persisted_library import ResourceRecord
from app.repositories.resource_repo import ResourceRepository
from app.services.blob_storage import BlobSink
from app.utils.errors import BlobStorageError, StorageError
from app.utils.validation import (
    MAX_UPLOAD_SIZE,
    REQUIRE_TAXONOMY,
    admit_file,
    validate_metadata,
)

logger = logging.getLogger(__name__)


class UploadService:
    """Validates an upload and persists it to blob storage plus the database."""

    def __init__(
        self,
        repo: ResourceRepository,
        sink: BlobSink,
        max_size: int = MAX_UPLOAD_SIZE,
        require_taxonomy: bool = REQUIRE_TAXONOMY,
    ):
        self.repo = repo
        self.sink = sink
        self.max_size = max_size
        self.require_taxonomy = require_taxonomy

    async def upload(
        self,
        filename: Optional[str],
        content: Optional[bytes],
        content_type: Optional[str],
        fields: Mapping[str, Optional[str]],
    ) -> ResourceRecord:
        """
        Store an uploaded document and create its resource record.

        Raises:
            ValidationError: File rejected or metadata invalid
            StorageError: Blob write or record insert failed
        """
        size = len(content) if content is not None else None
        admit_file(filename, content_type, size, max_size=self.max_size)
        metadata = validate_metadata(
            fields, require_taxonomy=self.require_taxonomy
        )

        blob = await self.sink.put(filename, content, content_type)

        try:
            record = await self.repo.create(
                title=metadata.title,
                description=metadata.description,
                file_name=filename,
                file_url=blob.url,
                file_type=content_type,
                category=metadata.category,
                course=metadata.course,
                specialization=metadata.specialization,
            )
        except StorageError:
            await self._discard_blob(blob.key)
            raise

        logger.info(
            f"Resource {record.id} created for {filename} "
            f"({size} bytes, {content_type})"
        )
        return record

    async def _discard_blob(self, key: str) -> None:
        try:
            await self.sink.delete(key)
            logger.info(f"Removed orphaned blob {key} after failed insert")
        except BlobStorageError:
            logger.error(
                f"Failed to remove orphaned blob {key}", exc_info=True
            )
