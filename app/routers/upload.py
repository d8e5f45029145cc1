"""
Upload endpoint for library resources.

Accepts a multipart form with the document and its metadata. Validation
failures come back as 400 with per-field details; storage failures as 500
with a generic message (the cause is logged, not returned).
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.config import get_session
from app.models.library import UploadResponse
from app.repositories.resource_repo import ResourceRepository
from app.services.blob_storage import BlobSink, get_blob_sink
from app.services.upload_service import UploadService
from app.utils.errors import StorageError, ValidationError
from app.utils.validation import admit_file

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Upload"])


async def _get_service(
    session: AsyncSession = Depends(get_session),
    sink: BlobSink = Depends(get_blob_sink),
) -> UploadService:
    return UploadService(ResourceRepository(session), sink)


@router.post("/upload", response_model=UploadResponse, summary="Upload Resource")
async def upload_resource(
    file: Optional[UploadFile] = File(None, description="PDF or image"),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    course: Optional[str] = Form(None),
    specialization: Optional[str] = Form(None),
    service: UploadService = Depends(_get_service),
) -> Dict[str, Any]:
    """Upload a document and register it in the library.

    Supported formats: PDF, JPEG, PNG, WebP (max 10MB).
    """
    filename = file.filename if file else None
    logger.info(
        f"Starting resource upload: {filename} "
        f"(title={title!r}, category={category!r})"
    )
    content_type = file.content_type if file else None
    try:
        # Reject on the spooled size before pulling the body into memory
        admit_file(
            filename,
            content_type,
            file.size if file else None,
            max_size=service.max_size,
        )
        content = await file.read()
        record = await service.upload(
            filename=filename,
            content=content,
            content_type=content_type,
            fields={
                "title": title,
                "description": description,
                "category": category,
                "course": course,
                "specialization": specialization,
            },
        )
    except ValidationError as exc:
        logger.warning(f"Upload rejected for {filename}: {exc.details}")
        raise
    except StorageError as exc:
        logger.error(
            f"Upload failed for {filename} "
            f"(title={title!r}, category={category!r}): {exc}",
            exc_info=True,
        )
        raise StorageError(
            "The file could not be stored. Please try again later."
        ) from exc

    return {"success": True, "resource": record.to_dict()}
