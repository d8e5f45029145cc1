"""
File serving endpoint for blobs stored by the local blob sink.

Resource ``fileUrl`` values produced by ``LocalBlobSink`` point here.
"""

import logging
import mimetypes

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from app.services.blob_storage import BlobSink, LocalBlobSink, get_blob_sink
from app.utils.errors import BlobStorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["Files"])


@router.get("/{key:path}", summary="Serve Stored File")
async def serve_file(
    key: str, sink: BlobSink = Depends(get_blob_sink)
) -> FileResponse:
    """
    Serve an uploaded file with caching headers.

    Args:
        key: Blob key returned when the file was stored

    Raises:
        HTTPException: If the file is missing or the key is not allowed
    """
    if not isinstance(sink, LocalBlobSink):
        raise HTTPException(
            status_code=404, detail="Files are served by the blob store"
        )

    try:
        resolved_path = sink.resolve(key)
    except BlobStorageError:
        logger.warning(f"Path traversal attempt detected: {key}")
        raise HTTPException(status_code=403, detail="Access denied")

    if not resolved_path.is_file():
        logger.warning(f"File not found: {key}")
        raise HTTPException(status_code=404, detail="File not found")

    mime_type, _ = mimetypes.guess_type(str(resolved_path))
    if not mime_type:
        mime_type = "application/octet-stream"

    return FileResponse(
        path=resolved_path,
        media_type=mime_type,
        headers={
            "Cache-Control": "public, max-age=31536000",  # 1 year cache
            "Content-Disposition": (
                f"inline; filename=\"{resolved_path.name}\""
            ),
        },
    )
