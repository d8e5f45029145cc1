"""
Upload validation utilities

Two-stage gate applied before an upload touches the blob sink:

1. ``admit_file`` checks presence, size and declared MIME type and stops at
   the first problem.
2. ``validate_metadata`` checks the descriptive form fields and reports every
   failing field at once.
"""

import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from app.models.library import TaxonomyUploadMetadata, UploadMetadata
from app.utils.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))  # 10MB
ALLOWED_MIME_TYPES = frozenset({
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/webp",
})
REQUIRE_TAXONOMY = os.getenv(
    "UPLOAD_REQUIRE_TAXONOMY", "true"
).lower() in {"1", "true", "yes"}

# Location prefixes FastAPI puts in front of request field names
_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def _size_label(size: int) -> str:
    for unit, scale in (("MB", 1024 * 1024), ("KB", 1024)):
        if size >= scale:
            if size % scale == 0:
                return f"{size // scale}{unit}"
            return f"{size / scale:.1f}{unit}"
    return f"{size} bytes"


def admit_file(
    filename: Optional[str],
    content_type: Optional[str],
    size: Optional[int],
    max_size: int = MAX_UPLOAD_SIZE,
) -> None:
    """
    Decide whether an uploaded file may proceed to metadata validation.

    Args:
        filename: Original filename, ``None`` when no file part was sent
        content_type: MIME type declared by the client
        size: File size in bytes
        max_size: Inclusive size ceiling in bytes

    Raises:
        ValidationError: On the first failing check
    """
    if not filename:
        raise ValidationError(
            "No file uploaded",
            details={"file": ["No file uploaded"]},
            error="No file uploaded",
        )

    if size is not None and size > max_size:
        message = f"File size exceeds {_size_label(max_size)} limit"
        raise ValidationError(
            message, details={"file": [message]}, error=message
        )

    if (content_type or "").lower() not in ALLOWED_MIME_TYPES:
        message = "Invalid file type. Only PDF and images are allowed."
        raise ValidationError(
            message, details={"file": [message]}, error=message
        )


def _field_message(err: Dict[str, Any]) -> str:
    if err["type"] == "missing":
        return "Required"
    if err["type"] == "string_type" and err.get("input") is None:
        return "Required"
    ctx = err.get("ctx") or {}
    if err["type"] == "string_too_short":
        return f"Must be at least {ctx.get('min_length')} characters"
    if err["type"] == "string_too_long":
        return f"Must be at most {ctx.get('max_length')} characters"
    return err["msg"]


def flatten_errors(errors: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Group pydantic error entries by the name of the offending field."""
    details: Dict[str, List[str]] = {}
    for err in errors:
        loc = [
            part for part in err.get("loc", ()) if part not in _REQUEST_LOCATIONS
        ]
        field = str(loc[-1]) if loc else "__root__"
        details.setdefault(field, []).append(_field_message(err))
    return details


def validate_metadata(
    raw: Mapping[str, Optional[str]],
    require_taxonomy: bool = REQUIRE_TAXONOMY,
) -> Union[UploadMetadata, TaxonomyUploadMetadata]:
    """
    Validate upload form fields.

    Args:
        raw: Field name to submitted value (``None`` when absent)
        require_taxonomy: Whether course and specialization are mandatory

    Returns:
        The validated metadata model

    Raises:
        ValidationError: With every failing field listed in ``details``
    """
    model = TaxonomyUploadMetadata if require_taxonomy else UploadMetadata
    try:
        return model.model_validate(dict(raw))
    except PydanticValidationError as exc:
        details = flatten_errors(exc.errors())
        logger.warning(f"Upload metadata rejected: {details}")
        raise ValidationError("Validation failed", details=details) from exc
