"""Error taxonomy shared by repositories, services and routers.

Routers never build error payloads by hand for these; the handler registered
in ``app.main`` renders any ``LibraryError`` into the JSON error envelope.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional


class LibraryError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(
        self,
        message: str,
        details: Optional[Any] = None,
        error: Optional[str] = None,
    ):
        self.message = message
        self.details = details
        if error is not None:
            self.error = error
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(LibraryError):
    """User-correctable input problem (bad shape, size or type)."""

    status_code = 400
    error = "Validation failed"

    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[Dict[str, List[str]]] = None,
        error: Optional[str] = None,
    ):
        super().__init__(message, details=details, error=error)


class StorageError(LibraryError):
    """Database or blob store unavailable. Not user-correctable."""

    status_code = 500
    error = "Internal Server Error"


class BlobStorageError(StorageError):
    """Blob sink write or delete failed."""
