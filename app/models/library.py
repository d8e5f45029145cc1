"""
Pydantic Models for Library API Data

These models provide type validation and serialization for requests and
responses of the resource library: search filters, upload metadata and the
tagged course/specialization creation requests.
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

# Legacy filter value that the library UI sends for "no constraint"
ALL_SENTINEL = "All"


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ResourceFilters(BaseModel):
    """Optional resource search filters.

    An absent filter imposes no constraint. Empty strings and the ``"All"``
    sentinel are normalized to ``None`` here so the query layer never has to
    compare against magic values.
    """
    q: Optional[str] = Field(None, description="Free-text search term")
    category: Optional[str] = Field(None, description="Exact category")
    course: Optional[str] = Field(None, description="Exact course name")
    specialization: Optional[str] = Field(
        None, description="Exact specialization name"
    )

    @field_validator("q", mode="before")
    @classmethod
    def normalize_query(cls, v):
        return _blank_to_none(v)

    @field_validator("category", "course", "specialization", mode="before")
    @classmethod
    def normalize_exact(cls, v):
        v = _blank_to_none(v)
        if v == ALL_SENTINEL:
            return None
        return v

    def active(self) -> dict:
        """Filters that actually constrain the query (for logging)."""
        return self.model_dump(exclude_none=True)


class UploadMetadata(BaseModel):
    """Descriptive fields submitted alongside an uploaded file."""
    title: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: str = Field(..., min_length=2, max_length=50)
    course: Optional[str] = Field(None, max_length=50)
    specialization: Optional[str] = Field(None, max_length=50)

    @field_validator(
        "title", "description", "category", "course", "specialization",
        mode="before",
    )
    @classmethod
    def strip_blank(cls, v):
        return _blank_to_none(v)


class TaxonomyUploadMetadata(UploadMetadata):
    """Upload metadata where course and specialization are mandatory."""
    course: str = Field(..., min_length=1, max_length=50)
    specialization: str = Field(..., min_length=1, max_length=50)


class CourseRequest(BaseModel):
    type: Literal["course"]
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class SpecializationRequest(BaseModel):
    type: Literal["specialization"]
    name: str = Field(..., min_length=1, max_length=100)
    courseId: int = Field(..., ge=1)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


# Discriminated on ``type`` at the request boundary
TaxonomyRequest = Union[CourseRequest, SpecializationRequest]


class SpecializationOut(BaseModel):
    id: int
    name: str
    courseId: int
    createdAt: str


class CourseOut(BaseModel):
    id: int
    name: str
    createdAt: str
    specializations: List[SpecializationOut] = []


class ResourceOut(BaseModel):
    id: int
    title: str
    description: Optional[str]
    fileName: str
    fileUrl: str
    fileType: str
    category: str
    course: Optional[str]
    specialization: Optional[str]
    createdAt: str


class UploadResponse(BaseModel):
    success: bool = True
    resource: ResourceOut


class ResourceStats(BaseModel):
    total: int
    categories: int
    recent: int = Field(..., description="Resources created in the last 24h")
    categoryNames: List[str]


class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Current environment")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Check timestamp")
    uptime: Optional[float] = Field(None, description="Uptime in seconds")
