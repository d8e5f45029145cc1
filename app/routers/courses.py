"""Courses router: taxonomy listing and idempotent creation.

``POST /courses`` takes a body tagged by ``type`` and creates either a
course or a specialization. Both are upserts, so repeating a request returns
the existing entity instead of a duplicate.
"""
from __future__ import annotations
import logging
from typing import Annotated, List

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.config import get_session
from app.models.library import (
    CourseOut,
    CourseRequest,
    TaxonomyRequest,
)
from app.repositories.taxonomy_repo import (
    CourseNotFoundError,
    TaxonomyRepository,
)
from app.utils.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courses", tags=["Courses"])

# Helpers ------------------------------------------------------------------


async def _get_repo(
    session: AsyncSession = Depends(get_session),
) -> TaxonomyRepository:
    return TaxonomyRepository(session)

# Routes -------------------------------------------------------------------


@router.get("", response_model=List[CourseOut])
async def list_courses(repo: TaxonomyRepository = Depends(_get_repo)):
    try:
        courses = await repo.list_courses()
    except StorageError as exc:
        logger.error(f"Failed to fetch courses: {exc}", exc_info=True)
        raise StorageError(
            "Failed to fetch courses", error="Failed to fetch courses"
        ) from exc
    return [c.to_dict() for c in courses]


@router.post("")
async def create_taxonomy_item(
    payload: Annotated[TaxonomyRequest, Body(discriminator="type")],
    repo: TaxonomyRepository = Depends(_get_repo),
):
    try:
        if isinstance(payload, CourseRequest):
            course = await repo.upsert_course(payload.name)
            return course.to_dict(include_specializations=False)
        spec = await repo.upsert_specialization(payload.name, payload.courseId)
        return spec.to_dict()
    except CourseNotFoundError as exc:
        raise ValidationError(
            str(exc),
            details={"courseId": [str(exc)]},
            error="Course not found",
        ) from exc
    except StorageError as exc:
        logger.error(
            f"Failed to add {payload.type} {payload.name!r}: {exc}",
            exc_info=True,
        )
        raise ValidationError(
            "Failed to add item", error="Failed to add item"
        ) from exc
