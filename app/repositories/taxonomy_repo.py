"""Repository layer for the course/specialization taxonomy.

Both entities are created through idempotent upserts keyed by their natural
keys (course name; specialization name + course). There are no delete or
rename operations.
"""
from __future__ import annotations
from typing import Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.models.persisted_library import CourseRecord, SpecializationRecord
from app.utils.errors import StorageError


class CourseNotFoundError(Exception):
    """Raised when a specialization references a course that does not exist."""


class TaxonomyRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    # READ -------------------------------------------------------------------
    async def list_courses(self) -> Sequence[CourseRecord]:
        try:
            result = await self.session.execute(
                select(CourseRecord)
                .order_by(CourseRecord.name)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as exc:
            raise StorageError("Failed to fetch courses") from exc
        return result.scalars().all()

    async def get_course_by_name(self, name: str) -> Optional[CourseRecord]:
        result = await self.session.execute(
            select(CourseRecord).where(CourseRecord.name == name)
        )
        return result.scalar_one_or_none()

    async def _get_specialization(
        self, name: str, course_id: int
    ) -> Optional[SpecializationRecord]:
        result = await self.session.execute(
            select(SpecializationRecord).where(
                SpecializationRecord.name == name,
                SpecializationRecord.course_id == course_id,
            )
        )
        return result.scalar_one_or_none()

    # UPSERT -----------------------------------------------------------------
    async def upsert_course(self, name: str) -> CourseRecord:
        try:
            existing = await self.get_course_by_name(name)
            if existing:
                return existing
            record = CourseRecord(name=name, specializations=[])
            self.session.add(record)
            try:
                await self.session.commit()
            except IntegrityError:
                # Lost a race with a concurrent insert of the same name
                await self.session.rollback()
                winner = await self.get_course_by_name(name)
                if winner is None:
                    raise
                return winner
            await self.session.refresh(record)
            return record
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to upsert course {name!r}") from exc

    async def upsert_specialization(
        self, name: str, course_id: int
    ) -> SpecializationRecord:
        try:
            course = await self.session.get(CourseRecord, course_id)
            if course is None:
                raise CourseNotFoundError(f"Course {course_id} not found")
            existing = await self._get_specialization(name, course_id)
            if existing:
                return existing
            record = SpecializationRecord(name=name, course_id=course_id)
            self.session.add(record)
            try:
                await self.session.commit()
            except IntegrityError:
                await self.session.rollback()
                winner = await self._get_specialization(name, course_id)
                if winner is None:
                    raise
                return winner
            await self.session.refresh(record)
            return record
        except SQLAlchemyError as exc:
            raise StorageError(
                f"Failed to upsert specialization {name!r}"
            ) from exc
