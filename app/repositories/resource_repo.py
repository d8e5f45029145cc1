"""Repository layer for Resource persistence.

Holds the resource query composer: optional search filters are turned into
a single conjunctive SQLAlchemy predicate. Database failures are re-raised
as ``StorageError`` so callers can tell "store unavailable" apart from an
empty (and perfectly valid) result set.
"""
from __future__ import annotations
from datetime import datetime, timedelta
from typing import List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import SQLAlchemyError

from app.models.library import ResourceFilters
from app.models.persisted_library import ResourceRecord
from app.utils.errors import StorageError

RECENT_WINDOW = timedelta(hours=24)


def build_resource_conditions(filters: ResourceFilters) -> List:
    """Translate filters into WHERE clauses, one per supplied filter."""
    conditions = []
    if filters.q:
        conditions.append(
            or_(
                ResourceRecord.title.icontains(filters.q, autoescape=True),
                ResourceRecord.description.icontains(
                    filters.q, autoescape=True
                ),
            )
        )
    if filters.category:
        conditions.append(ResourceRecord.category == filters.category)
    if filters.course:
        conditions.append(ResourceRecord.course == filters.course)
    if filters.specialization:
        conditions.append(
            ResourceRecord.specialization == filters.specialization
        )
    return conditions


class ResourceRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    # CREATE -----------------------------------------------------------------
    async def create(
        self,
        title: str,
        description: Optional[str],
        file_name: str,
        file_url: str,
        file_type: str,
        category: str,
        course: Optional[str] = None,
        specialization: Optional[str] = None,
    ) -> ResourceRecord:
        record = ResourceRecord(
            title=title,
            description=description,
            file_name=file_name,
            file_url=file_url,
            file_type=file_type,
            category=category,
            course=course,
            specialization=specialization,
        )
        try:
            self.session.add(record)
            await self.session.commit()
            await self.session.refresh(record)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StorageError("Failed to save resource record") from exc
        return record

    # READ -------------------------------------------------------------------
    async def search(self, filters: ResourceFilters) -> Sequence[ResourceRecord]:
        stmt = (
            select(ResourceRecord)
            .where(*build_resource_conditions(filters))
            .order_by(ResourceRecord.created_at.desc(), ResourceRecord.id.desc())
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError("Failed to query resources") from exc
        return result.scalars().all()

    async def stats(self, now: Optional[datetime] = None) -> dict:
        now = now or datetime.utcnow()
        try:
            total = await self.session.scalar(
                select(func.count()).select_from(ResourceRecord)
            )
            recent = await self.session.scalar(
                select(func.count())
                .select_from(ResourceRecord)
                .where(ResourceRecord.created_at > now - RECENT_WINDOW)
            )
            result = await self.session.execute(
                select(ResourceRecord.category)
                .distinct()
                .order_by(ResourceRecord.category)
            )
        except SQLAlchemyError as exc:
            raise StorageError("Failed to compute resource statistics") from exc
        names = list(result.scalars().all())
        return {
            "total": total or 0,
            "categories": len(names),
            "recent": recent or 0,
            "categoryNames": names,
        }
