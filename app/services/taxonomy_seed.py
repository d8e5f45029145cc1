"""
Course taxonomy seeding.

Populates the fixed course -> specialization taxonomy the library ships with.
Every write is an upsert, so running the seed repeatedly is harmless.
"""

import logging
from typing import Dict, List, Mapping, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.taxonomy_repo import TaxonomyRepository

logger = logging.getLogger(__name__)

SEED_COURSES: Dict[str, List[str]] = {
    "B.Tech": ["CSE", "ECE", "ME", "CE", "EE"],
    "MCA": ["Cloud Computing", "AI", "Data Science", "Cyber Security"],
    "M.Tech": ["CSE", "VLSI", "Power Systems"],
    "BCA": ["General", "AI", "Data Science"],
}


async def seed_taxonomy(
    session: AsyncSession,
    courses: Mapping[str, Sequence[str]] = SEED_COURSES,
) -> Dict[str, int]:
    """Upsert every course and specialization; returns per-course counts."""
    repo = TaxonomyRepository(session)
    summary: Dict[str, int] = {}
    for course_name, specializations in courses.items():
        course = await repo.upsert_course(course_name)
        for spec_name in specializations:
            await repo.upsert_specialization(spec_name, course.id)
        summary[course_name] = len(specializations)
    logger.info(f"Seeded taxonomy: {summary}")
    return summary
