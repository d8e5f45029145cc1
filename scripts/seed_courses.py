"""
Course Taxonomy Seeding Script

Creates the default courses and their specializations in the database.
Safe to run repeatedly: existing rows are left untouched.

Usage:
    python -m scripts.seed_courses
"""
import asyncio
import logging

from app.db.config import SessionLocal, engine
from app.services.taxonomy_seed import seed_taxonomy

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def main():
    async with SessionLocal() as session:
        summary = await seed_taxonomy(session)
    await engine.dispose()
    for course, count in summary.items():
        print(f"  {course}: {count} specializations")
    print("Seeding finished.")


if __name__ == "__main__":
    asyncio.run(main())
