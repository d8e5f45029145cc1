"""Resources router: filtered listing and library statistics."""
from __future__ import annotations
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.config import get_session
from app.models.library import ResourceFilters, ResourceOut, ResourceStats
from app.repositories.resource_repo import ResourceRepository
from app.utils.errors import StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["Resources"])

SEQ_HEADER = "X-Request-Seq"


async def _get_repo(
    session: AsyncSession = Depends(get_session),
) -> ResourceRepository:
    return ResourceRepository(session)


def _store_error(exc: StorageError, context: dict) -> StorageError:
    logger.error(
        f"Resource query failed: {exc} (params={context})", exc_info=True
    )
    return StorageError(
        "Unable to read the resource library right now.",
        details=(
            "This could be due to a database connection issue. "
            "Please check server logs for more details."
        ),
        error="Database Service Error",
    )


@router.get("", response_model=List[ResourceOut])
async def list_resources(
    response: Response,
    q: Optional[str] = None,
    category: Optional[str] = None,
    course: Optional[str] = None,
    specialization: Optional[str] = None,
    request_seq: Optional[str] = Header(None, alias=SEQ_HEADER),
    repo: ResourceRepository = Depends(_get_repo),
):
    """List resources matching every supplied filter, newest first."""
    filters = ResourceFilters(
        q=q, category=category, course=course, specialization=specialization
    )
    if request_seq is not None:
        response.headers[SEQ_HEADER] = request_seq
    logger.info(f"Fetching resources with filters {filters.active()}")
    try:
        records = await repo.search(filters)
    except StorageError as exc:
        raise _store_error(exc, filters.active()) from exc
    logger.info(f"Retrieved {len(records)} resources")
    return [r.to_dict() for r in records]


@router.get("/stats", response_model=ResourceStats)
async def resource_stats(repo: ResourceRepository = Depends(_get_repo)):
    """Totals shown on the library dashboard."""
    try:
        return await repo.stats()
    except StorageError as exc:
        raise _store_error(exc, {"operation": "stats"}) from exc
