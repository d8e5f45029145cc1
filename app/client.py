"""
Async search client for the resource library API.

Front ends call ``search`` on every keystroke. The client waits for a short
quiet period before querying and tags each call with a sequence number so
that only the most recently issued search can update the results, no matter
in which order the HTTP responses arrive.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

RESOURCES_PATH = "/api/v1/resources"
SEQ_HEADER = "X-Request-Seq"
DEFAULT_DEBOUNCE = 0.5


class LibrarySearchClient:
    """Debounced, last-request-wins resource search."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        debounce: float = DEFAULT_DEBOUNCE,
    ):
        self.client = client
        self.debounce = debounce
        self.latest_results: Optional[List[Dict[str, Any]]] = None
        self._issued = 0

    @property
    def issued(self) -> int:
        """Sequence number of the most recent search call."""
        return self._issued

    def _is_current(self, seq: int) -> bool:
        return seq == self._issued

    async def search(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        course: Optional[str] = None,
        specialization: Optional[str] = None,
    ) -> Optional[List[Dict[str, Any]]]:
        """
        Run a search unless a newer one supersedes it.

        Returns:
            The matching resources, or ``None`` when this call was superseded
            during the debounce window or while the request was in flight.

        Raises:
            httpx.HTTPStatusError: If the current search fails on the server
            httpx.RequestError: If the current search cannot reach the server
        """
        self._issued += 1
        seq = self._issued

        if self.debounce > 0:
            await asyncio.sleep(self.debounce)
        if not self._is_current(seq):
            logger.debug(f"Search {seq} debounced")
            return None

        params = {
            key: value
            for key, value in {
                "q": q,
                "category": category,
                "course": course,
                "specialization": specialization,
            }.items()
            if value
        }
        try:
            response = await self.client.get(
                RESOURCES_PATH, params=params, headers={SEQ_HEADER: str(seq)}
            )
        except httpx.RequestError as exc:
            if not self._is_current(seq):
                logger.debug(f"Ignoring transport error for stale search {seq}: {exc}")
                return None
            raise
        if not self._is_current(seq):
            logger.debug(f"Discarding stale response for search {seq}")
            return None

        response.raise_for_status()
        self.latest_results = response.json()
        return self.latest_results
