"""Dual-tier roadmap store.

Reads and saves go to MongoDB while it is reachable and fall back to the
in-memory tier when it is not. Updates and deletes act on whichever tier is
active and report failure as False instead of falling back.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

from openroad.models import Roadmap, document_fields
from openroad.storage.backends import RoadmapBackend
from openroad.storage.state import StoreState

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_AGE = timedelta(hours=1)
DEFAULT_RECENT_LIMIT = 10
MAX_RECENT_LIMIT = 50


def utc_now() -> datetime:
    return datetime.now(UTC)


class RoadmapStore:
    """Persists roadmaps and serves them back as a cache.

    Usage:
        store = RoadmapStore(StoreState(config.storage))
        saved = await store.save(roadmap)
        cached = await store.find_cached(roadmap.repo_url)
    """

    def __init__(
        self,
        state: StoreState | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the store.

        Args:
            state: Shared connection state (memory-only if None)
            clock: Source of "now" for cache freshness
        """
        self.state = state or StoreState()
        self._clock = clock

    async def aclose(self) -> None:
        await self.state.aclose()

    async def _with_fallback(
        self,
        operation: str,
        call: Callable[[RoadmapBackend], Awaitable[T]],
    ) -> T:
        durable = await self.state.durable()
        if durable is not None:
            try:
                return await call(durable)
            except Exception as e:
                logger.debug("Durable %s failed", operation, exc_info=True)
                await self.state.demote(e)
        return await call(self.state.memory)

    async def save(self, roadmap: Roadmap) -> Roadmap:
        """Persist a roadmap and return it with its assigned id."""
        saved = await self._with_fallback("save", lambda backend: backend.insert(roadmap))
        logger.info(
            "Saved roadmap %s for %s (%s)", saved.id, saved.repo_url, self.state.active_tier
        )
        return saved

    async def find_by_url(self, repo_url: str) -> Roadmap | None:
        """Most recent roadmap for a repository URL."""
        return await self._with_fallback(
            "find_by_url", lambda backend: backend.find_by_url(repo_url)
        )

    async def find_by_id(self, roadmap_id: str) -> Roadmap | None:
        return await self._with_fallback(
            "find_by_id", lambda backend: backend.find_by_id(roadmap_id)
        )

    async def find_recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[Roadmap]:
        """Most recently created roadmaps, newest first.

        Args:
            limit: Maximum roadmaps returned (clamped to 1..50)
        """
        limit = min(max(int(limit), 1), MAX_RECENT_LIMIT)
        return await self._with_fallback(
            "find_recent", lambda backend: backend.find_recent(limit)
        )

    async def update(self, roadmap_id: str, **fields: Any) -> bool:
        """Merge fields into a stored roadmap and refresh ``updated_at``.

        Args:
            roadmap_id: Roadmap identifier
            **fields: Roadmap fields to replace

        Returns:
            True if a roadmap was updated

        Raises:
            ValueError: If a field cannot be updated
        """
        changes = document_fields(fields)
        changes["updated_at"] = self._clock()

        backend = await self.state.durable() or self.state.memory
        try:
            return await backend.update(roadmap_id, changes)
        except Exception as e:
            logger.error("Failed to update roadmap %s: %s", roadmap_id, e)
            return False

    async def delete(self, roadmap_id: str) -> bool:
        """Delete a roadmap by id.

        Returns:
            True if a roadmap was deleted
        """
        backend = await self.state.durable() or self.state.memory
        try:
            deleted = await backend.delete(roadmap_id)
        except Exception as e:
            logger.error("Failed to delete roadmap %s: %s", roadmap_id, e)
            return False

        if deleted:
            logger.info("Deleted roadmap %s", roadmap_id)
        return deleted

    async def find_cached(
        self,
        repo_url: str,
        max_age: timedelta = DEFAULT_MAX_AGE,
    ) -> Roadmap | None:
        """Return the stored roadmap for a URL if it is still fresh.

        A roadmap older than ``max_age`` is a miss but stays stored.
        """
        roadmap = await self.find_by_url(repo_url)
        if roadmap is None:
            return None

        age = self._clock() - roadmap.created_at
        if age > max_age:
            logger.debug("Cached roadmap for %s is stale (%s old)", repo_url, age)
            return None

        logger.info("Found cached roadmap for %s", repo_url)
        return roadmap
