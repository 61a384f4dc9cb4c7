"""Connection state for the dual-tier roadmap store.

StoreState owns the durable backend handle, whether it is currently usable,
and the in-memory fallback tier. One instance is shared by every store
operation of a pipeline, so concurrent first calls connect only once.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from openroad.config import StorageConfig
from openroad.errors import StorageDegraded
from openroad.storage.backends import (
    MemoryBackend,
    RoadmapBackend,
    connect_mongo,
    describe_connection_error,
)

logger = logging.getLogger(__name__)

Connector = Callable[[StorageConfig], Awaitable[RoadmapBackend]]


class StoreState:
    """Durable backend handle plus the memory fallback tier.

    A failed connection is not retried until ``reconnect_interval`` seconds
    have passed. A missing URI makes the durable tier permanently unavailable
    for this state.
    """

    def __init__(
        self,
        config: StorageConfig | None = None,
        connector: Connector = connect_mongo,
        memory: MemoryBackend | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or StorageConfig()
        self.memory = memory or MemoryBackend()
        self._connector = connector
        self._monotonic = monotonic
        self._durable: RoadmapBackend | None = None
        self._last_failure: float | None = None
        self._warned_unconfigured = False
        self._lock = asyncio.Lock()

    @property
    def available(self) -> bool:
        """Return True while a durable backend is connected."""
        return self._durable is not None

    @property
    def active_tier(self) -> str:
        return self._durable.name if self._durable is not None else self.memory.name

    def _waiting_to_retry(self) -> bool:
        if self._last_failure is None:
            return False
        return self._monotonic() - self._last_failure < self.config.reconnect_interval

    async def durable(self) -> RoadmapBackend | None:
        """Return the durable backend, connecting on first use.

        Returns:
            The durable backend, or None if the memory tier must be used
        """
        if self._durable is not None:
            return self._durable

        if not self.config.configured:
            if not self._warned_unconfigured:
                logger.warning("MongoDB URI not configured, roadmaps are kept in memory")
                self._warned_unconfigured = True
            return None

        if self._waiting_to_retry():
            return None

        async with self._lock:
            if self._durable is not None:
                return self._durable
            if self._waiting_to_retry():
                return None

            try:
                backend = await self._connector(self.config)
            except Exception as e:
                self._last_failure = self._monotonic()
                logger.warning("Failed to connect to MongoDB: %s", e)
                hint = describe_connection_error(e)
                if hint:
                    logger.warning(hint)
                logger.warning("Falling back to in-memory storage")
                return None

            self._durable = backend
            self._last_failure = None
            return backend

    async def demote(self, error: Exception) -> None:
        """Mark the durable tier unavailable after an operation failure."""
        degraded = StorageDegraded(f"Durable store operation failed: {error}")
        logger.warning("%s; using in-memory storage", degraded.message)

        backend, self._durable = self._durable, None
        self._last_failure = self._monotonic()
        if backend is not None:
            try:
                await backend.close()
            except Exception as close_error:
                logger.debug("Error closing durable backend: %s", close_error)

    async def aclose(self) -> None:
        if self._durable is not None:
            await self._durable.close()
            self._durable = None
