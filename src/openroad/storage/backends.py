"""Storage tiers for roadmaps.

- MongoBackend: durable tier, one collection of roadmap documents keyed by
  ObjectId, looked up by ``repo_url`` and sorted by ``created_at``
- MemoryBackend: process-lifetime fallback tier keyed by repository URL
"""

import logging
import time
from typing import Any, Protocol

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import AsyncMongoClient, DESCENDING
from pymongo.asynchronous.collection import AsyncCollection

from openroad.config import StorageConfig
from openroad.models import Roadmap

logger = logging.getLogger(__name__)


class RoadmapBackend(Protocol):
    """Operations every storage tier provides."""

    name: str

    async def insert(self, roadmap: Roadmap) -> Roadmap: ...

    async def find_by_url(self, repo_url: str) -> Roadmap | None: ...

    async def find_by_id(self, roadmap_id: str) -> Roadmap | None: ...

    async def find_recent(self, limit: int) -> list[Roadmap]: ...

    async def update(self, roadmap_id: str, changes: dict[str, Any]) -> bool: ...

    async def delete(self, roadmap_id: str) -> bool: ...

    async def close(self) -> None: ...


# =============================================================================
# Durable tier
# =============================================================================


def _object_id(roadmap_id: str) -> ObjectId | None:
    try:
        return ObjectId(roadmap_id)
    except (InvalidId, TypeError):
        return None


class MongoBackend:
    """Durable tier backed by a MongoDB collection."""

    name = "mongodb"

    def __init__(
        self,
        collection: AsyncCollection,
        client: AsyncMongoClient | None = None,
    ) -> None:
        self.collection = collection
        self._client = client

    async def insert(self, roadmap: Roadmap) -> Roadmap:
        result = await self.collection.insert_one(roadmap.to_document())
        return roadmap.with_id(str(result.inserted_id))

    async def find_by_url(self, repo_url: str) -> Roadmap | None:
        doc = await self.collection.find_one(
            {"repo_url": repo_url},
            sort=[("created_at", DESCENDING)],
        )
        return Roadmap.from_document(doc) if doc else None

    async def find_by_id(self, roadmap_id: str) -> Roadmap | None:
        oid = _object_id(roadmap_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return Roadmap.from_document(doc) if doc else None

    async def find_recent(self, limit: int) -> list[Roadmap]:
        cursor = self.collection.find({}).sort("created_at", DESCENDING).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [Roadmap.from_document(doc) for doc in docs]

    async def update(self, roadmap_id: str, changes: dict[str, Any]) -> bool:
        oid = _object_id(roadmap_id)
        if oid is None:
            return False
        result = await self.collection.update_one({"_id": oid}, {"$set": changes})
        return result.modified_count > 0

    async def delete(self, roadmap_id: str) -> bool:
        oid = _object_id(roadmap_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()


def describe_connection_error(error: Exception) -> str | None:
    """Return a troubleshooting hint for a MongoDB connection error."""
    message = str(error)
    if "ENOTFOUND" in message or "getaddrinfo" in message or "nodename" in message:
        return "DNS resolution failed. Check your internet connection."
    if "timed out" in message.lower() or "ETIMEDOUT" in message:
        return (
            "Connection timed out. Check that this IP address is allowed by the "
            "cluster and that port 27017 is not blocked."
        )
    if "SSL" in message or "TLS" in message:
        return (
            "SSL/TLS error. Check the IP allow list, the credentials, and any "
            "proxy interfering with TLS."
        )
    if "Authentication failed" in message or "auth failed" in message.lower():
        return "Authentication failed. Check your MongoDB username and password."
    return None


async def connect_mongo(config: StorageConfig) -> MongoBackend:
    """Connect to MongoDB and verify the server is reachable.

    Raises:
        ValueError: If no URI is configured
        pymongo.errors.PyMongoError: If the server cannot be reached
    """
    if not config.mongodb_uri:
        raise ValueError("MongoDB URI not configured")

    timeout_ms = int(config.timeout * 1000)
    client: AsyncMongoClient = AsyncMongoClient(
        config.mongodb_uri,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
        socketTimeoutMS=timeout_ms,
        maxPoolSize=10,
        minPoolSize=2,
        retryWrites=True,
        retryReads=True,
        tz_aware=True,
    )

    try:
        await client.admin.command("ping")
    except Exception:
        await client.close()
        raise

    database = client.get_default_database(default=config.database)
    logger.info("Connected to MongoDB database '%s'", database.name)
    return MongoBackend(database[config.collection], client)


# =============================================================================
# Fallback tier
# =============================================================================


class MemoryBackend:
    """In-process fallback tier keyed by repository URL.

    Saving a roadmap replaces any earlier roadmap for the same URL. Identifiers
    are strictly increasing millisecond timestamps.
    """

    name = "memory"

    def __init__(self) -> None:
        self._by_url: dict[str, Roadmap] = {}
        self._last_id = 0

    def __len__(self) -> int:
        return len(self._by_url)

    def _next_id(self) -> str:
        self._last_id = max(self._last_id + 1, int(time.time() * 1000))
        return str(self._last_id)

    def _find(self, roadmap_id: str) -> Roadmap | None:
        for roadmap in self._by_url.values():
            if roadmap.id == roadmap_id:
                return roadmap
        return None

    async def insert(self, roadmap: Roadmap) -> Roadmap:
        saved = roadmap.with_id(self._next_id())
        self._by_url[saved.repo_url] = saved
        return saved

    async def find_by_url(self, repo_url: str) -> Roadmap | None:
        return self._by_url.get(repo_url)

    async def find_by_id(self, roadmap_id: str) -> Roadmap | None:
        return self._find(roadmap_id)

    async def find_recent(self, limit: int) -> list[Roadmap]:
        ordered = sorted(self._by_url.values(), key=lambda r: r.created_at, reverse=True)
        return ordered[:limit]

    async def update(self, roadmap_id: str, changes: dict[str, Any]) -> bool:
        existing = self._find(roadmap_id)
        if existing is None:
            return False
        doc = {**existing.to_document(), **changes, "_id": roadmap_id}
        self._by_url[existing.repo_url] = Roadmap.from_document(doc)
        return True

    async def delete(self, roadmap_id: str) -> bool:
        existing = self._find(roadmap_id)
        if existing is None:
            return False
        del self._by_url[existing.repo_url]
        return True

    async def close(self) -> None:
        return None
