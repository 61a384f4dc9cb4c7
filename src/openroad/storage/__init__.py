"""Roadmap persistence.

- store: RoadmapStore with durable/in-memory fallback and TTL cache lookups
- state: StoreState shared connection state
- backends: MongoDB and in-memory tiers
"""

from openroad.storage.backends import (
    MemoryBackend,
    MongoBackend,
    RoadmapBackend,
    connect_mongo,
)
from openroad.storage.state import StoreState
from openroad.storage.store import RoadmapStore

__all__ = [
    "MemoryBackend",
    "MongoBackend",
    "RoadmapBackend",
    "RoadmapStore",
    "StoreState",
    "connect_mongo",
]
