"""OpenRoad data models.

This module exports all core entities used throughout the application:
- RepositoryRef / RepositoryContext / FileEntry: fetched repository context
- AnalysisResult / EntryPoint / Difficulty: structured analysis output
- HealthMetric / HealthStatus / RepoHealthOverview: health signals
- Roadmap: the persisted aggregate root
"""

from openroad.models.repository import (
    EntryKind,
    FileEntry,
    RepositoryContext,
    RepositoryRef,
    sort_entries,
)
from openroad.models.roadmap import (
    AnalysisResult,
    Difficulty,
    EntryPoint,
    HealthMetric,
    HealthStatus,
    RepoHealthOverview,
    Roadmap,
    UPDATABLE_FIELDS,
    derive_status,
    non_negative_int,
    document_fields,
)

__all__ = [
    "AnalysisResult",
    "Difficulty",
    "EntryKind",
    "EntryPoint",
    "FileEntry",
    "HealthMetric",
    "HealthStatus",
    "RepoHealthOverview",
    "RepositoryContext",
    "RepositoryRef",
    "Roadmap",
    "UPDATABLE_FIELDS",
    "derive_status",
    "document_fields",
    "non_negative_int",
    "sort_entries",
]
