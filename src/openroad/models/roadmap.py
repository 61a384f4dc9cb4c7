"""Roadmap aggregate and the analysis/health values it is built from.

This module contains:
- Difficulty / EntryPoint: contributor starting points nominated by analysis
- AnalysisResult: repaired structured output of an analysis provider
- HealthStatus / HealthMetric: per-file churn and defect signals
- RepoHealthOverview: repository-level aggregate counts
- Roadmap: the persisted aggregate root
"""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from openroad.models.repository import FileEntry


class Difficulty(Enum):
    """Difficulty tag of an entry point."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @classmethod
    def coerce(cls, value: Any) -> "Difficulty":
        """Resolve any value to a difficulty, defaulting to intermediate."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.INTERMEDIATE


@dataclass
class EntryPoint:
    """A file nominated as a good first task for a new contributor."""

    file: str
    description: str
    difficulty: Difficulty = Difficulty.INTERMEDIATE

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "description": self.description,
            "difficulty": self.difficulty.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EntryPoint":
        return cls(
            file=str(data.get("file", "")),
            description=str(data.get("description", "")),
            difficulty=Difficulty.coerce(data.get("difficulty")),
        )


@dataclass
class AnalysisResult:
    """Architectural analysis of a repository.

    Attributes:
        tech_stack: Technologies, frameworks and languages in use
        architecture_summary: Short summary of purpose and architecture
        data_flow: How data moves from entry points to storage/output
        entry_points: Starting tasks for new contributors (normally 3)
    """

    tech_stack: list[str]
    architecture_summary: str
    data_flow: str
    entry_points: list[EntryPoint] = field(default_factory=list)

    @property
    def entry_point_files(self) -> list[str]:
        return [ep.file for ep in self.entry_points]

    def to_dict(self) -> dict[str, Any]:
        return {
            "tech_stack": list(self.tech_stack),
            "architecture_summary": self.architecture_summary,
            "data_flow": self.data_flow,
            "entry_points": [ep.to_dict() for ep in self.entry_points],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisResult":
        return cls(
            tech_stack=[str(t) for t in data.get("tech_stack", [])],
            architecture_summary=str(data.get("architecture_summary", "")),
            data_flow=str(data.get("data_flow", "")),
            entry_points=[
                EntryPoint.from_dict(ep)
                for ep in data.get("entry_points", [])
                if isinstance(ep, dict)
            ],
        )


class HealthStatus(Enum):
    """Three-valued reduction of churn and bug frequency."""

    HOT = "hot"
    STABLE = "stable"
    MODERATE = "moderate"


# Status thresholds
HOT_CHURN = 35
HOT_BUGS = 15
STABLE_CHURN = 15
STABLE_BUGS = 5


def non_negative_int(value: Any) -> int:
    """Coerce an untrusted count to a non-negative integer (0 if unusable)."""
    try:
        return max(int(float(value)), 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def derive_status(churn: int, bug_frequency: int) -> HealthStatus:
    """Reduce churn and bug frequency to a health status.

    Hot is checked before stable, so boundary values resolve as hot first.
    """
    if churn > HOT_CHURN or bug_frequency > HOT_BUGS:
        return HealthStatus.HOT
    if churn < STABLE_CHURN and bug_frequency < STABLE_BUGS:
        return HealthStatus.STABLE
    return HealthStatus.MODERATE


@dataclass(frozen=True)
class HealthMetric:
    """Churn and defect-frequency signal for one file.

    The status is always recomputed from churn and bug frequency.
    """

    file: str
    churn: int = 0
    bug_frequency: int = 0

    def __post_init__(self) -> None:
        if self.churn < 0 or self.bug_frequency < 0:
            raise ValueError(
                f"Health metrics must be non-negative (churn={self.churn}, "
                f"bug_frequency={self.bug_frequency})"
            )

    @property
    def status(self) -> HealthStatus:
        return derive_status(self.churn, self.bug_frequency)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "churn": self.churn,
            "bug_frequency": self.bug_frequency,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HealthMetric":
        # Stored status is ignored; it is derived from the inputs
        return cls(
            file=str(data.get("file", "")),
            churn=non_negative_int(data.get("churn")),
            bug_frequency=non_negative_int(data.get("bug_frequency")),
        )


@dataclass(frozen=True)
class RepoHealthOverview:
    """Repository-level activity aggregates."""

    total_commits: int
    active_contributors: int
    avg_file_churn: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_commits": self.total_commits,
            "active_contributors": self.active_contributors,
            "avg_file_churn": self.avg_file_churn,
        }


# Roadmap fields that may be changed after creation
UPDATABLE_FIELDS = frozenset({"repo_name", "owner", "analysis", "health_metrics", "file_tree"})


def document_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert a partial set of Roadmap fields to the stored document form.

    Raises:
        ValueError: If a field cannot be updated
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

    doc: dict[str, Any] = {}
    for key, value in fields.items():
        if key == "analysis":
            doc[key] = value.to_dict()
        elif key == "health_metrics":
            doc[key] = [m.to_dict() for m in value]
        elif key == "file_tree":
            doc[key] = [f.to_dict() for f in value]
        else:
            doc[key] = str(value)
    return doc


def _as_datetime(value: Any) -> datetime:
    """Parse a stored timestamp into an aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value)
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


@dataclass
class Roadmap:
    """Persisted result of one repository analysis.

    Attributes:
        repo_url: Repository URL as requested (natural lookup key)
        repo_name: Repository name
        owner: Repository owner
        analysis: Repaired analysis result
        health_metrics: Health metrics aligned with the entry points
        file_tree: Filtered file tree
        created_at: Creation timestamp (UTC), used for cache freshness
        updated_at: Last update timestamp (UTC)
        id: Store-assigned identifier (None until saved)
    """

    repo_url: str
    repo_name: str
    owner: str
    analysis: AnalysisResult
    health_metrics: list[HealthMetric] = field(default_factory=list)
    file_tree: list[FileEntry] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    id: str | None = None

    def __post_init__(self) -> None:
        """Ensure timestamps are timezone-aware UTC."""
        self.created_at = _as_datetime(self.created_at)
        self.updated_at = _as_datetime(self.updated_at)

    def with_id(self, roadmap_id: str) -> "Roadmap":
        return replace(self, id=roadmap_id)

    def to_document(self) -> dict[str, Any]:
        """Convert to the durable store layout (timestamps stay datetimes)."""
        return {
            "repo_url": self.repo_url,
            "repo_name": self.repo_name,
            "owner": self.owner,
            "analysis": self.analysis.to_dict(),
            "health_metrics": [m.to_dict() for m in self.health_metrics],
            "file_tree": [f.to_dict() for f in self.file_tree],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Roadmap":
        """Create a Roadmap from a stored document or a to_dict() payload."""
        raw_id = doc.get("_id", doc.get("id"))
        return cls(
            id=str(raw_id) if raw_id is not None else None,
            repo_url=str(doc["repo_url"]),
            repo_name=str(doc.get("repo_name", "")),
            owner=str(doc.get("owner", "")),
            analysis=AnalysisResult.from_dict(doc.get("analysis") or {}),
            health_metrics=[
                HealthMetric.from_dict(m)
                for m in doc.get("health_metrics", [])
                if isinstance(m, dict)
            ],
            file_tree=[
                FileEntry.from_dict(f) for f in doc.get("file_tree", []) if isinstance(f, dict)
            ],
            created_at=doc["created_at"],
            updated_at=doc.get("updated_at", doc["created_at"]),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data = self.to_document()
        data["id"] = self.id
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        return data

    def age_at(self, now: datetime) -> float:
        """Age in milliseconds relative to ``now``."""
        return (now - self.created_at).total_seconds() * 1000
