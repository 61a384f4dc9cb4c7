"""Shared pytest fixtures for OpenRoad tests.

Fixtures are organized by category:
- Configuration fixtures: configs with and without credentials
- Model fixtures: pre-built analysis results, contexts and roadmaps
- Storage fixtures: memory-only stores with a controllable clock
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from openroad.config import GitHubConfig, LLMConfig, OpenRoadConfig, StorageConfig
from openroad.models import (
    AnalysisResult,
    Difficulty,
    EntryKind,
    EntryPoint,
    FileEntry,
    HealthMetric,
    RepositoryContext,
    Roadmap,
)
from openroad.models.llm_config import ProviderConfig
from openroad.storage import RoadmapStore, StoreState

# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real credentials out of every test."""
    for name in (
        "GITHUB_TOKEN",
        "GEMINI_API_KEY",
        "MONGODB_URI",
        "SNOWFLAKE_ACCOUNT",
        "SNOWFLAKE_USER",
        "SNOWFLAKE_PASSWORD",
    ):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def minimal_config() -> dict[str, Any]:
    """Return a minimal valid configuration dictionary."""
    return {"github": {"token": "ghp_test"}}


@pytest.fixture
def full_config() -> dict[str, Any]:
    """Return a complete configuration dictionary with all sections."""
    return {
        "github": {
            "token": "ghp_test",
            "api_base": "https://github.example.com/api/v3/",
            "max_depth": 2,
            "concurrency": 8,
            "timeout": 15,
            "description_limit": 4000,
            "exclude_patterns": ["docs/*"],
        },
        "llm": {
            "providers": [
                {"provider": "gemini", "model": "gemini-1.5-flash", "api_key": "g-key"},
                {"provider": "ollama", "model": "llama3.2"},
            ],
            "temperature": 0.2,
            "top_k": 20,
            "top_p": 0.9,
            "max_tokens": 2048,
            "timeout": 45,
            "advance_on_parse_error": True,
        },
        "storage": {
            "mongodb_uri": "mongodb://localhost:27017/openroad",
            "collection": "roadmaps_test",
            "timeout": 5,
            "reconnect_interval": 60,
        },
        "analytics": {
            "account": "acme-xy123",
            "user": "analyst",
            "password": "secret",
            "warehouse": "SMALL_WH",
        },
        "cache": {"max_age_seconds": 600},
    }


@pytest.fixture
def offline_config() -> OpenRoadConfig:
    """Configuration with one keyed provider and no durable store or analytics."""
    return OpenRoadConfig(
        github=GitHubConfig(token="ghp_test"),
        llm=LLMConfig(
            providers=[ProviderConfig(provider="gemini", model="gemini-1.5-flash", api_key="k")]
        ),
        storage=StorageConfig(),
    )


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def sample_analysis() -> AnalysisResult:
    """Return an analysis result with three entry points."""
    return AnalysisResult(
        tech_stack=["Python", "Flask"],
        architecture_summary="A Flask application with a service layer.",
        data_flow="Requests flow from routes to services to models.",
        entry_points=[
            EntryPoint("src/app.py", "Add a health check route.", Difficulty.BEGINNER),
            EntryPoint("src/services/users.py", "Paginate users.", Difficulty.INTERMEDIATE),
            EntryPoint("src/models/user.py", "Soft deletes.", Difficulty.ADVANCED),
        ],
    )


@pytest.fixture
def sample_tree() -> list[FileEntry]:
    return [
        FileEntry("README.md", EntryKind.FILE, "README.md", 120),
        FileEntry("src", EntryKind.DIR, "src"),
        FileEntry("src/app.py", EntryKind.FILE, "app.py", 800),
        FileEntry("src/services", EntryKind.DIR, "services"),
        FileEntry("src/services/users.py", EntryKind.FILE, "users.py", 640),
    ]


@pytest.fixture
def sample_context(sample_tree: list[FileEntry]) -> RepositoryContext:
    return RepositoryContext(
        description="# Demo\n\nA demo repository.",
        repo_name="demo",
        owner="octo",
        file_tree=tuple(sample_tree),
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def make_roadmap(
    sample_analysis: AnalysisResult,
    sample_tree: list[FileEntry],
    fixed_now: datetime,
) -> Callable[..., Roadmap]:
    """Return a factory for roadmaps with overridable fields."""

    def factory(**overrides: Any) -> Roadmap:
        fields: dict[str, Any] = {
            "repo_url": "https://github.com/octo/demo",
            "repo_name": "demo",
            "owner": "octo",
            "analysis": sample_analysis,
            "health_metrics": [
                HealthMetric("src/app.py", churn=40, bug_frequency=3),
                HealthMetric("src/services/users.py", churn=10, bug_frequency=2),
                HealthMetric("src/models/user.py", churn=20, bug_frequency=8),
            ],
            "file_tree": list(sample_tree),
            "created_at": fixed_now,
            "updated_at": fixed_now,
        }
        fields.update(overrides)
        return Roadmap(**fields)

    return factory


# =============================================================================
# Storage Fixtures
# =============================================================================


class MutableClock:
    """Clock whose current time tests can move."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock(fixed_now: datetime) -> MutableClock:
    return MutableClock(fixed_now)


@pytest.fixture
def memory_store(clock: MutableClock) -> RoadmapStore:
    """Store with no durable tier configured."""
    return RoadmapStore(StoreState(StorageConfig()), clock=clock)
