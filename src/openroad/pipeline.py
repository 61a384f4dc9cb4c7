"""Roadmap pipeline coordinator.

Runs the stages for one repository in sequence:
1. Cache lookup (skipped when a refresh is forced)
2. Repository context retrieval (README and file tree)
3. Architectural analysis through the provider chain
4. Health metrics for the nominated entry points
5. Persistence of the assembled roadmap

A failing stage aborts the run and nothing is persisted.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from openroad.config import OpenRoadConfig
from openroad.github import GitHubFetcher
from openroad.llm import AnalysisOrchestrator
from openroad.metrics import HealthMetricsProvider
from openroad.models import HealthMetric, RepoHealthOverview, Roadmap
from openroad.storage import RoadmapStore, StoreState
from openroad.storage.store import DEFAULT_MAX_AGE, DEFAULT_RECENT_LIMIT

logger = logging.getLogger(__name__)


class PipelineCoordinator:
    """Produces roadmaps, serving fresh stored ones from cache.

    Usage:
        async with PipelineCoordinator.from_config(config) as pipeline:
            roadmap = await pipeline.analyze_repository("https://github.com/o/r")
    """

    def __init__(
        self,
        fetcher: GitHubFetcher,
        orchestrator: AnalysisOrchestrator,
        metrics: HealthMetricsProvider,
        store: RoadmapStore,
        cache_max_age: timedelta = DEFAULT_MAX_AGE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            fetcher: Repository context source
            orchestrator: Analysis provider chain
            metrics: Health metrics provider
            store: Roadmap store
            cache_max_age: Age after which a stored roadmap is recomputed
            clock: Source of roadmap timestamps
        """
        self.fetcher = fetcher
        self.orchestrator = orchestrator
        self.metrics = metrics
        self.store = store
        self.cache_max_age = cache_max_age
        self._clock = clock or (lambda: datetime.now(UTC))

    @classmethod
    def from_config(cls, config: OpenRoadConfig) -> "PipelineCoordinator":
        """Build a coordinator and all of its collaborators from configuration."""
        return cls(
            fetcher=GitHubFetcher(config.github),
            orchestrator=AnalysisOrchestrator.from_config(
                config.llm, description_limit=config.github.description_limit
            ),
            metrics=HealthMetricsProvider(config.analytics),
            store=RoadmapStore(StoreState(config.storage)),
            cache_max_age=config.cache.max_age,
        )

    async def __aenter__(self) -> "PipelineCoordinator":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close HTTP clients and the durable store connection."""
        await self.fetcher.aclose()
        await self.metrics.aclose()
        await self.store.aclose()

    async def analyze_repository(self, repo_url: str, force_refresh: bool = False) -> Roadmap:
        """Produce the roadmap for a repository.

        Args:
            repo_url: Repository URL
            force_refresh: Ignore any cached roadmap

        Returns:
            The cached roadmap, or a newly saved one

        Raises:
            InvalidReference, NotFound, AccessDenied, UpstreamError: Fetch failed
            ProviderExhausted, ParseError: Analysis failed
        """
        if not force_refresh:
            cached = await self.store.find_cached(repo_url, self.cache_max_age)
            if cached is not None:
                return cached

        context = await self.fetcher.fetch(repo_url)
        analysis = await self.orchestrator.analyze(context)
        health_metrics = await self.metrics.metrics_for(
            analysis.entry_point_files, context.repo_name
        )

        now = self._clock()
        roadmap = Roadmap(
            repo_url=repo_url,
            repo_name=context.repo_name,
            owner=context.owner,
            analysis=analysis,
            health_metrics=health_metrics,
            file_tree=list(context.file_tree),
            created_at=now,
            updated_at=now,
        )

        saved = await self.store.save(roadmap)
        logger.info("Roadmap for %s ready (id %s)", context.full_name, saved.id)
        return saved

    async def file_health(self, files: list[str], repo_name: str) -> list[HealthMetric]:
        return await self.metrics.metrics_for(files, repo_name)

    async def repo_health(self, repo_name: str) -> RepoHealthOverview:
        return await self.metrics.repo_overview(repo_name)

    async def recent_roadmaps(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[Roadmap]:
        return await self.store.find_recent(limit)

    async def roadmap_for(self, repo_url: str) -> Roadmap | None:
        """Most recent stored roadmap for a URL, regardless of age."""
        return await self.store.find_by_url(repo_url)

    async def delete_roadmap(self, roadmap_id: str) -> bool:
        return await self.store.delete(roadmap_id)
