"""File and repository health metrics with live/synthetic duality.

Live mode queries Snowflake when credentials are configured. Any failure in
the live path falls back to synthetic metrics for the entire call, so these
operations never raise.
"""

import logging
from typing import Any

from openroad.config import AnalyticsConfig
from openroad.metrics.snowflake import FILE_METRICS_SQL, REPO_METRICS_SQL, SnowflakeClient
from openroad.metrics.synthetic import synthetic_metrics, synthetic_overview
from openroad.models import HealthMetric, RepoHealthOverview, non_negative_int

logger = logging.getLogger(__name__)


def _non_negative_float(value: Any) -> float:
    try:
        return max(float(value), 0.0)
    except (TypeError, ValueError):
        return 0.0


class HealthMetricsProvider:
    """Provides churn and bug-frequency signals for files and repositories.

    Usage:
        provider = HealthMetricsProvider(config.analytics)
        metrics = await provider.metrics_for(["src/app.py"], "repo")
    """

    def __init__(
        self,
        config: AnalyticsConfig | None = None,
        client: SnowflakeClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            config: Snowflake settings (synthetic only if not configured)
            client: Snowflake client (created when live mode is configured)
        """
        self.config = config or AnalyticsConfig()
        self._client = client
        if self._client is None and self.config.configured:
            self._client = SnowflakeClient(self.config)

    @property
    def live(self) -> bool:
        """Return True if live metrics will be attempted."""
        return self.config.configured and self._client is not None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def metrics_for(self, files: list[str], repo_name: str) -> list[HealthMetric]:
        """Health metrics aligned positionally with ``files``.

        Args:
            files: File paths
            repo_name: Repository name the files belong to

        Returns:
            One HealthMetric per file, in the same order
        """
        files = list(files)
        if not files:
            return []

        if not self.live:
            logger.info("Analytics credentials not provided, using synthetic metrics")
            return synthetic_metrics(files)

        try:
            return await self._live_metrics(files, repo_name)
        except Exception as e:
            logger.warning("Live metrics failed, falling back to synthetic metrics: %s", e)
            return synthetic_metrics(files)

    async def _live_metrics(self, files: list[str], repo_name: str) -> list[HealthMetric]:
        assert self._client is not None
        token = await self._client.authenticate()

        unique_files = list(dict.fromkeys(files))
        statement = FILE_METRICS_SQL.format(placeholders=", ".join("?" for _ in unique_files))
        rows = await self._client.execute(statement, [repo_name, *unique_files], token)

        by_path: dict[str, tuple[int, int]] = {}
        for row in rows:
            if len(row) < 3 or not isinstance(row[0], str):
                logger.debug("Skipping malformed metrics row: %r", row)
                continue
            by_path[row[0]] = (non_negative_int(row[1]), non_negative_int(row[2]))

        logger.info("Live metrics matched %d of %d files", len(by_path), len(unique_files))

        metrics = []
        for file in files:
            churn, bugs = by_path.get(file, (0, 0))
            metrics.append(HealthMetric(file=file, churn=churn, bug_frequency=bugs))
        return metrics

    async def repo_overview(self, repo_name: str) -> RepoHealthOverview:
        """Repository-level activity aggregates.

        Args:
            repo_name: Repository name

        Returns:
            RepoHealthOverview (synthetic if live mode is unavailable)
        """
        if not self.live:
            return synthetic_overview(repo_name)

        try:
            assert self._client is not None
            token = await self._client.authenticate()
            rows = await self._client.execute(REPO_METRICS_SQL, [repo_name], token)
        except Exception as e:
            logger.warning("Live overview failed, falling back to synthetic overview: %s", e)
            return synthetic_overview(repo_name)

        if not rows or len(rows[0]) < 3:
            return RepoHealthOverview(total_commits=0, active_contributors=0, avg_file_churn=0.0)

        total_commits, active_contributors, avg_file_churn = rows[0][:3]
        return RepoHealthOverview(
            total_commits=non_negative_int(total_commits),
            active_contributors=non_negative_int(active_contributors),
            avg_file_churn=_non_negative_float(avg_file_churn),
        )
