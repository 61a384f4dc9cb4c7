"""Snowflake SQL API client for live health metrics.

Authenticates with an OAuth password grant, then executes parameterized
statements through the SQL API (``/api/v2/statements``). Every failure is
raised as MetricsUnavailable so the caller can fall back as a whole.
"""

import logging
from typing import Any

import httpx

from openroad.config import AnalyticsConfig
from openroad.errors import MetricsUnavailable

logger = logging.getLogger(__name__)

# Statement timeout passed to Snowflake (seconds)
STATEMENT_TIMEOUT = 60

FILE_METRICS_SQL = """
SELECT
  file_path,
  COALESCE(file_churn, 0) AS file_churn,
  COALESCE(bug_frequency, 0) AS bug_frequency
FROM file_metrics
WHERE repo_name = ?
  AND file_path IN ({placeholders})
"""

REPO_METRICS_SQL = """
SELECT
  COALESCE(SUM(commit_count), 0) AS total_commits,
  COALESCE(COUNT(DISTINCT contributor), 0) AS active_contributors,
  COALESCE(AVG(file_churn), 0) AS avg_file_churn
FROM repo_metrics
WHERE repo_name = ?
"""


def text_bindings(values: list[str]) -> dict[str, dict[str, str]]:
    """Build positional SQL API bindings for text values."""
    return {str(i): {"type": "TEXT", "value": value} for i, value in enumerate(values, start=1)}


class SnowflakeClient:
    """Minimal async client for the Snowflake SQL API.

    Usage:
        async with SnowflakeClient(config.analytics) as client:
            token = await client.authenticate()
            rows = await client.execute(sql, ["repo"], token)
    """

    def __init__(
        self,
        config: AnalyticsConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Snowflake account, credentials and query context
            client: HTTP client to use (one is created and owned if None)
        """
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.timeout)

    @property
    def account_url(self) -> str:
        return f"https://{self.config.account}.snowflakecomputing.com"

    async def __aenter__(self) -> "SnowflakeClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def authenticate(self) -> str:
        """Exchange credentials for an OAuth token.

        Raises:
            MetricsUnavailable: If authentication fails
        """
        try:
            response = await self._client.post(
                f"{self.account_url}/oauth/token",
                data={
                    "grant_type": "password",
                    "username": self.config.user or "",
                    "password": self.config.password or "",
                },
            )
        except httpx.HTTPError as e:
            raise MetricsUnavailable(f"Snowflake auth request failed: {e}") from e

        if not response.is_success:
            raise MetricsUnavailable(
                f"Snowflake auth failed: {response.status_code} {response.reason_phrase}"
            )

        data = response.json()
        token = (data.get("token") or data.get("access_token")) if isinstance(data, dict) else None
        if not token:
            raise MetricsUnavailable("Snowflake auth response did not include a token")
        return str(token)

    async def execute(
        self,
        statement: str,
        bindings: list[str],
        token: str,
    ) -> list[list[Any]]:
        """Execute a parameterized statement and return its rows.

        Args:
            statement: SQL with ``?`` placeholders
            bindings: Text values bound positionally
            token: OAuth token from authenticate()

        Returns:
            Result rows

        Raises:
            MetricsUnavailable: If the query fails or the payload is malformed
        """
        try:
            response = await self._client.post(
                f"{self.account_url}/api/v2/statements",
                headers={
                    "Authorization": f"Bearer {token}",
                    "X-Snowflake-Authorization-Token-Type": "OAUTH",
                    "Accept": "application/json",
                },
                json={
                    "statement": statement,
                    "timeout": STATEMENT_TIMEOUT,
                    "database": self.config.database,
                    "schema": self.config.schema,
                    "warehouse": self.config.warehouse,
                    "bindings": text_bindings(bindings),
                },
            )
        except httpx.HTTPError as e:
            raise MetricsUnavailable(f"Snowflake query request failed: {e}") from e

        if not response.is_success:
            logger.debug("Snowflake query error body: %s", response.text[:500])
            raise MetricsUnavailable(
                f"Snowflake query failed: {response.status_code} {response.reason_phrase}"
            )

        payload = response.json()
        rows = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            raise MetricsUnavailable("Snowflake response did not include a data array")

        return [row for row in rows if isinstance(row, list)]
