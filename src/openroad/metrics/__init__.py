"""Health metrics for roadmap entry points.

- provider: live (Snowflake) metrics with synthetic fallback
- snowflake: SQL API client
- synthetic: deterministic hash-derived metrics
"""

from openroad.metrics.provider import HealthMetricsProvider
from openroad.metrics.snowflake import SnowflakeClient
from openroad.metrics.synthetic import (
    path_hash,
    synthetic_metric,
    synthetic_metrics,
    synthetic_overview,
)

__all__ = [
    "HealthMetricsProvider",
    "SnowflakeClient",
    "path_hash",
    "synthetic_metric",
    "synthetic_metrics",
    "synthetic_overview",
]
