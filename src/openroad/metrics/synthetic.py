"""Deterministic synthetic health metrics.

Used when live analytics are not configured or fail. Values derive from a
character-code sum of the input string, so the same input always produces
the same output.
"""

from openroad.models import HealthMetric, RepoHealthOverview


def path_hash(value: str) -> int:
    """Stable hash: sum of character codes."""
    return sum(ord(char) for char in value)


def synthetic_metric(file: str) -> HealthMetric:
    """Synthetic metric for one file: churn in [1, 50], bugs in [0, 19]."""
    h = path_hash(file)
    return HealthMetric(file=file, churn=h % 50 + 1, bug_frequency=h % 20)


def synthetic_metrics(files: list[str]) -> list[HealthMetric]:
    return [synthetic_metric(file) for file in files]


def synthetic_overview(repo_name: str) -> RepoHealthOverview:
    """Synthetic repository overview derived from the repository name."""
    h = path_hash(repo_name)
    return RepoHealthOverview(
        total_commits=h % 1000 + 100,
        active_contributors=h % 50 + 5,
        avg_file_churn=float(h % 30 + 5),
    )
