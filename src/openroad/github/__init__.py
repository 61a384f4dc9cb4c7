"""GitHub repository context retrieval.

- fetcher: existence probe, README and depth-bounded file tree
- filters: exclusion rules applied to every tree entry
"""

from openroad.github.fetcher import NO_DESCRIPTION, GitHubFetcher, parse_github_url
from openroad.github.filters import is_excluded

__all__ = [
    "NO_DESCRIPTION",
    "GitHubFetcher",
    "is_excluded",
    "parse_github_url",
]
