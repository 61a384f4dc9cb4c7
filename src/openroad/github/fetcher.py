"""Repository context retrieval from the GitHub REST API.

Resolves a repository URL, verifies the repository exists, then fetches the
README and a filtered, depth-bounded file tree concurrently.

The tree is walked level by level from an explicit work list of
(path, remaining_depth) pairs; listings of one level are fetched
concurrently, bounded by a semaphore.
"""

import asyncio
import base64
import logging
import re
from collections.abc import Coroutine, Iterable
from typing import Any, TypeVar
from urllib.parse import quote

import httpx

from openroad.config import GitHubConfig
from openroad.errors import AccessDenied, InvalidReference, NotFound, UpstreamError
from openroad.github.filters import is_excluded
from openroad.models import EntryKind, FileEntry, RepositoryContext, RepositoryRef

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "No README found for this repository."

USER_AGENT = "OpenRoad-Agent/1.0"

T = TypeVar("T")

_OWNER = r"[A-Za-z0-9_-]+"
_NAME = r"[A-Za-z0-9_.-]+"
_URL_PATTERNS = (
    re.compile(rf"^git@github\.com:(?P<owner>{_OWNER})/(?P<repo>{_NAME})/?$"),
    re.compile(
        rf"^(?:https?://)?(?:www\.)?github\.com/(?P<owner>{_OWNER})/(?P<repo>{_NAME})(?:[/?#].*)?$",
        re.IGNORECASE,
    ),
    re.compile(rf"^(?P<owner>{_OWNER})/(?P<repo>{_NAME})/?$"),
)


def parse_github_url(url: str) -> RepositoryRef:
    """Parse owner and repository name from a GitHub URL.

    Tolerates a trailing slash, a trailing ``.git``, extra path segments
    (``/tree/main``), SSH remotes and bare ``owner/repo`` references.

    Raises:
        InvalidReference: If the URL cannot be parsed
    """
    candidate = (url or "").strip()
    for pattern in _URL_PATTERNS:
        match = pattern.match(candidate)
        if match:
            owner = match.group("owner")
            repo = re.sub(r"\.git$", "", match.group("repo"))
            if repo in {"", ".", ".."}:
                break
            return RepositoryRef(owner=owner, repo=repo)

    raise InvalidReference(
        f"Invalid GitHub URL: {url!r}. Please provide a valid repository URL."
    )


async def _run_all(coros: Iterable[Coroutine[Any, Any, T]]) -> list[T]:
    """Run coroutines concurrently, cancelling the rest on the first failure.

    The first failure is re-raised as is rather than as an exception group.
    """
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(coro) for coro in coros]
    except ExceptionGroup as group_error:
        error: BaseException = group_error
        while isinstance(error, BaseExceptionGroup):
            error = error.exceptions[0]
        raise error from error.__cause__
    return [task.result() for task in tasks]


class GitHubFetcher:
    """Fetches repository context from GitHub.

    Usage:
        async with GitHubFetcher(config.github) as fetcher:
            context = await fetcher.fetch("https://github.com/owner/repo")
    """

    def __init__(
        self,
        config: GitHubConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: GitHub settings (defaults if None)
            client: HTTP client to use (one is created and owned if None)
        """
        self.config = config or GitHubConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.config.api_base,
            headers=self._headers(),
            timeout=self.config.timeout,
        )

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        return headers

    async def __aenter__(self) -> "GitHubFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, repo_url: str) -> RepositoryContext:
        """Fetch the README and file tree of a repository.

        Args:
            repo_url: Repository URL

        Returns:
            RepositoryContext for the repository

        Raises:
            InvalidReference: URL cannot be parsed
            NotFound: Repository does not exist or is private
            AccessDenied: Token is not authorized for the repository
            UpstreamError: Any other upstream failure
        """
        ref = parse_github_url(repo_url)
        logger.info("Fetching repository %s", ref.full_name)

        await self._probe(ref)

        description, tree = await _run_all(
            [self.fetch_description(ref), self.fetch_tree(ref)]
        )

        logger.info(
            "Fetched %s: %d tree entries, %d description chars",
            ref.full_name,
            len(tree),
            len(description),
        )

        return RepositoryContext(
            description=description,
            repo_name=ref.repo,
            owner=ref.owner,
            file_tree=tuple(tree),
        )

    async def _get(self, path: str) -> httpx.Response:
        try:
            return await self._client.get(path)
        except httpx.TimeoutException as e:
            raise UpstreamError(f"GitHub request timed out: {path}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"GitHub request failed: {e}") from e

    async def _probe(self, ref: RepositoryRef) -> None:
        """Verify the repository exists and is accessible."""
        response = await self._get(f"/repos/{ref.owner}/{ref.repo}")

        if response.is_success:
            return
        if response.status_code == 404:
            raise NotFound("Repository not found. It may be private or does not exist.")
        if response.status_code in (401, 403):
            raise AccessDenied("Access denied. The repository may be private.")
        raise UpstreamError(
            f"Failed to access repository: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )

    async def fetch_description(self, ref: RepositoryRef) -> str:
        """Fetch the README, substituting a sentinel when there is none."""
        response = await self._get(f"/repos/{ref.owner}/{ref.repo}/readme")

        if response.status_code == 404:
            return NO_DESCRIPTION
        if not response.is_success:
            raise UpstreamError(
                f"Failed to fetch README: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        data = response.json()
        if not isinstance(data, dict):
            return NO_DESCRIPTION

        content = data.get("content") or ""
        if data.get("encoding") == "base64":
            return base64.b64decode(content).decode("utf-8", errors="replace")
        return str(content)

    async def fetch_tree(self, ref: RepositoryRef) -> list[FileEntry]:
        """Fetch the filtered file tree down to the configured depth."""
        semaphore = asyncio.Semaphore(self.config.concurrency)
        patterns = tuple(self.config.exclude_patterns)

        entries: list[FileEntry] = []
        seen: set[str] = set()
        work: list[tuple[str, int]] = [("", self.config.max_depth)]

        while work:
            listings = await _run_all(
                self._list_directory(ref, path, semaphore) for path, _ in work
            )

            next_work: list[tuple[str, int]] = []
            for (_, remaining), items in zip(work, listings, strict=True):
                for entry in items:
                    if entry.path in seen or is_excluded(entry.path, patterns):
                        continue
                    seen.add(entry.path)
                    entries.append(entry)

                    if entry.is_dir and remaining - 1 > 0:
                        next_work.append((entry.path, remaining - 1))

            work = next_work

        return entries

    async def _list_directory(
        self,
        ref: RepositoryRef,
        path: str,
        semaphore: asyncio.Semaphore,
    ) -> list[FileEntry]:
        """List the immediate children of one directory.

        A directory that no longer exists yields an empty listing.
        """
        url = f"/repos/{ref.owner}/{ref.repo}/contents/{quote(path, safe='/')}"

        async with semaphore:
            response = await self._get(url)

        if response.status_code == 404:
            logger.debug("Directory disappeared during listing: %s", path or "/")
            return []
        if not response.is_success:
            raise UpstreamError(
                f"Failed to fetch file tree: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        payload = response.json()
        if not isinstance(payload, list):
            return []

        items: list[FileEntry] = []
        for item in payload:
            if not isinstance(item, dict) or not item.get("path"):
                continue
            size = item.get("size")
            items.append(
                FileEntry(
                    path=str(item["path"]),
                    kind=EntryKind.coerce(item.get("type")),
                    name=str(item.get("name") or str(item["path"]).rsplit("/", 1)[-1]),
                    size=size if isinstance(size, int) and not isinstance(size, bool) else None,
                )
            )
        return items
