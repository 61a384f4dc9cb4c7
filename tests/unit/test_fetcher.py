"""Unit tests for GitHub repository context retrieval."""

import asyncio

import httpx
import pytest

from openroad.config import GitHubConfig
from openroad.errors import AccessDenied, InvalidReference, NotFound, UpstreamError
from openroad.github import NO_DESCRIPTION, GitHubFetcher, parse_github_url
from tests.fixtures import FakeGitHub


class TestParseGitHubUrl:
    """Tests for repository URL parsing."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/octo/demo",
            "https://github.com/octo/demo/",
            "https://github.com/octo/demo.git",
            "http://www.github.com/octo/demo",
            "github.com/octo/demo",
            "https://github.com/octo/demo/tree/main/src",
            "git@github.com:octo/demo.git",
            "octo/demo",
            "  https://github.com/octo/demo  ",
        ],
    )
    def test_valid_urls(self, url: str) -> None:
        ref = parse_github_url(url)

        assert ref.owner == "octo"
        assert ref.repo == "demo"

    def test_dotted_repo_name(self) -> None:
        ref = parse_github_url("https://github.com/vercel/next.js")

        assert ref.repo == "next.js"
        assert ref.url == "https://github.com/vercel/next.js"

    @pytest.mark.parametrize(
        "url",
        ["", "not a url", "https://gitlab.com/octo/demo", "https://github.com/octo", "octo"],
    )
    def test_invalid_urls(self, url: str) -> None:
        with pytest.raises(InvalidReference) as exc_info:
            parse_github_url(url)

        assert exc_info.value.retryable is False


class TestFetchTree:
    """Tests for the depth-bounded, filtered tree walk."""

    @pytest.mark.asyncio
    async def test_excluded_at_any_depth(self) -> None:
        """Test excluded directories are neither listed nor descended into."""
        github = FakeGitHub(
            [
                "README.md",
                "package-lock.json",
                "node_modules/react/index.js",
                "packages/web/node_modules/lodash/index.js",
                "packages/web/index.js",
                "packages/web/logo.png",
            ]
        )

        async with GitHubFetcher(GitHubConfig(), client=github.client()) as fetcher:
            context = await fetcher.fetch("https://github.com/octo/demo")

        paths = {e.path for e in context.file_tree}
        assert paths == {"README.md", "packages", "packages/web", "packages/web/index.js"}
        assert "node_modules" not in github.listed_dirs()
        assert "packages/web/node_modules" not in github.listed_dirs()

    @pytest.mark.asyncio
    async def test_depth_bound(self) -> None:
        """Test five levels of nesting are truncated at the default depth of 3."""
        github = FakeGitHub(["a/b/c/d/e/deep.py", "a/top.py"])

        async with GitHubFetcher(GitHubConfig(), client=github.client()) as fetcher:
            context = await fetcher.fetch("octo/demo")

        paths = {e.path for e in context.file_tree}
        assert paths == {"a", "a/top.py", "a/b", "a/b/c"}
        assert max(e.depth for e in context.file_tree) == 3
        assert sorted(github.listed_dirs()) == ["", "a", "a/b"]

    @pytest.mark.asyncio
    async def test_configured_depth(self) -> None:
        github = FakeGitHub(["a/b/c.py", "top.py"])
        config = GitHubConfig(max_depth=1)

        async with GitHubFetcher(config, client=github.client()) as fetcher:
            context = await fetcher.fetch("octo/demo")

        assert {e.path for e in context.file_tree} == {"a", "top.py"}

    @pytest.mark.asyncio
    async def test_vanished_subdirectory_is_empty(self) -> None:
        """Test a 404 on a subdirectory listing yields no children."""
        github = FakeGitHub(["src/app.py", "docs/guide.md"], missing_dirs=["docs"])

        async with GitHubFetcher(GitHubConfig(), client=github.client()) as fetcher:
            context = await fetcher.fetch("octo/demo")

        paths = {e.path for e in context.file_tree}
        assert paths == {"src", "src/app.py", "docs"}

    @pytest.mark.asyncio
    async def test_extra_patterns(self) -> None:
        github = FakeGitHub(["src/app.py", "docs/guide.md"])
        config = GitHubConfig(exclude_patterns=["docs"])

        async with GitHubFetcher(config, client=github.client()) as fetcher:
            context = await fetcher.fetch("octo/demo")

        assert {e.path for e in context.file_tree} == {"src", "src/app.py"}


class TestFetchDescription:
    """Tests for README retrieval."""

    @pytest.mark.asyncio
    async def test_readme_decoded(self) -> None:
        github = FakeGitHub(["README.md"], readme="# Hello\n\nWorld")

        async with GitHubFetcher(GitHubConfig(), client=github.client()) as fetcher:
            context = await fetcher.fetch("octo/demo")

        assert context.description == "# Hello\n\nWorld"
        assert context.repo_name == "demo"
        assert context.owner == "octo"

    @pytest.mark.asyncio
    async def test_missing_readme_sentinel(self) -> None:
        github = FakeGitHub(["src/app.py"], readme=None)

        async with GitHubFetcher(GitHubConfig(), client=github.client()) as fetcher:
            context = await fetcher.fetch("octo/demo")

        assert context.description == NO_DESCRIPTION


class TestProbe:
    """Tests for upstream error mapping."""

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        github = FakeGitHub([], probe_status=404)

        async with GitHubFetcher(GitHubConfig(), client=github.client()) as fetcher:
            with pytest.raises(NotFound):
                await fetcher.fetch("octo/demo")

        # Nothing beyond the probe is requested
        assert len(github.requests) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_access_denied(self, status: int) -> None:
        github = FakeGitHub([], probe_status=status)

        async with GitHubFetcher(GitHubConfig(), client=github.client()) as fetcher:
            with pytest.raises(AccessDenied):
                await fetcher.fetch("octo/demo")

    @pytest.mark.asyncio
    async def test_server_error_is_retryable(self) -> None:
        github = FakeGitHub([], probe_status=502)

        async with GitHubFetcher(GitHubConfig(), client=github.client()) as fetcher:
            with pytest.raises(UpstreamError) as exc_info:
                await fetcher.fetch("octo/demo")

        assert exc_info.value.retryable is True
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(
            base_url="https://api.github.com", transport=httpx.MockTransport(handler)
        )

        async with GitHubFetcher(GitHubConfig(), client=client) as fetcher:
            with pytest.raises(UpstreamError):
                await fetcher.fetch("octo/demo")

        await client.aclose()

    @pytest.mark.asyncio
    async def test_invalid_url_makes_no_request(self) -> None:
        github = FakeGitHub([])

        async with GitHubFetcher(GitHubConfig(), client=github.client()) as fetcher:
            with pytest.raises(InvalidReference):
                await fetcher.fetch("https://example.com/nothing")

        assert github.requests == []


class TestHeaders:
    """Tests for request headers."""

    def test_bearer_token_and_user_agent(self) -> None:
        fetcher = GitHubFetcher(GitHubConfig(token="ghp_abc"))
        headers = fetcher._headers()

        assert headers["Authorization"] == "Bearer ghp_abc"
        assert headers["User-Agent"] == "OpenRoad-Agent/1.0"
        assert headers["Accept"] == "application/vnd.github.v3+json"

    def test_no_token_no_authorization(self) -> None:
        assert "Authorization" not in GitHubFetcher(GitHubConfig())._headers()


class TestConcurrentFailure:
    """Tests for failures while README and tree are fetched together."""

    @pytest.mark.asyncio
    async def test_tree_failure_cancels_readme(self) -> None:
        cancelled: list[str] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path == "/repos/octo/demo":
                return httpx.Response(200, json={"full_name": "octo/demo"})
            if path.endswith("/readme"):
                try:
                    await asyncio.sleep(30)
                except asyncio.CancelledError:
                    cancelled.append(path)
                    raise
                return httpx.Response(404)
            if path.endswith("/contents/"):
                return httpx.Response(
                    200, json=[{"path": "src", "name": "src", "type": "dir"}]
                )
            return httpx.Response(500)

        client = httpx.AsyncClient(
            base_url="https://api.github.com", transport=httpx.MockTransport(handler)
        )

        async with GitHubFetcher(GitHubConfig(), client=client) as fetcher:
            with pytest.raises(UpstreamError) as exc_info:
                await fetcher.fetch("octo/demo")

        await client.aclose()

        assert exc_info.value.status_code == 500
        assert cancelled == ["/repos/octo/demo/readme"]
