"""Test fixtures for OpenRoad.

This package provides fake upstream services for tests that exercise HTTP
collaborators through ``httpx.MockTransport``:
- FakeGitHub: serves repository probe, README and directory listings
- StubProvider: analysis provider returning canned text or raising
- SAMPLE_ANALYSIS_JSON: a well-formed analysis provider answer
"""

import base64
import json
from collections.abc import Iterable
from urllib.parse import unquote

import httpx

from openroad.errors import ProviderError
from openroad.llm.prompts import AnalysisRequest

SAMPLE_ANALYSIS = {
    "techStack": ["Python", "Flask", "SQLAlchemy"],
    "architectureSummary": "A small Flask web application with a service layer.",
    "dataFlow": "Requests enter through app.py, pass to services, and persist via models.",
    "entryPoints": [
        {
            "file": "src/app.py",
            "description": "Add a health check route.",
            "difficulty": "beginner",
        },
        {
            "file": "src/services/users.py",
            "description": "Add pagination to the user listing.",
            "difficulty": "intermediate",
        },
        {
            "file": "src/models/user.py",
            "description": "Introduce soft deletes for users.",
            "difficulty": "advanced",
        },
    ],
}

SAMPLE_ANALYSIS_JSON = json.dumps(SAMPLE_ANALYSIS)


class FakeGitHub:
    """In-memory GitHub repository served over httpx.MockTransport.

    Directories are implied by file paths. Every request is recorded so tests
    can assert which endpoints were (or were not) called.
    """

    def __init__(
        self,
        files: Iterable[str],
        owner: str = "octo",
        repo: str = "demo",
        readme: str | None = "# Demo\n\nA demo repository.",
        probe_status: int = 200,
        missing_dirs: Iterable[str] = (),
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.readme = readme
        self.probe_status = probe_status
        self.missing_dirs = set(missing_dirs)
        self.requests: list[httpx.Request] = []

        self.files = set(files)
        self.dirs: set[str] = set()
        for path in self.files:
            parts = path.split("/")
            for i in range(1, len(parts)):
                self.dirs.add("/".join(parts[:i]))

    @property
    def prefix(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _children(self, directory: str) -> list[dict]:
        children = []
        for path in sorted(self.files | self.dirs):
            parent, _, name = path.rpartition("/")
            if parent == directory:
                kind = "dir" if path in self.dirs else "file"
                children.append(
                    {"path": path, "name": name, "type": kind, "size": 0 if kind == "dir" else 42}
                )
        return children

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = unquote(request.url.path)

        if path == self.prefix:
            if self.probe_status != 200:
                return httpx.Response(self.probe_status, json={"message": "nope"})
            return httpx.Response(200, json={"full_name": f"{self.owner}/{self.repo}"})

        if path == f"{self.prefix}/readme":
            if self.readme is None:
                return httpx.Response(404, json={"message": "Not Found"})
            content = base64.b64encode(self.readme.encode()).decode()
            return httpx.Response(200, json={"content": content, "encoding": "base64"})

        contents = f"{self.prefix}/contents"
        if path == contents or path.startswith(contents + "/"):
            directory = path[len(contents):].strip("/")
            if directory in self.missing_dirs:
                return httpx.Response(404, json={"message": "Not Found"})
            if directory and directory not in self.dirs:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json=self._children(directory))

        return httpx.Response(404, json={"message": "Not Found"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url="https://api.github.com",
            transport=httpx.MockTransport(self.handler),
        )

    def listed_dirs(self) -> list[str]:
        """Directories whose contents were requested ("" is the root)."""
        contents = f"{self.prefix}/contents"
        return [
            unquote(r.url.path)[len(contents):].strip("/")
            for r in self.requests
            if unquote(r.url.path).startswith(contents)
        ]


class StubProvider:
    """Analysis provider returning canned text, or raising ProviderError."""

    def __init__(self, name: str, text: str | None = None, error: str | None = None) -> None:
        self._name = name
        self.text = text
        self.error = error
        self.requests: list[AnalysisRequest] = []

    @property
    def name(self) -> str:
        return self._name

    async def attempt(self, request: AnalysisRequest) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise ProviderError(self._name, self.error)
        return self.text or ""
