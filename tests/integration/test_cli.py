"""Integration tests for the CLI.

Commands run through typer's CliRunner. Pipelines are built from a fake
GitHub, a stub analysis provider and a shared in-memory store so that state
persists across invocations.
"""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from openroad import __version__
from openroad.cli import app
from openroad.config import GitHubConfig, OpenRoadConfig, StorageConfig
from openroad.github import GitHubFetcher
from openroad.llm import AnalysisOrchestrator
from openroad.metrics import HealthMetricsProvider, synthetic_metric
from openroad.pipeline import PipelineCoordinator
from openroad.storage import RoadmapStore, StoreState
from tests.fixtures import SAMPLE_ANALYSIS_JSON, FakeGitHub, StubProvider

runner = CliRunner()

URL = "https://github.com/octo/demo"
FILES = ["README.md", "src/app.py", "src/services/users.py", "src/models/user.py"]


def _payload(output: str) -> dict[str, Any]:
    """First JSON object in the output (log lines may surround it)."""
    start = output.index("{")
    data, _ = json.JSONDecoder().raw_decode(output[start:])
    return data


class FakeBackends:
    """Builds pipelines over fake upstreams sharing one memory store."""

    def __init__(self, github: FakeGitHub, provider: StubProvider) -> None:
        self.github = github
        self.provider = provider
        self.state = StoreState(StorageConfig())

    def build(self, config: OpenRoadConfig) -> PipelineCoordinator:
        return PipelineCoordinator(
            fetcher=GitHubFetcher(GitHubConfig(token="ghp_test"), client=self.github.client()),
            orchestrator=AnalysisOrchestrator([self.provider]),
            metrics=HealthMetricsProvider(),
            store=RoadmapStore(self.state),
        )


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run each command in an empty directory so no config file is found."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def backends(workdir: Path) -> Iterator[FakeBackends]:
    fakes = FakeBackends(FakeGitHub(FILES), StubProvider("stub", text=SAMPLE_ANALYSIS_JSON))
    with patch("openroad.cli.PipelineCoordinator.from_config", side_effect=fakes.build):
        yield fakes


class TestGlobalOptions:
    """Tests for global options."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"openroad {__version__}" in result.output

    def test_missing_config_file(self, workdir: Path) -> None:
        result = runner.invoke(app, ["--config", str(workdir / "nope.yaml"), "check"])

        assert result.exit_code != 0


class TestAnalyzeCommand:
    """Tests for openroad analyze."""

    def test_json_output(self, backends: FakeBackends) -> None:
        result = runner.invoke(app, ["analyze", URL, "--json"])

        assert result.exit_code == 0, result.output
        payload = _payload(result.output)
        assert payload["success"] is True
        roadmap = payload["roadmap"]
        assert roadmap["repo_name"] == "demo"
        assert roadmap["owner"] == "octo"
        assert roadmap["analysis"]["tech_stack"] == ["Python", "Flask", "SQLAlchemy"]
        assert roadmap["health_metrics"][0] == synthetic_metric("src/app.py").to_dict()

    def test_summary_output(self, backends: FakeBackends) -> None:
        result = runner.invoke(app, ["analyze", URL])

        assert result.exit_code == 0, result.output
        assert "octo/demo" in result.output
        assert "Tech stack: Python, Flask, SQLAlchemy" in result.output
        assert "src/services/users.py [intermediate," in result.output

    def test_second_run_is_cached(self, backends: FakeBackends) -> None:
        runner.invoke(app, ["analyze", URL])
        runner.invoke(app, ["analyze", URL])

        assert len(backends.provider.requests) == 1

    def test_force_refresh(self, backends: FakeBackends) -> None:
        runner.invoke(app, ["analyze", URL])
        runner.invoke(app, ["analyze", URL, "--force-refresh"])

        assert len(backends.provider.requests) == 2

    def test_output_file(self, backends: FakeBackends, workdir: Path) -> None:
        output = workdir / "docs" / "ROADMAP.md"

        result = runner.invoke(app, ["analyze", URL, "--output", str(output)])

        assert result.exit_code == 0, result.output
        assert output.read_text(encoding="utf-8").startswith("# octo/demo Contributor Roadmap")

    def test_not_found_payload(self, backends: FakeBackends) -> None:
        backends.github.probe_status = 404

        result = runner.invoke(app, ["analyze", URL, "--json"])

        assert result.exit_code == 1
        payload = _payload(result.output)
        assert payload["success"] is False
        assert payload["code"] == "not_found"
        assert payload["retryable"] is False

    def test_invalid_reference(self, backends: FakeBackends) -> None:
        result = runner.invoke(app, ["analyze", "not a repository", "--json"])

        assert result.exit_code == 1
        assert _payload(result.output)["code"] == "invalid_reference"

    def test_providers_exhausted(self, backends: FakeBackends) -> None:
        backends.provider.error = "503 Service Unavailable"

        result = runner.invoke(app, ["analyze", URL, "--json"])

        assert result.exit_code == 1
        payload = _payload(result.output)
        assert payload["code"] == "provider_exhausted"
        assert payload["retryable"] is True
        assert "stub: 503 Service Unavailable" in payload["error"]


class TestRoadmapsCommands:
    """Tests for openroad roadmaps."""

    def test_list_empty(self, backends: FakeBackends) -> None:
        result = runner.invoke(app, ["roadmaps", "list"])

        assert result.exit_code == 0
        assert "No roadmaps stored yet" in result.output

    def test_list_show_delete(self, backends: FakeBackends) -> None:
        analyzed = _payload(runner.invoke(app, ["analyze", URL, "--json"]).output)
        roadmap_id = analyzed["roadmap"]["id"]

        listed = runner.invoke(app, ["roadmaps", "list", "--json"])
        assert [r["id"] for r in _payload(listed.output)["roadmaps"]] == [roadmap_id]

        shown = runner.invoke(app, ["roadmaps", "show", URL])
        assert shown.exit_code == 0
        assert "## Where to Start" in shown.output

        deleted = runner.invoke(app, ["roadmaps", "delete", roadmap_id])
        assert deleted.exit_code == 0
        assert f"Deleted roadmap {roadmap_id}" in deleted.output

        again = runner.invoke(app, ["roadmaps", "delete", roadmap_id])
        assert again.exit_code == 1

    def test_show_unknown(self, backends: FakeBackends) -> None:
        result = runner.invoke(app, ["roadmaps", "show", URL, "--json"])

        assert result.exit_code == 1
        assert _payload(result.output)["success"] is False


class TestHealthCommands:
    """Tests for openroad health."""

    def test_files(self, backends: FakeBackends) -> None:
        result = runner.invoke(
            app, ["health", "files", "src/app.py", "README.md", "--repo", "demo", "--json"]
        )

        assert result.exit_code == 0, result.output
        metrics = _payload(result.output)["metrics"]
        assert [m["file"] for m in metrics] == ["src/app.py", "README.md"]
        assert metrics[1] == synthetic_metric("README.md").to_dict()

    def test_repo(self, backends: FakeBackends) -> None:
        result = runner.invoke(app, ["health", "repo", "demo"])

        assert result.exit_code == 0, result.output
        assert "Total commits:" in result.output


class TestCheckCommand:
    """Tests for openroad check."""

    def test_missing_credentials_fail(self, workdir: Path) -> None:
        result = runner.invoke(app, ["check", "--json"])

        assert result.exit_code == 1
        payload = _payload(result.output)
        assert payload["success"] is False
        assert any(e.startswith("github-token:") for e in payload["errors"])

    def test_optional_warnings(self, workdir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
        monkeypatch.setenv("GEMINI_API_KEY", "g-key")

        result = runner.invoke(app, ["check"])

        assert result.exit_code == 2, result.output
        assert "passed with WARNINGS" in result.output
        assert "mongodb" in result.output


class TestInitCommand:
    """Tests for openroad init."""

    def test_writes_config(self, workdir: Path) -> None:
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        config_file = workdir / ".openroad" / "config.yaml"
        assert "${GITHUB_TOKEN:-}" in config_file.read_text(encoding="utf-8")

    def test_refuses_overwrite(self, workdir: Path) -> None:
        runner.invoke(app, ["init"])

        assert runner.invoke(app, ["init"]).exit_code == 1
        assert runner.invoke(app, ["init", "--force"]).exit_code == 0
