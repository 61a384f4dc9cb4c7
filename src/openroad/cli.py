"""OpenRoad CLI interface.

Commands:
- analyze: Produce (or fetch from cache) the roadmap for a repository
- roadmaps list/show/delete: Browse stored roadmaps
- health files/repo: Health metrics for files or a whole repository
- check: Validate configuration and packages
- init: Write a default configuration file

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log lines
- --version: Show version and exit

Exit codes: 0 success, 1 error, 2 preflight warnings.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any, NoReturn, TypeVar

import typer

from openroad import __version__
from openroad.config import OpenRoadConfig, create_default_config, load_config
from openroad.errors import OpenRoadError
from openroad.models import Roadmap
from openroad.pipeline import PipelineCoordinator
from openroad.templates import RoadmapRenderer
from openroad.utils.logging import configure_from_cli, get_logger

T = TypeVar("T")

app = typer.Typer(
    name="openroad",
    help="Contributor roadmaps for GitHub repositories",
    add_completion=False,
    no_args_is_help=True,
)
roadmaps_app = typer.Typer(help="Browse stored roadmaps", no_args_is_help=True)
health_app = typer.Typer(help="Health metrics for files and repositories", no_args_is_help=True)
app.add_typer(roadmaps_app, name="roadmaps")
app.add_typer(health_app, name="health")

# Global state
_config: OpenRoadConfig | None = None
_logger = get_logger()

JsonOption = Annotated[bool, typer.Option("--json", help="Output results as JSON")]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"openroad {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output with timestamps"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress info messages (warnings and errors only)"),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option("--ci", help="Enable CI mode with JSON log output"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """OpenRoad - contributor roadmaps for GitHub repositories.

    Summarizes a repository's architecture, suggests where a new contributor
    should start, and scores those starting points by churn and bug frequency.
    """
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except Exception as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)


def _get_config() -> OpenRoadConfig:
    return _config if _config is not None else load_config()


def _run(action: Callable[[PipelineCoordinator], Awaitable[T]]) -> T:
    """Run an async action against a pipeline built from the loaded config."""

    async def runner() -> T:
        async with PipelineCoordinator.from_config(_get_config()) as pipeline:
            return await action(pipeline)

    return asyncio.run(runner())


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


def _fail(error: OpenRoadError, json_output: bool) -> NoReturn:
    if json_output:
        _echo_json(error.to_dict())
    else:
        _logger.error(error.message)
        if error.retryable:
            _logger.info("This error may be temporary; try again shortly")
    raise typer.Exit(1)


def _echo_roadmap_summary(roadmap: Roadmap) -> None:
    analysis = roadmap.analysis
    metrics = {m.file: m for m in roadmap.health_metrics}

    typer.echo(f"\n{roadmap.owner}/{roadmap.repo_name}  (roadmap {roadmap.id})\n")
    typer.echo(f"Tech stack: {', '.join(analysis.tech_stack)}")
    typer.echo(f"\n{analysis.architecture_summary}\n")
    typer.echo("Where to start:")
    for ep in analysis.entry_points:
        metric = metrics.get(ep.file)
        status = metric.status.value if metric else "unknown"
        typer.echo(f"  • {ep.file} [{ep.difficulty.value}, {status}]")
        typer.echo(f"     └─ {ep.description}")
    typer.echo()


# =============================================================================
# analyze command
# =============================================================================


@app.command()
def analyze(
    repo_url: Annotated[str, typer.Argument(help="GitHub repository URL or owner/repo")],
    force_refresh: Annotated[
        bool,
        typer.Option("--force-refresh", help="Ignore any cached roadmap"),
    ] = False,
    json_output: JsonOption = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the roadmap as Markdown to this file"),
    ] = None,
) -> None:
    """Produce the contributor roadmap for a repository.

    A roadmap stored within the cache window is returned without contacting
    GitHub or any analysis provider, unless --force-refresh is given.
    """
    try:
        roadmap = _run(lambda p: p.analyze_repository(repo_url, force_refresh=force_refresh))
    except OpenRoadError as e:
        _fail(e, json_output)

    if output is not None:
        path = RoadmapRenderer().render_to_file(roadmap, output)
        _logger.info(f"Roadmap written to {path}")

    if json_output:
        _echo_json({"success": True, "roadmap": roadmap.to_dict()})
    else:
        _echo_roadmap_summary(roadmap)


# =============================================================================
# roadmaps commands
# =============================================================================


@roadmaps_app.command("list")
def list_roadmaps(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum roadmaps (1-50)")] = 10,
    json_output: JsonOption = False,
) -> None:
    """List the most recently created roadmaps."""
    roadmaps = _run(lambda p: p.recent_roadmaps(limit))

    if json_output:
        _echo_json({"success": True, "roadmaps": [r.to_dict() for r in roadmaps]})
        return

    if not roadmaps:
        typer.echo("No roadmaps stored yet")
        return

    for roadmap in roadmaps:
        created = roadmap.created_at.strftime("%Y-%m-%d %H:%M")
        typer.echo(f"{roadmap.id}  {created}  {roadmap.repo_url}")


@roadmaps_app.command("show")
def show_roadmap(
    repo_url: Annotated[str, typer.Argument(help="Repository URL the roadmap was created for")],
    json_output: JsonOption = False,
) -> None:
    """Show the most recent stored roadmap for a repository as Markdown."""
    roadmap = _run(lambda p: p.roadmap_for(repo_url))

    if roadmap is None:
        if json_output:
            _echo_json({"success": False, "error": f"No roadmap stored for {repo_url}"})
        else:
            _logger.error(f"No roadmap stored for {repo_url}")
        raise typer.Exit(1)

    if json_output:
        _echo_json({"success": True, "roadmap": roadmap.to_dict()})
    else:
        typer.echo(RoadmapRenderer().render(roadmap))


@roadmaps_app.command("delete")
def delete_roadmap(
    roadmap_id: Annotated[str, typer.Argument(help="Roadmap ID")],
) -> None:
    """Delete a stored roadmap by ID."""
    if not _run(lambda p: p.delete_roadmap(roadmap_id)):
        _logger.error(f"Roadmap not found: {roadmap_id}")
        raise typer.Exit(1)

    typer.echo(f"Deleted roadmap {roadmap_id}")


# =============================================================================
# health commands
# =============================================================================


@health_app.command("files")
def health_files(
    files: Annotated[list[str], typer.Argument(help="File paths within the repository")],
    repo: Annotated[str, typer.Option("--repo", "-r", help="Repository name")],
    json_output: JsonOption = False,
) -> None:
    """Churn and bug frequency for individual files."""
    metrics = _run(lambda p: p.file_health(files, repo))

    if json_output:
        _echo_json({"success": True, "metrics": [m.to_dict() for m in metrics]})
        return

    for metric in metrics:
        typer.echo(
            f"{metric.status.value:<9} churn={metric.churn:<3} "
            f"bugs={metric.bug_frequency:<3} {metric.file}"
        )


@health_app.command("repo")
def health_repo(
    repo_name: Annotated[str, typer.Argument(help="Repository name")],
    json_output: JsonOption = False,
) -> None:
    """Repository-level activity overview."""
    overview = _run(lambda p: p.repo_health(repo_name))

    if json_output:
        _echo_json({"success": True, "overview": overview.to_dict()})
        return

    typer.echo(f"Total commits:       {overview.total_commits}")
    typer.echo(f"Active contributors: {overview.active_contributors}")
    typer.echo(f"Average file churn:  {overview.avg_file_churn:.1f}")


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(json_output: JsonOption = False) -> None:
    """Validate configuration and package availability.

    Exit codes:
        0: All checks passed
        1: One or more required checks failed
        2: Only optional checks failed (warnings)
    """
    from openroad.utils.preflight import PreflightChecker

    result = PreflightChecker().check_all(_get_config())

    if json_output:
        _echo_json(result.to_dict())
    else:
        typer.echo("\n🔍 Preflight Check Results\n")

        for check_result in result.checks:
            status = "✅" if check_result.available else "❌"
            version_str = f" ({check_result.version})" if check_result.version else ""
            required_str = " [required]" if check_result.required else " [optional]"

            typer.echo(f"  {status} {check_result.name}{version_str}{required_str}")
            if check_result.message:
                typer.echo(f"     └─ {check_result.message}")

        typer.echo()

    if result.errors:
        if not json_output:
            typer.echo("❌ Preflight check FAILED")
            for error in result.errors:
                typer.echo(f"   • {error}")
        raise typer.Exit(1)
    elif result.warnings:
        if not json_output:
            typer.echo("⚠️  Preflight check passed with WARNINGS")
            for warning in result.warnings:
                typer.echo(f"   • {warning}")
        raise typer.Exit(2)

    if not json_output:
        typer.echo("✅ All preflight checks passed")


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite existing config"),
    ] = False,
) -> None:
    """Write a default configuration file to .openroad/config.yaml.

    Credentials are read from environment variables referenced in the file.
    """
    config_dir = Path(".openroad")
    config_file = config_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_dir.mkdir(exist_ok=True)
    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.info(f"Created config: {config_file}")

    typer.echo("\n✅ OpenRoad configuration initialized")
    typer.echo(f"   Config: {config_file}")
    typer.echo("   Set GITHUB_TOKEN and GEMINI_API_KEY, then run: openroad check")
