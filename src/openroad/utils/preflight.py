"""Preflight validation for ``openroad check``.

Reports, before any repository is analyzed, whether the configuration and
installed packages can support a full run. Required checks cover what every
analysis needs. Optional checks cover the durable store and live metrics,
which degrade to in-memory storage and synthetic metrics when missing.
"""

import importlib.metadata
import importlib.util
from dataclasses import dataclass, field
from typing import Any

from openroad.config import (
    AnalyticsConfig,
    GitHubConfig,
    LLMConfig,
    OpenRoadConfig,
    StorageConfig,
)


@dataclass
class ToolCheck:
    """Result of a single preflight check.

    Attributes:
        name: Check name
        available: Whether the check passed
        version: Package version if applicable
        required: Whether a failure blocks analysis
        message: Human-readable context
    """

    name: str
    available: bool
    version: str | None = None
    required: bool = True
    message: str = ""


@dataclass
class PreflightResult:
    """Result of preflight validation.

    Attributes:
        success: Whether every required check passed
        checks: Individual check results
        errors: Messages for failed required checks
        warnings: Messages for failed optional checks
    """

    success: bool = True
    checks: list[ToolCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_check(self, check: ToolCheck) -> None:
        """Add a check result."""
        self.checks.append(check)

        if not check.available:
            if check.required:
                self.success = False
                self.errors.append(f"{check.name}: {check.message}")
            else:
                self.warnings.append(f"{check.name}: {check.message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "success": self.success,
            "checks": [
                {
                    "name": c.name,
                    "available": c.available,
                    "version": c.version,
                    "required": c.required,
                    "message": c.message,
                }
                for c in self.checks
            ],
            "errors": self.errors,
            "warnings": self.warnings,
        }


class PreflightChecker:
    """Validates configuration and package availability.

    Usage:
        result = PreflightChecker().check_all(config)
        if not result.success:
            raise typer.Exit(1)
    """

    def check_package(
        self,
        module: str,
        distribution: str | None = None,
        required: bool = True,
        purpose: str = "",
    ) -> ToolCheck:
        """Check that a Python package is importable.

        Args:
            module: Import name
            distribution: Name on the package index (defaults to module)
            required: Whether the package is required
            purpose: What the package is used for
        """
        distribution = distribution or module
        if importlib.util.find_spec(module) is None:
            return ToolCheck(
                name=distribution,
                available=False,
                required=required,
                message=f"Install with: pip install {distribution}",
            )

        try:
            version = importlib.metadata.version(distribution)
        except importlib.metadata.PackageNotFoundError:
            version = None

        return ToolCheck(
            name=distribution,
            available=True,
            version=version,
            required=required,
            message=purpose,
        )

    def check_github(self, config: GitHubConfig) -> ToolCheck:
        if config.token:
            return ToolCheck(
                name="github-token",
                available=True,
                message=f"Token configured for {config.api_base}",
            )
        return ToolCheck(
            name="github-token",
            available=False,
            message="Set github.token or the GITHUB_TOKEN environment variable",
        )

    def check_providers(self, config: LLMConfig) -> ToolCheck:
        """Check that at least one analysis provider can be called."""
        usable = config.usable_providers
        if usable:
            names = ", ".join(p.name for p in usable)
            return ToolCheck(
                name="analysis-providers",
                available=True,
                message=f"{len(usable)} of {len(config.providers)} usable: {names}",
            )
        if not config.providers:
            message = "No providers configured under llm.providers"
        else:
            message = "No provider has credentials. Set GEMINI_API_KEY or llm.providers[].api_key"
        return ToolCheck(name="analysis-providers", available=False, message=message)

    def check_storage(self, config: StorageConfig) -> ToolCheck:
        """Check durable storage settings (optional)."""
        package = self.check_package("pymongo", required=False)
        if not package.available:
            return package
        if not config.configured:
            return ToolCheck(
                name="mongodb",
                available=False,
                version=package.version,
                required=False,
                message="MONGODB_URI not set; roadmaps will be kept in memory only",
            )
        return ToolCheck(
            name="mongodb",
            available=True,
            version=package.version,
            required=False,
            message=f"Durable store: {config.database}.{config.collection}",
        )

    def check_analytics(self, config: AnalyticsConfig) -> ToolCheck:
        """Check live metrics settings (optional)."""
        if config.configured:
            return ToolCheck(
                name="snowflake",
                available=True,
                required=False,
                message=f"Live metrics from account {config.account}",
            )
        return ToolCheck(
            name="snowflake",
            available=False,
            required=False,
            message="Snowflake credentials not set; health metrics will be synthetic",
        )

    def check_all(self, config: OpenRoadConfig) -> PreflightResult:
        """Run all preflight checks.

        Args:
            config: Loaded configuration

        Returns:
            PreflightResult with all check results
        """
        result = PreflightResult()

        result.add_check(self.check_github(config.github))
        result.add_check(self.check_providers(config.llm))
        result.add_check(self.check_package("litellm", purpose="Unified LLM interface"))
        result.add_check(self.check_package("httpx", purpose="Async HTTP client"))
        result.add_check(self.check_storage(config.storage))
        result.add_check(self.check_analytics(config.analytics))

        return result
