"""OpenRoad configuration system.

Configuration is YAML-based with minimal CLI overrides.
Supports environment variable substitution (${VAR} and ${VAR:-default}) in
config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.openroad/config.yaml
3. ./openroad.yaml

Without a file, the built-in default document is used, which reads
credentials from the environment.
"""

import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from openroad.models.llm_config import ProviderConfig

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class GitHubConfig:
    """Source-control host settings.

    Attributes:
        token: Bearer token for the GitHub REST API
        api_base: API base URL
        max_depth: Directory depth bound for tree retrieval
        concurrency: Maximum concurrent directory listings
        timeout: Per-request timeout in seconds
        description_limit: Characters of the README sent to analysis
        exclude_patterns: Extra fnmatch patterns excluded from the tree
    """

    token: str | None = None
    api_base: str = "https://api.github.com"
    max_depth: int = 3
    concurrency: int = 4
    timeout: float = 30.0
    description_limit: int = 8000
    exclude_patterns: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.token = self.token or None
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be at least 1 (got {self.max_depth})")
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be at least 1 (got {self.concurrency})")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive (got {self.timeout})")


def _default_providers() -> list[ProviderConfig]:
    api_key = os.environ.get("GEMINI_API_KEY") or None
    return [
        ProviderConfig(provider="gemini", model=model, api_key=api_key)
        for model in ("gemini-2.0-flash-exp", "gemini-1.5-flash", "gemini-1.5-flash-latest")
    ]


@dataclass
class LLMConfig:
    """Analysis provider chain and generation parameters.

    Attributes:
        providers: Providers in priority order
        temperature: Sampling temperature
        top_k: Top-k sampling (passed to providers that support it)
        top_p: Nucleus sampling
        max_tokens: Maximum response tokens
        timeout: Per-call timeout in seconds
        advance_on_parse_error: Treat unparseable output as a provider failure
    """

    providers: list[ProviderConfig] = field(default_factory=_default_providers)
    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_tokens: int = 4096
    timeout: float = 30.0
    advance_on_parse_error: bool = False

    def __post_init__(self) -> None:
        """Validate LLM configuration."""
        if not 0 <= self.temperature <= 2:
            raise ValueError(f"temperature must be between 0 and 2 (got {self.temperature})")
        if not 0 < self.top_p <= 1:
            raise ValueError(f"top_p must be in (0, 1] (got {self.top_p})")
        if self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive. Got: {self.max_tokens}")

    @property
    def usable_providers(self) -> list[ProviderConfig]:
        """Providers that have the credentials they need."""
        return [p for p in self.providers if p.has_credentials]

    def validate(self) -> list[str]:
        """Return configuration warnings."""
        warnings: list[str] = []
        for provider in self.providers:
            warnings.extend(provider.validate())
        if self.max_tokens < 1000:
            warnings.append(
                f"max_tokens is set to {self.max_tokens}, which may truncate responses"
            )
        return warnings


@dataclass
class StorageConfig:
    """Durable store settings.

    Attributes:
        mongodb_uri: MongoDB connection string (None selects in-memory storage)
        database: Database name when the URI does not name one
        collection: Collection holding roadmap documents
        timeout: Connection and socket timeout in seconds
        reconnect_interval: Seconds to wait before retrying a failed connection
    """

    mongodb_uri: str | None = None
    database: str = "openroad"
    collection: str = "roadmaps"
    timeout: float = 10.0
    reconnect_interval: float = 30.0

    def __post_init__(self) -> None:
        self.mongodb_uri = self.mongodb_uri or None

    @property
    def configured(self) -> bool:
        return self.mongodb_uri is not None


@dataclass
class AnalyticsConfig:
    """Snowflake analytics settings for live health metrics.

    Attributes:
        account: Snowflake account identifier
        user: Snowflake user
        password: Snowflake password
        database: Database holding the metrics tables
        schema: Schema holding the metrics tables
        warehouse: Warehouse used for queries
        timeout: Per-request timeout in seconds
    """

    account: str | None = None
    user: str | None = None
    password: str | None = None
    database: str = "GITHUB_ANALYTICS"
    schema: str = "PUBLIC"
    warehouse: str = "COMPUTE_WH"
    timeout: float = 30.0

    def __post_init__(self) -> None:
        self.account = self.account or None
        self.user = self.user or None
        self.password = self.password or None

    @property
    def configured(self) -> bool:
        """Return True if live metrics can be attempted."""
        return bool(self.account and self.user and self.password)


@dataclass
class CacheConfig:
    """Roadmap cache settings.

    Attributes:
        max_age_seconds: Age after which a stored roadmap is no longer a cache hit
    """

    max_age_seconds: float = 3600.0

    def __post_init__(self) -> None:
        if self.max_age_seconds < 0:
            raise ValueError(f"max_age_seconds must be >= 0 (got {self.max_age_seconds})")

    @property
    def max_age(self) -> timedelta:
        return timedelta(seconds=self.max_age_seconds)


@dataclass
class OpenRoadConfig:
    """Top-level OpenRoad configuration.

    Attributes:
        github: Source-control host settings
        llm: Analysis provider chain
        storage: Durable store settings
        analytics: Live metrics settings
        cache: Roadmap cache settings
    """

    github: GitHubConfig = field(default_factory=GitHubConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)

    # Runtime overrides (set by CLI)
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path

    def validate(self) -> list[str]:
        """Return configuration warnings across all sections."""
        warnings = self.llm.validate()
        if not self.github.token:
            warnings.append("No GitHub token configured; API rate limits will be low")
        if not self.llm.usable_providers:
            warnings.append("No analysis provider has credentials configured")
        if not self.storage.configured:
            warnings.append("No MongoDB URI configured; roadmaps are kept in memory only")
        if not self.analytics.configured:
            warnings.append("No Snowflake credentials configured; health metrics are synthetic")
        return warnings


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} and ${VAR:-default} syntax.
    Example: ${GITHUB_TOKEN} -> value of GITHUB_TOKEN

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a variable without default is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name, default = match.group(1), match.group(2)
            env_value = os.environ.get(var_name)
            if env_value is None:
                if default is None:
                    raise ValueError(f"Environment variable not set: {var_name}")
                return default
            return env_value

        return _ENV_PATTERN.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.openroad/config.yaml
    2. ./openroad.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".openroad" / "config.yaml",
        start_path / "openroad.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


def load_config_from_dict(data: dict[str, Any]) -> OpenRoadConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        OpenRoadConfig instance
    """
    data = substitute_env_vars(data)
    config = OpenRoadConfig()

    if "github" in data:
        gh = _section(data, "github")
        defaults = GitHubConfig()
        config.github = GitHubConfig(
            token=gh.get("token"),
            api_base=str(gh.get("api_base", defaults.api_base)).rstrip("/"),
            max_depth=int(gh.get("max_depth", defaults.max_depth)),
            concurrency=int(gh.get("concurrency", defaults.concurrency)),
            timeout=float(gh.get("timeout", defaults.timeout)),
            description_limit=int(gh.get("description_limit", defaults.description_limit)),
            exclude_patterns=list(gh.get("exclude_patterns") or []),
        )

    if "llm" in data:
        llm = _section(data, "llm")
        defaults_llm = LLMConfig(providers=[])
        providers = (
            [ProviderConfig.from_dict(p) for p in llm["providers"]]
            if "providers" in llm
            else _default_providers()
        )
        config.llm = LLMConfig(
            providers=providers,
            temperature=float(llm.get("temperature", defaults_llm.temperature)),
            top_k=int(llm.get("top_k", defaults_llm.top_k)),
            top_p=float(llm.get("top_p", defaults_llm.top_p)),
            max_tokens=int(llm.get("max_tokens", defaults_llm.max_tokens)),
            timeout=float(llm.get("timeout", defaults_llm.timeout)),
            advance_on_parse_error=bool(llm.get("advance_on_parse_error", False)),
        )

    if "storage" in data:
        st = _section(data, "storage")
        defaults_st = StorageConfig()
        config.storage = StorageConfig(
            mongodb_uri=st.get("mongodb_uri"),
            database=st.get("database", defaults_st.database),
            collection=st.get("collection", defaults_st.collection),
            timeout=float(st.get("timeout", defaults_st.timeout)),
            reconnect_interval=float(st.get("reconnect_interval", defaults_st.reconnect_interval)),
        )

    if "analytics" in data:
        an = _section(data, "analytics")
        defaults_an = AnalyticsConfig()
        config.analytics = AnalyticsConfig(
            account=an.get("account"),
            user=an.get("user"),
            password=an.get("password"),
            database=an.get("database", defaults_an.database),
            schema=an.get("schema", defaults_an.schema),
            warehouse=an.get("warehouse", defaults_an.warehouse),
            timeout=float(an.get("timeout", defaults_an.timeout)),
        )

    if "cache" in data:
        cache = _section(data, "cache")
        config.cache = CacheConfig(
            max_age_seconds=float(cache.get("max_age_seconds", 3600)),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> OpenRoadConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        OpenRoadConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path) as f:
            data = yaml.safe_load(f) or {}
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = load_config_from_dict(yaml.safe_load(create_default_config()))

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# OpenRoad Configuration

# Source-control host
github:
  token: "${GITHUB_TOKEN:-}"
  max_depth: 3          # directory depth bound for the file tree
  concurrency: 4        # concurrent directory listings
  timeout: 30
  description_limit: 8000
  # exclude_patterns:
  #   - "docs/*"

# Analysis providers, tried in order until one answers
llm:
  providers:
    - provider: "gemini"
      model: "gemini-2.0-flash-exp"
      api_key: "${GEMINI_API_KEY:-}"
    - provider: "gemini"
      model: "gemini-1.5-flash"
      api_key: "${GEMINI_API_KEY:-}"
    - provider: "gemini"
      model: "gemini-1.5-flash-latest"
      api_key: "${GEMINI_API_KEY:-}"
  temperature: 0.7
  top_k: 40
  top_p: 0.95
  max_tokens: 4096
  timeout: 30
  advance_on_parse_error: false

# Durable store (in-memory fallback when unset or unreachable)
storage:
  mongodb_uri: "${MONGODB_URI:-}"
  database: "openroad"
  collection: "roadmaps"
  timeout: 10
  reconnect_interval: 30

# Live health metrics (synthetic metrics when unset or failing)
analytics:
  account: "${SNOWFLAKE_ACCOUNT:-}"
  user: "${SNOWFLAKE_USER:-}"
  password: "${SNOWFLAKE_PASSWORD:-}"
  database: "GITHUB_ANALYTICS"
  schema: "PUBLIC"
  warehouse: "COMPUTE_WH"

# Roadmap cache
cache:
  max_age_seconds: 3600
'''
