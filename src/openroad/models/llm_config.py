"""Analysis provider configuration entity.

Defines one entry of the ordered provider fallback chain.
Supports multiple providers through LiteLLM: Gemini, Claude, OpenAI,
Ollama, and Bedrock.
"""

from dataclasses import dataclass

# Valid LLM providers
VALID_PROVIDERS = frozenset({"gemini", "claude", "openai", "ollama", "bedrock"})

# Providers authenticated by an API key
KEYED_PROVIDERS = frozenset({"gemini", "claude", "openai"})

# LiteLLM model prefixes
_LITELLM_PREFIXES = {
    "gemini": "gemini",
    "claude": "anthropic",
    "openai": "openai",
    "ollama": "ollama",
    "bedrock": "bedrock",
}


@dataclass
class ProviderConfig:
    """Configuration for a single analysis provider.

    Attributes:
        provider: LLM provider (gemini, claude, openai, ollama, bedrock)
        model: Model identifier (e.g., "gemini-1.5-flash")
        api_key: API key (not required for Ollama or Bedrock)
        api_base: API base URL (required for Ollama)
    """

    provider: str
    model: str
    api_key: str | None = None
    api_base: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.provider = self.provider.lower().strip()

        if self.provider not in VALID_PROVIDERS:
            raise ValueError(
                f"Invalid provider '{self.provider}'. "
                f"Must be one of: {sorted(VALID_PROVIDERS)}"
            )

        if not self.model or not self.model.strip():
            raise ValueError("Model identifier cannot be empty")
        self.model = self.model.strip()

        # Empty strings from ${VAR:-} substitution mean "not configured"
        self.api_key = self.api_key or None
        self.api_base = self.api_base or None

        if self.provider == "ollama" and not self.api_base:
            self.api_base = "http://localhost:11434"

    @property
    def name(self) -> str:
        """Display name used in logs and failure reports."""
        return f"{self.provider}/{self.model}"

    @property
    def has_credentials(self) -> bool:
        """Return True if the provider can be called as configured."""
        if self.provider in KEYED_PROVIDERS:
            return bool(self.api_key)
        return True

    def validate(self) -> list[str]:
        """Validate configuration and return warnings.

        Returns:
            List of warning messages (empty if no warnings)
        """
        warnings: list[str] = []

        if not self.has_credentials:
            warnings.append(f"No api_key configured for {self.name}; it will be skipped")

        if (
            self.provider == "ollama"
            and self.api_base
            and not self.api_base.startswith(("http://", "https://"))
        ):
            warnings.append(
                f"api_base '{self.api_base}' does not start with http:// or https://"
            )

        return warnings

    def to_dict(self) -> dict[str, str | None]:
        """Convert to dictionary for serialization (api_key redacted)."""
        return {
            "provider": self.provider,
            "model": self.model,
            "api_key": "***" if self.api_key else None,
            "api_base": self.api_base,
        }

    @classmethod
    def from_dict(cls, data: dict[str, str | None]) -> "ProviderConfig":
        return cls(
            provider=str(data.get("provider", "")),
            model=str(data.get("model", "")),
            api_key=data.get("api_key") or None,
            api_base=data.get("api_base") or None,
        )

    def get_litellm_model_name(self) -> str:
        """Get the model name in LiteLLM provider/model format."""
        return f"{_LITELLM_PREFIXES[self.provider]}/{self.model}"
