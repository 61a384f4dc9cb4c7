"""Error taxonomy for the roadmap pipeline.

User-visible errors abort the pipeline and carry a retry hint:
- InvalidReference: repository URL could not be parsed (not retryable)
- NotFound / AccessDenied: upstream rejected the repository (not retryable)
- UpstreamError: any other upstream failure (retryable)
- ProviderExhausted: every analysis provider failed (retryable)
- ParseError: a provider answered with unusable output (retryable)

Internal errors are absorbed by a fallback and only ever logged:
- StorageDegraded: durable tier unavailable, in-memory tier used instead
- MetricsUnavailable: live metrics failed, synthetic metrics used instead
"""

from typing import Any


class OpenRoadError(Exception):
    """Base class for all OpenRoad errors."""

    code: str = "error"
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Convert to a structured failure payload."""
        return {
            "success": False,
            "error": self.message,
            "code": self.code,
            "retryable": self.retryable,
        }


class InvalidReference(OpenRoadError):
    """Repository identifier could not be parsed into owner and repo."""

    code = "invalid_reference"


class NotFound(OpenRoadError):
    """Repository does not exist or is not visible with the configured token."""

    code = "not_found"


class AccessDenied(OpenRoadError):
    """Upstream refused access to the repository."""

    code = "access_denied"


class UpstreamError(OpenRoadError):
    """Unexpected upstream response or transport failure."""

    code = "upstream_error"
    retryable = True

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderError(OpenRoadError):
    """A single analysis provider failed to produce a response."""

    code = "provider_error"
    retryable = True

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderExhausted(OpenRoadError):
    """Every configured analysis provider failed."""

    code = "provider_exhausted"
    retryable = True

    def __init__(self, failures: list[str]) -> None:
        last = failures[-1] if failures else "no providers configured"
        super().__init__(f"Analysis failed (tried {len(failures)} provider(s)): {last}")
        self.failures = failures


class ParseError(OpenRoadError):
    """Provider output was not valid structured data."""

    code = "parse_error"
    retryable = True


class StorageDegraded(OpenRoadError):
    """Durable storage is unavailable; the in-memory tier is in use."""

    code = "storage_degraded"
    retryable = True


class MetricsUnavailable(OpenRoadError):
    """Live health metrics could not be retrieved."""

    code = "metrics_unavailable"
    retryable = True
