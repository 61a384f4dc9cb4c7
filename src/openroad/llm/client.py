"""Analysis provider clients using LiteLLM.

Each provider of the fallback chain is a strategy object exposing
``attempt(request) -> str``. LiteLLMProvider covers every provider LiteLLM
supports (Gemini, Claude, OpenAI, Ollama, Bedrock) behind that interface.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

import litellm

from openroad.config import LLMConfig
from openroad.errors import ProviderError
from openroad.llm.prompts import AnalysisRequest
from openroad.models.llm_config import ProviderConfig

logger = logging.getLogger(__name__)

# Providers accepting top_k through LiteLLM
_TOP_K_PROVIDERS = frozenset({"gemini", "claude", "ollama"})


@dataclass
class LLMResponse:
    """Response from LLM completion.

    Attributes:
        content: Generated text content
        model: Model that generated the response
        usage: Token usage statistics
        finish_reason: Reason for completion (stop, length, etc.)
    """

    content: str
    model: str
    usage: dict[str, int]
    finish_reason: str | None = None


class AnalysisProvider(Protocol):
    """One entry of the ordered provider fallback chain."""

    @property
    def name(self) -> str: ...

    async def attempt(self, request: AnalysisRequest) -> str:
        """Send the request and return the generated text.

        Raises:
            ProviderError: If the provider call fails
        """
        ...


class LiteLLMProvider:
    """Analysis provider backed by ``litellm.acompletion``."""

    def __init__(self, config: ProviderConfig, timeout: float = 30.0) -> None:
        """Initialize the provider.

        Args:
            config: Provider, model and credentials
            timeout: Per-call timeout in seconds
        """
        self.config = config
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.config.name

    async def complete(self, request: AnalysisRequest) -> LLMResponse:
        """Generate a completion for the request.

        Raises:
            ProviderError: If the completion fails
        """
        completion_kwargs: dict = {
            "model": self.config.get_litellm_model_name(),
            "messages": request.messages(),
            "temperature": request.temperature,
            "top_p": request.top_p,
            "max_tokens": request.max_tokens,
            "timeout": self.timeout,
        }
        if self.config.api_key:
            completion_kwargs["api_key"] = self.config.api_key
        if self.config.api_base:
            completion_kwargs["api_base"] = self.config.api_base
        if self.config.provider in _TOP_K_PROVIDERS:
            completion_kwargs["top_k"] = request.top_k

        try:
            response = await litellm.acompletion(**completion_kwargs)
        except litellm.exceptions.AuthenticationError as e:
            raise ProviderError(self.name, f"Authentication failed: {e}") from e
        except litellm.exceptions.RateLimitError as e:
            raise ProviderError(self.name, f"Rate limit exceeded: {e}") from e
        except litellm.exceptions.APIConnectionError as e:
            raise ProviderError(self.name, f"Connection failed: {e}") from e
        except Exception as e:
            raise ProviderError(self.name, f"Completion failed: {e}") from e

        if not response.choices:
            raise ProviderError(self.name, "Response contained no choices")

        choice = response.choices[0]
        content = choice.message.content or ""

        usage = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens or 0,
                "completion_tokens": response.usage.completion_tokens or 0,
                "total_tokens": response.usage.total_tokens or 0,
            }

        return LLMResponse(
            content=content,
            model=response.model or self.config.model,
            usage=usage,
            finish_reason=choice.finish_reason,
        )

    async def attempt(self, request: AnalysisRequest) -> str:
        response = await self.complete(request)
        logger.debug(
            "%s: %d tokens, finish_reason=%s",
            self.name,
            response.usage.get("total_tokens", 0),
            response.finish_reason,
        )
        return response.content


def create_providers(config: LLMConfig) -> list[AnalysisProvider]:
    """Create the provider chain from configuration.

    Providers without the credentials they need are skipped.

    Args:
        config: LLM configuration

    Returns:
        Providers in priority order
    """
    providers: list[AnalysisProvider] = []
    for provider_config in config.providers:
        if not provider_config.has_credentials:
            logger.warning("Skipping %s: no api_key configured", provider_config.name)
            continue
        providers.append(LiteLLMProvider(provider_config, timeout=config.timeout))
    return providers
