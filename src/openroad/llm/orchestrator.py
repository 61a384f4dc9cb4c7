"""Ordered provider fallback for repository analysis.

Providers are tried strictly one after another, never raced. A transport
failure or an empty answer advances to the next provider; the same provider
is never retried. The first non-empty answer is parsed and repaired.
"""

import logging

from openroad.config import LLMConfig
from openroad.errors import ParseError, ProviderError, ProviderExhausted
from openroad.llm.client import AnalysisProvider, create_providers
from openroad.llm.parsing import parse_analysis
from openroad.llm.prompts import DEFAULT_DESCRIPTION_LIMIT, build_analysis_request
from openroad.models import AnalysisResult, RepositoryContext

logger = logging.getLogger(__name__)


class AnalysisOrchestrator:
    """Runs an analysis request against an ordered list of providers.

    Usage:
        orchestrator = AnalysisOrchestrator.from_config(config.llm)
        result = await orchestrator.analyze(context)
    """

    def __init__(
        self,
        providers: list[AnalysisProvider],
        config: LLMConfig | None = None,
        description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            providers: Providers in priority order
            config: Generation parameters and parse-failure policy
            description_limit: Characters of the description sent to providers
        """
        self.providers = providers
        self.config = config or LLMConfig(providers=[])
        self.description_limit = description_limit

    @classmethod
    def from_config(
        cls,
        config: LLMConfig,
        description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
    ) -> "AnalysisOrchestrator":
        return cls(create_providers(config), config, description_limit)

    async def analyze(self, context: RepositoryContext) -> AnalysisResult:
        """Analyze a repository context.

        Args:
            context: Repository description and file tree

        Returns:
            Repaired AnalysisResult from the first provider that answered

        Raises:
            ProviderExhausted: If every provider failed
            ParseError: If a provider answered with output that is not JSON
                (unless advance_on_parse_error is enabled)
        """
        request = build_analysis_request(
            context,
            description_limit=self.description_limit,
            temperature=self.config.temperature,
            top_k=self.config.top_k,
            top_p=self.config.top_p,
            max_tokens=self.config.max_tokens,
        )

        failures: list[str] = []

        for provider in self.providers:
            logger.info("Analyzing %s with %s", context.full_name, provider.name)

            try:
                text = await provider.attempt(request)
            except ProviderError as e:
                logger.warning("Provider %s failed: %s", provider.name, e)
                failures.append(str(e))
                continue

            if not text or not text.strip():
                logger.warning("Provider %s returned no content", provider.name)
                failures.append(f"{provider.name}: No response content")
                continue

            try:
                result = parse_analysis(text)
            except ParseError as e:
                if not self.config.advance_on_parse_error:
                    raise
                logger.warning("Provider %s returned unparseable output: %s", provider.name, e)
                failures.append(f"{provider.name}: {e}")
                continue

            logger.info(
                "Analysis complete with %s: %d technologies, %d entry points",
                provider.name,
                len(result.tech_stack),
                len(result.entry_points),
            )
            return result

        raise ProviderExhausted(failures)
