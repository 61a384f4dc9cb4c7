"""Analysis provider integration for OpenRoad.

Provides the ordered provider fallback chain on top of LiteLLM.
Supports Gemini, Claude, OpenAI, Ollama, and Bedrock providers.
"""

from openroad.llm.client import (
    AnalysisProvider,
    LiteLLMProvider,
    LLMResponse,
    create_providers,
)
from openroad.llm.orchestrator import AnalysisOrchestrator
from openroad.llm.parsing import parse_analysis, repair_analysis, strip_code_fences
from openroad.llm.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    AnalysisRequest,
    build_analysis_prompt,
    build_analysis_request,
    format_file_tree,
)
from openroad.models.llm_config import VALID_PROVIDERS, ProviderConfig

__all__ = [
    "ANALYSIS_SYSTEM_PROMPT",
    "AnalysisOrchestrator",
    "AnalysisProvider",
    "AnalysisRequest",
    "LLMResponse",
    "LiteLLMProvider",
    "ProviderConfig",
    "VALID_PROVIDERS",
    "build_analysis_prompt",
    "build_analysis_request",
    "create_providers",
    "format_file_tree",
    "parse_analysis",
    "repair_analysis",
    "strip_code_fences",
]
