"""Normalization of analysis provider output.

Provider output is untrusted: fences are stripped, the text must parse as a
JSON object, and every field is then repaired individually instead of
rejecting the whole result.
"""

import json
import logging
import re
from typing import Any

from openroad.errors import ParseError
from openroad.models import AnalysisResult, Difficulty, EntryPoint

logger = logging.getLogger(__name__)

UNKNOWN_TECH_STACK = ["Unknown"]
NO_ARCHITECTURE = "Architecture analysis not available."
NO_DATA_FLOW = "Data flow analysis not available."
UNKNOWN_FILE = "Unknown file"
NO_DESCRIPTION = "No description available"

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)\s*```")


def strip_code_fences(text: str) -> str:
    """Remove a Markdown code fence wrapping the reply.

    A fence that wraps the whole text wins. Text that already starts as JSON
    is returned as is, so fences inside string values survive. Otherwise the
    first code block found in surrounding prose is used.
    """
    stripped = text.strip()
    match = _FENCE_PATTERN.fullmatch(stripped)
    if match is None and not stripped.startswith(("{", "[")):
        match = _FENCE_PATTERN.search(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def _text_or(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _repair_tech_stack(value: Any) -> list[str]:
    if not isinstance(value, list):
        return list(UNKNOWN_TECH_STACK)
    stack = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return stack or list(UNKNOWN_TECH_STACK)


def _repair_entry_points(value: Any) -> list[EntryPoint]:
    if not isinstance(value, list):
        return []

    entry_points = []
    for item in value:
        if not isinstance(item, dict):
            logger.debug("Skipping non-object entry point: %r", item)
            continue
        entry_points.append(
            EntryPoint(
                file=_text_or(item.get("file"), UNKNOWN_FILE),
                description=_text_or(item.get("description"), NO_DESCRIPTION),
                difficulty=Difficulty.coerce(item.get("difficulty")),
            )
        )
    return entry_points


def repair_analysis(data: dict[str, Any]) -> AnalysisResult:
    """Repair a parsed analysis payload into a valid AnalysisResult."""
    return AnalysisResult(
        tech_stack=_repair_tech_stack(data.get("techStack")),
        architecture_summary=_text_or(data.get("architectureSummary"), NO_ARCHITECTURE),
        data_flow=_text_or(data.get("dataFlow"), NO_DATA_FLOW),
        entry_points=_repair_entry_points(data.get("entryPoints")),
    )


def parse_analysis(text: str) -> AnalysisResult:
    """Parse provider output into an AnalysisResult.

    Args:
        text: Raw provider text (JSON, optionally fenced)

    Returns:
        Repaired AnalysisResult

    Raises:
        ParseError: If the text is not a JSON object
    """
    payload = strip_code_fences(text)

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse analysis response as JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError(
            f"Analysis response must be a JSON object, got {type(data).__name__}"
        )

    return repair_analysis(data)
