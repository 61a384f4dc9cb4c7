"""Prompt templates for repository analysis.

The system preamble is fixed; the user prompt carries the repository
description (truncated to cap token cost) and the file tree rendered as a
flat list annotated by entry kind.
"""

from dataclasses import dataclass

from openroad.models import RepositoryContext

# Characters of the description document included in the prompt
DEFAULT_DESCRIPTION_LIMIT = 8000

ANALYSIS_SYSTEM_PROMPT = """You are a Senior Open Source Maintainer with deep expertise in code architecture and onboarding new contributors.

Analyze the provided README and file structure. Output a JSON object containing:

1) techStack: An array of technologies, frameworks, and languages used in the project (inferred from file extensions, package files, and README content).

2) architectureSummary: A concise 2-sentence summary of the project's architecture and purpose.

3) dataFlow: A description of how data moves through the application, from entry points to storage/output.

4) entryPoints: An array of exactly 3 specific files/tasks suitable for a first-time contributor. Each entry point should have:
   - file: The path to the file
   - description: Why this is a good starting point and what could be improved
   - difficulty: One of "beginner", "intermediate", or "advanced"

Focus on identifying:
- Good first issues (documentation improvements, small bug fixes, test additions)
- Files that are well-documented and self-contained
- Areas where new contributors can make meaningful impact

IMPORTANT: Respond ONLY with valid JSON. No markdown, no code blocks, no explanations outside the JSON."""


@dataclass(frozen=True)
class AnalysisRequest:
    """Provider-independent analysis request.

    Attributes:
        system_prompt: Fixed instruction preamble
        prompt: Serialized repository context
        temperature: Sampling temperature
        top_k: Top-k sampling
        top_p: Nucleus sampling
        max_tokens: Maximum response tokens
    """

    system_prompt: str
    prompt: str
    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_tokens: int = 4096

    def messages(self) -> list[dict[str, str]]:
        """Role-tagged messages for chat-style providers."""
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.prompt},
        ]


def format_file_tree(context: RepositoryContext) -> str:
    """Render the file tree as a flat list annotated by kind."""
    return "\n".join(
        f"{'[dir]' if entry.is_dir else '[file]'} {entry.path}"
        for entry in context.sorted_tree()
    )


def build_analysis_prompt(
    context: RepositoryContext,
    description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
) -> str:
    """Build the user prompt for a repository analysis."""
    return f"""Analyze this GitHub repository:

## Repository: {context.owner}/{context.repo_name}

## README Content:
{context.description[:description_limit]}

## File Structure:
{format_file_tree(context)}

Provide your analysis as a JSON object."""


def build_analysis_request(
    context: RepositoryContext,
    description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
    temperature: float = 0.7,
    top_k: int = 40,
    top_p: float = 0.95,
    max_tokens: int = 4096,
) -> AnalysisRequest:
    """Build a complete analysis request for a repository context."""
    return AnalysisRequest(
        system_prompt=ANALYSIS_SYSTEM_PROMPT,
        prompt=build_analysis_prompt(context, description_limit),
        temperature=temperature,
        top_k=top_k,
        top_p=top_p,
        max_tokens=max_tokens,
    )
