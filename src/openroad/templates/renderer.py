"""Markdown export of roadmaps.

Renders a Roadmap to a contributor-facing Markdown document using the
package's Jinja2 templates. Output depends only on the roadmap, so the same
roadmap always renders identically.
"""

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape

from openroad.models import Roadmap, sort_entries

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "ROADMAP.md.j2"
DEFAULT_MAX_TREE_ENTRIES = 200


def format_datetime(dt: datetime | str | None) -> str:
    """Format a timestamp for display.

    Args:
        dt: Datetime object or ISO string

    Returns:
        Formatted date string
    """
    if dt is None:
        return "N/A"

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return dt

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")


def tree_indent(path: str) -> str:
    """Two spaces per level below the repository root."""
    return "  " * (path.count("/"))


class RoadmapRenderer:
    """Renders roadmaps to Markdown.

    Usage:
        renderer = RoadmapRenderer()
        markdown = renderer.render(roadmap)
    """

    def __init__(self, max_tree_entries: int = DEFAULT_MAX_TREE_ENTRIES) -> None:
        """Initialize the renderer.

        Args:
            max_tree_entries: File tree entries included before truncation
        """
        self.max_tree_entries = max_tree_entries

        self._env = Environment(
            loader=PackageLoader("openroad", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["format_datetime"] = format_datetime
        self._env.filters["tree_indent"] = tree_indent

    def render(self, roadmap: Roadmap, template_name: str = DEFAULT_TEMPLATE) -> str:
        """Render a roadmap to Markdown.

        Raises:
            ValueError: If the template is missing or fails to render
        """
        try:
            template = self._env.get_template(template_name)
        except Exception as e:
            logger.error("Failed to load template %s: %s", template_name, e)
            raise ValueError(f"Template not found: {template_name}") from e

        try:
            rendered = template.render(**self._build_context(roadmap))
        except Exception as e:
            logger.error("Template rendering failed: %s", e)
            raise ValueError(f"Template rendering failed: {e}") from e

        logger.debug("Rendered roadmap for %s (%d characters)", roadmap.repo_url, len(rendered))
        return rendered

    def _build_context(self, roadmap: Roadmap) -> dict[str, Any]:
        metrics_by_file = {m.file: m for m in roadmap.health_metrics}
        tree = sort_entries(roadmap.file_tree)

        return {
            "roadmap": roadmap,
            "full_name": f"{roadmap.owner}/{roadmap.repo_name}",
            "analysis": roadmap.analysis,
            "entry_points": [
                {
                    "file": ep.file,
                    "description": ep.description,
                    "difficulty": ep.difficulty.value,
                    "metric": metrics_by_file.get(ep.file),
                }
                for ep in roadmap.analysis.entry_points
            ],
            "tree": tree[: self.max_tree_entries],
            "tree_total": len(tree),
            "tree_truncated": max(len(tree) - self.max_tree_entries, 0),
        }

    def render_to_file(
        self,
        roadmap: Roadmap,
        output_path: Path,
        template_name: str = DEFAULT_TEMPLATE,
    ) -> Path:
        """Render a roadmap and write it to a file.

        Returns:
            Path to written file
        """
        content = self.render(roadmap, template_name)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        logger.info("Wrote roadmap to %s", output_path)

        return output_path
