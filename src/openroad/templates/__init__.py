"""OpenRoad Markdown export.

Jinja2-based rendering of roadmaps with deterministic output.
"""

from openroad.templates.renderer import RoadmapRenderer, format_datetime

__all__ = ["RoadmapRenderer", "format_datetime"]
