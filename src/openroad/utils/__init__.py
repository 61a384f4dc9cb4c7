"""OpenRoad utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- preflight: Configuration and package checks
"""

from openroad.utils.logging import configure_from_cli, get_logger, setup_logging
from openroad.utils.preflight import PreflightChecker, PreflightResult, ToolCheck

__all__ = [
    "configure_from_cli",
    "get_logger",
    "setup_logging",
    "PreflightChecker",
    "PreflightResult",
    "ToolCheck",
]
