"""
Templating context logger.

Provides logging interface for templating context with automatic [template] prefix.
Templating runs inside render jobs, so it has no session setup of its own: records
land in whichever session the rendering context configured.
"""

from loguru import logger

CONTEXT_PREFIX = "[template]"


def _log_warning(message: str) -> None:
    """Log warning message with [template] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [template] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")
