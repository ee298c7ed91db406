"""
Targeting context logger.

Provides logging interface for targeting context with automatic [target] prefix.
All targeting modules should import from this module, not from loguru directly.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

from cvforge.utils.logger import setup_logger as _setup_logger

load_dotenv()

CONTEXT_PREFIX = "[target]"


def setup_targeting_logger(log_dir: Optional[Path] = None) -> Path:
    """
    Setup logger for a targeting (tailoring) session.

    Args:
        log_dir: Directory for this session (default: timestamped dir under LOGS_PATH)

    Returns:
        Path to log file
    """
    return _setup_logger(
        session_name="targeting",
        log_dir=log_dir,
        extra_provenance={"LLM provider": os.getenv("LLM_PROVIDER", "anthropic")},
    )


def _log_info(message: str) -> None:
    """Log info message with [target] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [target] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [target] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")
