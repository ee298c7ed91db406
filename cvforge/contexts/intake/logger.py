"""
Intake context logger.

Provides logging interface for intake context with automatic [intake] prefix.
All intake modules should import from this module, not from loguru directly.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

from cvforge.utils.logger import setup_logger as _setup_logger

load_dotenv()

CONTEXT_PREFIX = "[intake]"


def setup_intake_logger(log_dir: Optional[Path] = None) -> Path:
    """
    Setup logger for an intake (keyword extraction) session.

    Args:
        log_dir: Directory for this session (default: timestamped dir under LOGS_PATH)

    Returns:
        Path to log file
    """
    return _setup_logger(
        session_name="intake",
        log_dir=log_dir,
        extra_provenance={"LLM provider": os.getenv("LLM_PROVIDER", "anthropic")},
    )


def _log_info(message: str) -> None:
    """Log info message with [intake] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [intake] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [intake] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")
