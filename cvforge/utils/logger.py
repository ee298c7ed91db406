"""
Session logger setup shared by all contexts.

Configures loguru sinks (file + console) and writes a provenance header so every
CLI session log records how it was produced. Context-specific prefixing lives in
contexts/{context}/logger.py.
"""

import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

from cvforge.utils.timestamp import now

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))

# Console colors per level (file sink is uncolored)
LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {thread.name: <12} | {message}"
CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"


def session_log_dir(session_name: str, base_path: Path = LOGS_PATH) -> Path:
    """Timestamped directory for one CLI session, e.g. outs/logs/render_20251114_123456."""
    return base_path / f"{session_name}_{now()}"


def setup_logger(
    session_name: str,
    log_dir: Optional[Path] = None,
    extra_provenance: Optional[dict] = None,
    console_level: str = "INFO",
) -> Path:
    """
    Configure loguru for a CLI session with provenance tracking.

    Args:
        session_name: Session identifier, also used as the log file stem (e.g., "render")
        log_dir: Directory for this session (default: timestamped dir under LOGS_PATH)
        extra_provenance: Additional key-value pairs for the provenance header
        console_level: Minimum level echoed to the console (file sink captures DEBUG)

    Returns:
        Path to log file

    Example:
        log_file = setup_logger("render", extra_provenance={"LaTeX compiler": "pdflatex"})
    """
    if log_dir is None:
        log_dir = session_log_dir(session_name)
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{session_name}.log"

    logger.remove()

    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    # enqueue=True keeps writes ordered when worker threads log concurrently
    logger.add(log_file, format=FILE_FORMAT, level="DEBUG", enqueue=True)
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=console_level, colorize=True)

    log_provenance(extra_provenance)

    return log_file


def log_provenance(extra_context: Optional[dict] = None) -> None:
    """
    Log execution provenance (script, command, working directory, Python version).

    Args:
        extra_context: Additional key-value pairs to log
    """
    logger.info("=" * 80)
    logger.info(f"Script: {sys.argv[0]}")
    logger.info(f"Command: {' '.join(sys.argv)}")
    logger.info(f"Working directory: {Path.cwd()}")
    logger.info(f"Python: {sys.version.split()[0]}")

    if extra_context:
        for key, value in extra_context.items():
            logger.info(f"{key}: {value}")

    logger.info("=" * 80)
