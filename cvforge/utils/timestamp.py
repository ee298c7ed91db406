"""Timestamp formatting utilities."""

from datetime import datetime, timezone


def now() -> str:
    """Compact local timestamp for directory and file names (e.g., 20251114_123456)."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def now_exact() -> str:
    """ISO 8601 UTC timestamp with timezone, used for result payloads."""
    return datetime.now(timezone.utc).isoformat()
