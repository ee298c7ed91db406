"""
Shared utilities for CVFORGE.

Common functionality used across contexts:
- Generative-text providers and retry policy
- Logging setup
- Concurrent batch execution
- Request throttling
- Text processing
- Timestamps
"""

from cvforge.utils.timestamp import now, now_exact

__all__ = ["now", "now_exact"]
