"""
Default values and allow-lists for document rendering options.

Provides shared defaults used by:
- populator.py (option values substituted into templates)
- rendering/render_job.py (request sanitization)

Every option is allow-listed. Unknown values silently fall back to the documented
default rather than raising.
"""

import re
from typing import Any, Iterable, Optional

DEFAULT_TEMPLATE = "modern"

# Font sizes supported by the article class
FONT_SIZES = ("10pt", "11pt", "12pt")
DEFAULT_FONT_SIZE = "11pt"

# Margin presets -> geometry margin
MARGINS = {
    "narrow": "0.5in",
    "normal": "0.75in",
    "wide": "1in",
}
DEFAULT_MARGINS = "normal"

# Accent color schemes -> xcolor RGB (0-255)
COLOR_SCHEMES = {
    "blue": "31,78,121",
    "red": "155,28,28",
    "green": "34,110,62",
    "purple": "94,53,177",
    "orange": "204,102,0",
    "teal": "0,121,121",
    "black": "0,0,0",
}
DEFAULT_COLOR_SCHEME = "blue"

_UNSAFE_TEMPLATE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def sanitize_template_name(name: Any, allowed: Iterable[str]) -> str:
    """
    Reduce a requested template id to a safe, known template name.

    Strips everything outside [a-zA-Z0-9_-], lowercases, then checks the result
    against allowed. Missing, empty or unknown names become DEFAULT_TEMPLATE, so
    path separators and dots can never reach the filesystem.

    Example:
        >>> sanitize_template_name("../../etc/passwd", ["modern", "classic"])
        'modern'
        >>> sanitize_template_name("Classic", ["modern", "classic"])
        'classic'
    """
    if not isinstance(name, str):
        return DEFAULT_TEMPLATE
    sanitized = _UNSAFE_TEMPLATE_CHARS.sub("", name).lower()
    return sanitized if sanitized in set(allowed) else DEFAULT_TEMPLATE


def sanitize_font_size(value: Optional[str]) -> str:
    return value if isinstance(value, str) and value in FONT_SIZES else DEFAULT_FONT_SIZE


def sanitize_margins(value: Optional[str]) -> str:
    return value if isinstance(value, str) and value in MARGINS else DEFAULT_MARGINS


def sanitize_color_scheme(value: Optional[str]) -> str:
    return value if isinstance(value, str) and value in COLOR_SCHEMES else DEFAULT_COLOR_SCHEME

