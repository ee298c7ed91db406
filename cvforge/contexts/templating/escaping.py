"""
LaTeX escaping for substituted text.

Escaping is a single pass over the input, so replacement text (which itself
contains backslashes and braces) is never escaped a second time.
"""

import re
from typing import Any

LATEX_SPECIAL_CHARS = {
    "\\": r"\textbackslash{}",
    "{": r"\{",
    "}": r"\}",
    "$": r"\$",
    "&": r"\&",
    "%": r"\%",
    "#": r"\#",
    "^": r"\textasciicircum{}",
    "_": r"\_",
    "~": r"\textasciitilde{}",
}

_SPECIAL_CHAR_PATTERN = re.compile("|".join(re.escape(c) for c in LATEX_SPECIAL_CHARS))


def escape_latex(value: Any) -> str:
    r"""
    Escape LaTeX control characters in value.

    None becomes an empty string; other non-strings are converted with str().

    Example:
        >>> escape_latex("R&D at 100% \\ $5")
        'R\\&D at 100\\% \\textbackslash{} \\$5'
    """
    if value is None:
        return ""
    return _SPECIAL_CHAR_PATTERN.sub(lambda m: LATEX_SPECIAL_CHARS[m.group(0)], str(value))
