"""
Text tokenization helpers shared by keyword extraction and relevance scoring.

All matching is exact and case-insensitive. No stemming or synonym handling.
"""

import re
from typing import Iterable, List

# Common short words that never count as candidate keywords
STOP_WORDS = frozenset(
    {
        "the", "and", "for", "are", "but", "not", "you", "all", "can", "had",
        "her", "was", "one", "our", "out", "day", "get", "has", "him", "his",
        "how", "man", "new", "now", "old", "see", "two", "way", "who", "boy",
        "did", "its", "let", "put", "say", "she", "too", "use", "will", "work",
        "with", "from", "that", "this", "have", "were", "been", "into", "over",
        "than", "then", "them", "they", "their", "what", "when", "which", "while",
    }
)

_WORD = re.compile(r"\b\w+\b")
_CONTENT_WORD = re.compile(r"\b\w{3,}\b")


def words(text: str) -> List[str]:
    """Lowercased word tokens, keeping repeats (used for per-occurrence scoring)."""
    return _WORD.findall(text.lower()) if text else []


def content_words(text: str, min_length: int = 4) -> List[str]:
    """
    Lowercased tokens at least min_length characters long that are not stop-words.

    Example:
        >>> content_words("Led the migration to AWS and Kubernetes")
        ['migration', 'kubernetes']
    """
    if not text:
        return []
    return [
        token
        for token in _CONTENT_WORD.findall(text.lower())
        if len(token) >= min_length and token not in STOP_WORDS
    ]


def term_pattern(term: str) -> re.Pattern:
    """
    Case-insensitive pattern matching term as a whole word.

    Uses look-arounds rather than \\b so terms ending in symbols ("c++", "c#") and
    dotted names ("node.js") match.
    """
    return re.compile(rf"(?<![\w+#.]){re.escape(term)}(?![\w+#])", re.IGNORECASE)


def count_term(term: str, text: str) -> int:
    """Number of whole-word, case-insensitive occurrences of term in text."""
    if not term or not text:
        return 0
    return len(term_pattern(term).findall(text))


def lowered(items: Iterable[str]) -> set[str]:
    """Lowercased, stripped, non-empty set of strings."""
    return {item.strip().lower() for item in items if item and item.strip()}
