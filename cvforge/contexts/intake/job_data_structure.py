"""
Job description data structures for the Intake context.

Keyword is the single tagged representation of a job keyword. Raw shapes coming
from callers or the generative-text service (plain strings, {keyword, weight,
category} dicts) are normalized here, once, and nowhere else.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Tuple

from cvforge.exceptions import ValidationError

MIN_DESCRIPTION_LENGTH = 50
MAX_TITLE_LENGTH = 150
MAX_COMPANY_LENGTH = 100

DEFAULT_CATEGORY = "general"


class KeywordSource(str, Enum):
    """Where a keyword came from."""

    GENERATED = "generated"
    PATTERN = "pattern"


def _clamp_weight(value: Any) -> float:
    """Coerce value to a float in [0, 1]. Non-numeric or missing weights count as 1.0."""
    try:
        weight = float(value)
    except (TypeError, ValueError):
        return 1.0
    if math.isnan(weight):
        return 1.0
    return min(1.0, max(0.0, weight))


@dataclass(frozen=True)
class Keyword:
    """
    A job keyword with relevance weight.

    Attributes:
        text: Keyword as written (display form)
        weight: Relevance weight, always within [0, 1]
        category: Free-form category (technical, soft, action, general, ...)
        source: GENERATED (generative-text service) or PATTERN (vocabulary match)
        frequency: Whole-word occurrences in the posting (set during ranking)
        rank_score: Ordering score (set during ranking; never used for matching)
    """

    text: str
    weight: float = 1.0
    category: str = DEFAULT_CATEGORY
    source: KeywordSource = KeywordSource.PATTERN
    frequency: int = 0
    rank_score: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "text", str(self.text).strip())
        object.__setattr__(self, "weight", _clamp_weight(self.weight))
        object.__setattr__(self, "category", (self.category or DEFAULT_CATEGORY).strip())
        object.__setattr__(self, "source", KeywordSource(self.source))

    @property
    def key(self) -> str:
        """Case-insensitive identity used for dedupe and matching."""
        return self.text.lower()

    @property
    def is_generated(self) -> bool:
        return self.source is KeywordSource.GENERATED

    def ranked(self, frequency: int, rank_score: float) -> "Keyword":
        """Return a copy carrying ranking metadata."""
        return replace(self, frequency=frequency, rank_score=rank_score)

    def to_dict(self) -> dict[str, Any]:
        return {
            "keyword": self.text,
            "weight": self.weight,
            "category": self.category,
            "source": self.source.value,
            "frequency": self.frequency,
            "rankScore": round(self.rank_score, 4),
        }


def normalize_keyword(
    raw: Any, source: KeywordSource = KeywordSource.PATTERN
) -> Optional[Keyword]:
    """
    Normalize one raw keyword into a Keyword.

    Accepts a Keyword (returned unchanged), a plain string (weight 1.0), or a mapping
    with "keyword" (or "text"), optional "weight", "category" and "source".

    Returns:
        Keyword, or None if raw carries no usable keyword text
    """
    if isinstance(raw, Keyword):
        return raw

    if isinstance(raw, str):
        text = raw.strip()
        return Keyword(text=text, source=source) if text else None

    if isinstance(raw, Mapping):
        text = raw.get("keyword", raw.get("text"))
        if not isinstance(text, str) or not text.strip():
            return None
        raw_source = raw.get("source")
        try:
            resolved_source = KeywordSource(raw_source) if raw_source else source
        except ValueError:
            resolved_source = source
        return Keyword(
            text=text,
            weight=raw.get("weight", 1.0),
            category=str(raw.get("category") or DEFAULT_CATEGORY),
            source=resolved_source,
        )

    return None


def normalize_keywords(
    raw_keywords: Optional[Iterable[Any]], source: KeywordSource = KeywordSource.PATTERN
) -> list[Keyword]:
    """Normalize a sequence of raw keywords, dropping unusable entries."""
    if not raw_keywords:
        return []
    keywords = []
    for raw in raw_keywords:
        keyword = normalize_keyword(raw, source=source)
        if keyword is not None:
            keywords.append(keyword)
    return keywords


@dataclass(frozen=True)
class JobDescription:
    """
    Job posting with its extracted keywords.

    Keywords are populated once (see KeywordExtractor.describe) and never mutated;
    with_keywords() returns a new instance.
    """

    title: str
    description: str
    company: str = ""
    keywords: Tuple[Keyword, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JobDescription":
        """
        Build a validated JobDescription from request data.

        Raises:
            ValidationError: If title/description are missing or out of bounds
        """
        if not isinstance(data, Mapping):
            raise ValidationError("Invalid job description data", ["Expected an object"])

        title = str(data.get("title") or "").strip()
        company = str(data.get("company") or "").strip()
        description = str(data.get("description") or "")

        issues = []
        if not title:
            issues.append("title is required")
        elif len(title) > MAX_TITLE_LENGTH:
            issues.append(f"title must be at most {MAX_TITLE_LENGTH} characters")
        if len(company) > MAX_COMPANY_LENGTH:
            issues.append(f"company must be at most {MAX_COMPANY_LENGTH} characters")
        if len(description.strip()) < MIN_DESCRIPTION_LENGTH:
            issues.append(f"description must be at least {MIN_DESCRIPTION_LENGTH} characters")
        if issues:
            raise ValidationError("Invalid job description data", issues)

        return cls(
            title=title,
            company=company,
            description=description,
            keywords=tuple(normalize_keywords(data.get("keywords"))),
        )

    def with_keywords(self, keywords: Iterable[Any]) -> "JobDescription":
        """Return a copy with normalized keywords."""
        return replace(self, keywords=tuple(normalize_keywords(keywords)))

    def top_keywords(self, n: int) -> list[Keyword]:
        return list(self.keywords[:n])

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "company": self.company,
            "description": self.description,
            "keywords": [k.to_dict() for k in self.keywords],
        }
