"""
Keyword extraction from free-text job postings.

Generated keywords (from the generative-text service) are merged with deterministic
vocabulary matches, re-scored, and truncated to a ranked top list. When the service
is unavailable or its output cannot be parsed, vocabulary matches carry the result
on their own.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from cvforge.contexts.intake.job_data_structure import (
    JobDescription,
    Keyword,
    KeywordSource,
    normalize_keywords,
)
from cvforge.contexts.intake.logger import _log_debug, _log_info, _log_warning
from cvforge.contexts.intake.vocabulary import ALL_VOCABULARIES, INDUSTRY_KEYWORDS
from cvforge.exceptions import ExternalServiceError
from cvforge.utils.batch import BatchOutcome, run_concurrently
from cvforge.utils.llm import LLMProvider, parse_json_array
from cvforge.utils.text_processing import count_term
from cvforge.utils.timestamp import now_exact

# Ranking blend. Empirical constants, tune freely.
FREQUENCY_BONUS = 0.1
GENERATED_BONUS = 0.2
MAX_KEYWORDS = 20

# Generative request size
REQUESTED_KEYWORDS = 15
MAX_PROMPT_CHARS = 8000

METHOD_GENERATED = "generated_enhanced"
METHOD_PATTERN = "pattern_fallback"

# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

_SYSTEM_PROMPT = """\
You are an expert at analyzing job descriptions and extracting relevant keywords.
Always respond with valid JSON only."""

_USER_PROMPT_TEMPLATE = """\
Given the following job description, extract the top {count} keywords (skills, \
technologies, action nouns) and assign each a relevance weight between 0 and 1. \
Respond in JSON array format only, no additional text.

Expected format:
{example}

---
Job Description:
{content}"""

_EXAMPLE_OUTPUT = [
    {"keyword": "JavaScript", "weight": 0.9, "category": "technical"},
    {"keyword": "React", "weight": 0.8, "category": "technical"},
    {"keyword": "leadership", "weight": 0.7, "category": "soft"},
]


def build_extraction_prompt(text: str, count: int = REQUESTED_KEYWORDS) -> str:
    """Build the user prompt requesting a JSON array of weighted keywords."""
    return _USER_PROMPT_TEMPLATE.format(
        count=count,
        example=json.dumps(_EXAMPLE_OUTPUT, indent=2),
        content=text[:MAX_PROMPT_CHARS],
    )


# =============================================================================
# DETERMINISTIC EXTRACTION, MERGE, RANK
# =============================================================================


def pattern_keywords(text: str) -> list[Keyword]:
    """
    Match curated vocabularies against text.

    Each matched term becomes a PATTERN keyword with its vocabulary's default weight.
    Duplicates across vocabularies keep the first match.
    """
    if not text or not text.strip():
        return []

    keywords = []
    seen = set()
    for vocabulary in ALL_VOCABULARIES:
        for term in vocabulary.terms:
            if term in seen or count_term(term, text) == 0:
                continue
            seen.add(term)
            keywords.append(
                Keyword(
                    text=term,
                    weight=vocabulary.weight,
                    category=vocabulary.category,
                    source=KeywordSource.PATTERN,
                )
            )
    return keywords


def merge_keywords(generated: Iterable[Keyword], pattern: Iterable[Keyword]) -> list[Keyword]:
    """
    Merge generated and pattern keywords, deduplicating case-insensitively.

    Generated keywords come first and win on conflict.
    """
    merged: dict[str, Keyword] = {}
    for keyword in list(generated) + list(pattern):
        if keyword.key and keyword.key not in merged:
            merged[keyword.key] = keyword
    return list(merged.values())


def rank_keywords(
    keywords: Iterable[Keyword], text: str, limit: int = MAX_KEYWORDS
) -> list[Keyword]:
    """
    Score keywords by weight, frequency in text, and source; keep the top `limit`.

    rank_score = weight + FREQUENCY_BONUS * frequency + GENERATED_BONUS * generated
    Sorting is stable, so equal scores keep merge order.
    """
    ranked = []
    for keyword in keywords:
        frequency = count_term(keyword.text, text)
        score = (
            keyword.weight
            + FREQUENCY_BONUS * frequency
            + (GENERATED_BONUS if keyword.is_generated else 0.0)
        )
        ranked.append(keyword.ranked(frequency=frequency, rank_score=score))

    ranked.sort(key=lambda k: k.rank_score, reverse=True)
    return ranked[:limit]


def group_by_category(keywords: Iterable[Keyword]) -> dict[str, list[Keyword]]:
    """Group keywords by category, preserving order within each group."""
    categories: dict[str, list[Keyword]] = {}
    for keyword in keywords:
        categories.setdefault(keyword.category, []).append(keyword)
    return categories


@dataclass
class KeywordAnalysis:
    """
    Result of keyword extraction for one posting.

    Attributes:
        keywords: Ranked keywords (at most MAX_KEYWORDS)
        method: METHOD_GENERATED if the service contributed, else METHOD_PATTERN
        extracted_at: ISO 8601 timestamp
    """

    keywords: list[Keyword]
    method: str
    extracted_at: str = field(default_factory=now_exact)

    @property
    def categories(self) -> dict[str, list[Keyword]]:
        return group_by_category(self.keywords)

    def to_dict(self) -> dict[str, Any]:
        return {
            "keywords": [k.to_dict() for k in self.keywords],
            "totalCount": len(self.keywords),
            "categories": {c: [k.text for k in ks] for c, ks in self.categories.items()},
            "extractedAt": self.extracted_at,
            "method": self.method,
        }


# =============================================================================
# EXTRACTOR
# =============================================================================


class KeywordExtractor:
    """
    Turns job posting text into ranked, weighted keywords.

    Args:
        provider: Generative-text provider; None runs vocabulary extraction only
        max_workers: Thread pool size for batch extraction
    """

    def __init__(self, provider: Optional[LLMProvider] = None, max_workers: int = 4):
        self.provider = provider
        self.max_workers = max_workers

    def generated_keywords(self, text: str) -> Optional[list[Keyword]]:
        """
        Ask the generative-text service for keywords.

        Returns:
            GENERATED keywords, or None when the service fails or returns unusable output
        """
        if self.provider is None:
            return None

        try:
            response = self.provider.generate(
                system_prompt=_SYSTEM_PROMPT,
                user_prompt=build_extraction_prompt(text),
                max_tokens=800,
                temperature=0.3,
            )
        except ExternalServiceError as e:
            _log_warning(f"Keyword generation unavailable, using vocabulary fallback: {e}")
            return None

        items = parse_json_array(response.content)
        if items is None:
            _log_warning("Keyword generation returned non-JSON output, using vocabulary fallback")
            return None

        keywords = normalize_keywords(items, source=KeywordSource.GENERATED)
        if not keywords:
            _log_warning("Keyword generation returned no usable keywords")
            return None
        return keywords

    def analyze(self, text: str) -> KeywordAnalysis:
        """Extract keywords and report which method produced them."""
        if not text or not text.strip():
            return KeywordAnalysis(keywords=[], method=METHOD_PATTERN)

        _log_info(f"Starting keyword extraction ({len(text)} chars)")

        generated = self.generated_keywords(text)
        pattern = pattern_keywords(text)
        merged = merge_keywords(generated or [], pattern)
        ranked = rank_keywords(merged, text)

        method = METHOD_GENERATED if generated else METHOD_PATTERN
        _log_info(
            f"Extracted {len(ranked)} keywords via {method} "
            f"({len(generated or [])} generated, {len(pattern)} pattern)"
        )
        _log_debug(f"  Top keywords: {', '.join(k.text for k in ranked[:10])}")
        return KeywordAnalysis(keywords=ranked, method=method)

    def extract(self, text: str) -> list[Keyword]:
        """Ranked keywords for text. Empty text yields an empty list."""
        return self.analyze(text).keywords

    def describe(self, title: str, company: str, description: str) -> JobDescription:
        """
        Validate a posting and populate its keywords.

        Raises:
            ValidationError: If the posting fails validation
        """
        job = JobDescription.from_dict(
            {"title": title, "company": company, "description": description}
        )
        return job.with_keywords(self.extract(job.description))

    def extract_many(
        self, postings: Sequence[Union[Mapping[str, Any], JobDescription]]
    ) -> BatchOutcome:
        """
        Extract keywords for several postings concurrently.

        Each unit yields a JobDescription with keywords; invalid postings fail
        individually without affecting the rest.
        """
        _log_info(f"Starting batch keyword extraction ({len(postings)} postings)")

        def extract_one(posting) -> JobDescription:
            job = posting if isinstance(posting, JobDescription) else JobDescription.from_dict(posting)
            return job.with_keywords(self.extract(job.description))

        def describe_posting(posting) -> str:
            if isinstance(posting, JobDescription):
                return repr(posting.title)
            return repr(posting.get("id") or posting.get("title")) if isinstance(posting, Mapping) else "?"

        return run_concurrently(
            postings,
            extract_one,
            label="posting",
            max_workers=self.max_workers,
            describe=describe_posting,
        )


def suggest_keywords(industry: str = "general", current: Iterable[str] = ()) -> list[Keyword]:
    """
    Industry keywords not already present in current (case-insensitive), at most 10.

    Unknown industries yield an empty list.
    """
    present = {c.strip().lower() for c in current if c}
    entries = INDUSTRY_KEYWORDS.get((industry or "").lower(), ())
    suggestions = [
        Keyword(text=text, weight=weight, category=category)
        for text, weight, category in entries
        if text not in present
    ]
    return suggestions[:10]
