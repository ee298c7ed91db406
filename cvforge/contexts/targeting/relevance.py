"""
Relevance scoring between candidate content and job keywords.

Pure functions only: no I/O, no randomness, no provider calls. Identical inputs
always produce identical outputs.

Matching is exact and case-insensitive. "JS" never matches "JavaScript".
"""

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List

from cvforge.contexts.intake.job_data_structure import Keyword, normalize_keywords
from cvforge.contexts.targeting.profile_data_structure import UserProfile
from cvforge.contexts.targeting.tailored_cv import TailoredCV
from cvforge.utils.text_processing import content_words, lowered

# Missing keywords above this weight are surfaced as suggestions
SUGGESTION_WEIGHT_THRESHOLD = 0.7
MAX_SUGGESTIONS = 5

# Exact matching only, so every match has full strength
EXACT_MATCH_STRENGTH = 1.0


@dataclass(frozen=True)
class KeywordMatch:
    """A job keyword found in the candidate's keyword set."""

    keyword: Keyword
    strength: float = EXACT_MATCH_STRENGTH

    @property
    def text(self) -> str:
        return self.keyword.text

    def to_dict(self) -> dict[str, Any]:
        return {
            "keyword": self.keyword.text,
            "jobWeight": self.keyword.weight,
            "matchStrength": self.strength,
        }


@dataclass(frozen=True)
class MatchAnalysis:
    """
    Outcome of scoring candidate keywords against job keywords.

    Attributes:
        match_score: Weighted percentage of job keywords present, in [0, 100]
        matched: Matches ordered by strength, then job weight (descending)
        missing: Job keywords absent from the candidate set, in job order
        suggestions: High-weight missing keywords worth adding
        user_keyword_count: Size of the candidate keyword set
        job_keyword_count: Number of job keywords scored against
    """

    match_score: int
    matched: List[KeywordMatch] = field(default_factory=list)
    missing: List[Keyword] = field(default_factory=list)
    suggestions: List[Keyword] = field(default_factory=list)
    user_keyword_count: int = 0
    job_keyword_count: int = 0

    @property
    def matched_keywords(self) -> List[str]:
        return [m.text for m in self.matched]

    @property
    def missing_keywords(self) -> List[str]:
        return [k.text for k in self.missing]

    def to_dict(self) -> dict[str, Any]:
        return {
            "matchScore": self.match_score,
            "totalMatches": len(self.matched),
            "matchedKeywords": [m.to_dict() for m in self.matched],
            "missingKeywords": [k.to_dict() for k in self.missing],
            "suggestions": [
                {
                    "type": "add_keyword",
                    "keyword": k.text,
                    "priority": "high",
                    "reason": "High-weight keyword missing from your profile",
                }
                for k in self.suggestions
            ],
            "userKeywordCount": self.user_keyword_count,
            "jobKeywordCount": self.job_keyword_count,
        }


# --- Candidate keyword sets ---


def candidate_keywords(
    skills: Iterable[str] = (),
    bullets: Iterable[str] = (),
    technologies: Iterable[str] = (),
    roles: Iterable[str] = (),
) -> frozenset[str]:
    """
    Derive the candidate's keyword set.

    Skills, technology tags and role titles are taken whole; bullet text
    contributes its content words (longer than 3 characters, not stop-words).

    Example:
        >>> sorted(candidate_keywords(skills=["React"], bullets=["Built APIs with Node"]))
        ['apis', 'built', 'node', 'react']
    """
    keywords = set()
    keywords |= lowered(skills)
    keywords |= lowered(technologies)
    keywords |= lowered(roles)
    for bullet in bullets:
        keywords.update(content_words(bullet))
    return frozenset(keywords)


def profile_keywords(profile: UserProfile) -> frozenset[str]:
    """Keyword set of a candidate profile."""
    return candidate_keywords(
        skills=profile.skill_names,
        bullets=[b.text for exp in profile.work_experience for b in exp.bullets],
        technologies=[t for project in profile.projects for t in project.technologies],
        roles=[exp.role for exp in profile.work_experience],
    )


def tailored_keywords(cv: TailoredCV) -> frozenset[str]:
    """
    Keyword set of tailored CV content.

    The summary is left out: it is written around the job keywords, so counting
    it would credit the candidate with whatever the posting asks for.
    """
    return candidate_keywords(
        skills=cv.skills,
        bullets=cv.bullets,
        technologies=[t for project in cv.projects for t in project.technologies],
        roles=[entry.role for entry in cv.experience],
    )


# --- Scoring ---


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_match(user_keywords: Iterable[str], job_keywords: Iterable[Any]) -> MatchAnalysis:
    """
    Score a candidate keyword set against weighted job keywords.

    match_score = round(100 * sum(weight of matched) / sum(weight of all)), or 0
    when there are no job keywords or their total weight is zero.

    Args:
        user_keywords: Candidate keyword set (any case)
        job_keywords: Keywords, plain strings, or {keyword, weight, category} dicts

    Returns:
        MatchAnalysis
    """
    user_set = lowered(user_keywords)
    jobs = normalize_keywords(job_keywords)

    matched = []
    missing = []
    for keyword in jobs:
        if keyword.key in user_set:
            matched.append(KeywordMatch(keyword=keyword))
        else:
            missing.append(keyword)

    total_weight = sum(k.weight for k in jobs)
    matched_weight = sum(m.keyword.weight * m.strength for m in matched)
    if total_weight <= 0:
        score = 0
    else:
        score = _round_half_up(100 * matched_weight / total_weight)
    score = min(100, max(0, score))

    matched.sort(key=lambda m: (m.strength, m.keyword.weight), reverse=True)
    suggestions = [k for k in missing if k.weight > SUGGESTION_WEIGHT_THRESHOLD][:MAX_SUGGESTIONS]

    return MatchAnalysis(
        match_score=score,
        matched=matched,
        missing=missing,
        suggestions=suggestions,
        user_keyword_count=len(user_set),
        job_keyword_count=len(jobs),
    )
