"""
Curated vocabularies for deterministic keyword extraction.

Used when the generative-text service is unavailable or returns unusable output,
and merged with generated keywords otherwise. Each vocabulary carries a fixed
default weight per category.
"""

from dataclasses import dataclass
from typing import Tuple

# =============================================================================
# DEFAULT WEIGHTS
# =============================================================================

TECHNICAL_WEIGHT = 0.8
SOFT_SKILL_WEIGHT = 0.6
GENERAL_TERM_WEIGHT = 0.6
ACTION_VERB_WEIGHT = 0.5


@dataclass(frozen=True)
class Vocabulary:
    """A list of terms sharing a category and default weight."""

    category: str
    weight: float
    terms: Tuple[str, ...]
    subcategory: str = ""


# =============================================================================
# TECHNICAL TERMS (by subcategory)
# =============================================================================

TECHNICAL_VOCABULARIES = (
    Vocabulary(
        category="technical",
        subcategory="programming",
        weight=TECHNICAL_WEIGHT,
        terms=(
            "javascript", "typescript", "python", "java", "c++", "c#", "php", "ruby",
            "go", "golang", "rust", "swift", "kotlin", "scala", "html", "css", "sql",
        ),
    ),
    Vocabulary(
        category="technical",
        subcategory="frameworks",
        weight=TECHNICAL_WEIGHT,
        terms=(
            "react", "angular", "vue", "node.js", "next.js", "express", "django",
            "flask", "fastapi", "spring", "laravel", "rails", ".net", "graphql",
        ),
    ),
    Vocabulary(
        category="technical",
        subcategory="databases",
        weight=TECHNICAL_WEIGHT,
        terms=(
            "mysql", "postgresql", "mongodb", "redis", "elasticsearch", "oracle",
            "sqlite", "dynamodb", "cassandra",
        ),
    ),
    Vocabulary(
        category="technical",
        subcategory="cloud",
        weight=TECHNICAL_WEIGHT,
        terms=(
            "aws", "azure", "gcp", "docker", "kubernetes", "terraform", "jenkins",
            "linux", "ci/cd", "microservices", "rest", "api",
        ),
    ),
    Vocabulary(
        category="technical",
        subcategory="tools",
        weight=TECHNICAL_WEIGHT,
        terms=("git", "jira", "confluence", "figma", "photoshop", "excel", "tableau"),
    ),
    Vocabulary(
        category="technical",
        subcategory="methodology",
        weight=TECHNICAL_WEIGHT,
        terms=("agile", "scrum", "kanban", "tdd"),
    ),
)

# =============================================================================
# SOFT SKILLS, GENERAL TERMS, ACTION VERBS
# =============================================================================

SOFT_SKILLS = Vocabulary(
    category="soft",
    weight=SOFT_SKILL_WEIGHT,
    terms=(
        "leadership", "communication", "teamwork", "problem-solving", "analytical",
        "creative", "organized", "detail-oriented", "collaborative", "innovative",
        "strategic", "adaptable", "mentoring",
    ),
)

GENERAL_TERMS = Vocabulary(
    category="general",
    weight=GENERAL_TERM_WEIGHT,
    terms=("experience", "management", "development", "design", "analysis"),
)

ACTION_VERBS = Vocabulary(
    category="action",
    weight=ACTION_VERB_WEIGHT,
    terms=(
        "developed", "implemented", "designed", "managed", "led", "created",
        "optimized", "improved", "analyzed", "coordinated",
    ),
)

# Extraction order matters only for tie-breaking during ranking
ALL_VOCABULARIES = TECHNICAL_VOCABULARIES + (SOFT_SKILLS, GENERAL_TERMS, ACTION_VERBS)

# =============================================================================
# INDUSTRY SUGGESTIONS
# =============================================================================

INDUSTRY_KEYWORDS = {
    "software": (
        ("agile", 0.8, "methodology"),
        ("scrum", 0.7, "methodology"),
        ("ci/cd", 0.8, "devops"),
        ("microservices", 0.7, "architecture"),
        ("api design", 0.8, "technical"),
    ),
    "marketing": (
        ("seo", 0.8, "digital"),
        ("google analytics", 0.7, "analytics"),
        ("content marketing", 0.8, "strategy"),
        ("social media", 0.7, "digital"),
        ("campaign management", 0.8, "management"),
    ),
    "finance": (
        ("financial modeling", 0.9, "analysis"),
        ("excel", 0.8, "tools"),
        ("risk management", 0.8, "management"),
        ("compliance", 0.7, "regulatory"),
        ("budgeting", 0.8, "planning"),
    ),
}
