"""
Content tailoring: selects, rewrites and scores candidate content for one job.

Every generative step has a deterministic fallback. A provider failure (or no
provider at all) changes wording, never the shape of the result, and never raises.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from cvforge.contexts.intake.job_data_structure import JobDescription, Keyword, normalize_keywords
from cvforge.contexts.intake.keyword_extractor import KeywordExtractor
from cvforge.contexts.targeting import prompts
from cvforge.contexts.targeting.logger import _log_debug, _log_info, _log_warning
from cvforge.contexts.targeting.profile_data_structure import (
    Bullet,
    Education,
    Project,
    UserProfile,
    WorkExperience,
)
from cvforge.contexts.targeting.relevance import (
    MatchAnalysis,
    profile_keywords,
    score_match,
    tailored_keywords,
)
from cvforge.contexts.targeting.tailored_cv import (
    MAX_BULLETS_PER_ENTRY,
    MAX_EXPERIENCE_ENTRIES,
    MAX_PROJECTS,
    MAX_SKILLS,
    EducationEntry,
    ExperienceEntry,
    ProjectEntry,
    TailoredCV,
)
from cvforge.exceptions import ExternalServiceError
from cvforge.utils.batch import run_concurrently
from cvforge.utils.llm import LLMProvider, clean_text_response, parse_json_array
from cvforge.utils.text_processing import words

TAILORING_KEYWORD_LIMIT = 10
BULLET_KEYWORD_LIMIT = 5
SUMMARY_KEYWORD_LIMIT = 8
FALLBACK_SUMMARY_SKILLS = 3
OPTIMIZE_KEYWORD_LIMIT = 3

# Keyword weight thresholds
SUGGESTED_SKILL_MIN_WEIGHT = 0.5
MAX_SUGGESTED_SKILLS = 12
OPTIMIZE_SKILL_MIN_WEIGHT = 0.7

# Selection weights
ROLE_WORD_POINTS = 2
BULLET_WORD_POINTS = 1
PROJECT_NAME_POINTS = 2
PROJECT_DESCRIPTION_POINTS = 1
PROJECT_TECHNOLOGY_POINTS = 3

LOW_SCORE_THRESHOLD = 60
MIN_MATCHED_KEYWORDS = 3
DEFAULT_TARGET_SCORE = 80


@dataclass(frozen=True)
class Recommendation:
    type: str
    priority: str
    message: str
    action: str

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type,
            "priority": self.priority,
            "message": self.message,
            "action": self.action,
        }


@dataclass
class TailoringResult:
    """
    Output of ContentTailor.tailor().

    Attributes:
        cv: Tailored CV content
        keywords: Job keywords the CV was tailored toward
        initial_analysis: Profile keywords scored against the job
        final_analysis: Tailored content scored against the job
        recommendations: Suggested improvements based on the initial analysis
    """

    cv: TailoredCV
    keywords: List[Keyword]
    initial_analysis: MatchAnalysis
    final_analysis: MatchAnalysis
    recommendations: List[Recommendation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tailoredCV": self.cv.to_dict(),
            "keywords": [k.to_dict() for k in self.keywords],
            "analysis": {
                "initial": self.initial_analysis.to_dict(),
                "final": self.final_analysis.to_dict(),
                "recommendations": [r.to_dict() for r in self.recommendations],
            },
        }


@dataclass
class OptimizationResult:
    """
    Output of ContentTailor.optimize().

    Attributes:
        cv: Optimized (or unchanged) CV
        analysis: Final match analysis
        optimized: False when the CV already met the target score
        improvement: Score delta produced by the optimization pass
        message: Human-readable outcome
    """

    cv: TailoredCV
    analysis: MatchAnalysis
    optimized: bool
    improvement: int = 0
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.cv.to_dict(),
            "analysis": self.analysis.to_dict(),
            "optimized": self.optimized,
            "improvement": self.improvement,
            "message": self.message,
        }


# --- Deterministic scoring and selection ---


def keyword_set(keywords: Iterable[Keyword]) -> set[str]:
    return {k.key for k in keywords}


def score_experience(experience: WorkExperience, keys: set[str]) -> int:
    """2 points per role-title word in keys, 1 point per bullet word occurrence in keys."""
    score = ROLE_WORD_POINTS * sum(1 for word in experience.role.lower().split() if word in keys)
    for bullet in experience.bullets:
        score += BULLET_WORD_POINTS * sum(1 for word in words(bullet.text) if word in keys)
    return score


def score_project(project: Project, keys: set[str]) -> int:
    """Name words x2, description words x1, technology tags x3."""
    score = PROJECT_NAME_POINTS * sum(1 for word in project.name.lower().split() if word in keys)
    score += PROJECT_DESCRIPTION_POINTS * sum(
        1 for word in words(project.description) if word in keys
    )
    score += PROJECT_TECHNOLOGY_POINTS * sum(
        1 for tech in project.technologies if tech.lower() in keys
    )
    return score


def select_experience(
    experiences: Sequence[WorkExperience], keywords: Sequence[Keyword]
) -> List[Tuple[WorkExperience, int]]:
    """Top MAX_EXPERIENCE_ENTRIES roles by score; ties keep original order."""
    keys = keyword_set(keywords)
    scored = [(exp, score_experience(exp, keys)) for exp in experiences]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:MAX_EXPERIENCE_ENTRIES]


def select_projects(projects: Sequence[Project], keywords: Sequence[Keyword]) -> List[ProjectEntry]:
    """Top MAX_PROJECTS projects by score; ties keep original order."""
    keys = keyword_set(keywords)
    ranked = sorted(projects, key=lambda p: score_project(p, keys), reverse=True)
    return [
        ProjectEntry(name=p.name, description=p.description, technologies=list(p.technologies))
        for p in ranked[:MAX_PROJECTS]
    ]


def format_education(education: Sequence[Education]) -> List[EducationEntry]:
    return [
        EducationEntry(
            degree=e.degree,
            institution=e.institution,
            dates=e.dates,
            gpa=e.gpa,
            relevant_courses=list(e.relevant_courses),
        )
        for e in education
    ]


def _dedupe_append(target: List[str], candidates: Iterable[str]) -> None:
    seen = {s.lower() for s in target}
    for candidate in candidates:
        if candidate and candidate.lower() not in seen:
            target.append(candidate)
            seen.add(candidate.lower())


def merge_skills(
    user_skills: Sequence[str], suggested: Sequence[str], keywords: Sequence[Keyword]
) -> List[str]:
    """
    Order skills: user skills matching a job keyword, then suggested skills, then
    the remaining user skills. Case-insensitive dedupe, capped at MAX_SKILLS.
    """
    keys = keyword_set(keywords)
    skills: List[str] = []
    _dedupe_append(skills, [s for s in user_skills if s.lower() in keys])
    _dedupe_append(skills, suggested)
    _dedupe_append(skills, user_skills)
    return skills[:MAX_SKILLS]


def fallback_skill_suggestions(keywords: Sequence[Keyword]) -> List[str]:
    return [k.text for k in keywords if k.weight > SUGGESTED_SKILL_MIN_WEIGHT][:MAX_SUGGESTED_SKILLS]


def fallback_summary(profile: UserProfile, keywords: Sequence[Keyword]) -> str:
    """
    Deterministic summary from first name, experience count and top keywords.

    Example:
        "Ada brings 2 professional roles of experience. Skilled in python, aws, sql
        with a proven track record of delivering results. Seeking to leverage this
        expertise in a challenging new role."
    """
    first_name = profile.personal.first_name or "Candidate"
    count = len(profile.work_experience)
    roles = "role" if count == 1 else "roles"
    top = ", ".join(k.text for k in keywords[:FALLBACK_SUMMARY_SKILLS])

    sentences = [f"{first_name} brings {count} professional {roles} of experience."]
    if top:
        sentences.append(f"Skilled in {top} with a proven track record of delivering results.")
    else:
        sentences.append("Proven track record of delivering results.")
    sentences.append("Seeking to leverage this expertise in a challenging new role.")
    return " ".join(sentences)


def optimize_skills(skills: Sequence[str], keywords: Sequence[Keyword]) -> List[str]:
    """Append missing keywords weighted above OPTIMIZE_SKILL_MIN_WEIGHT, capped at MAX_SKILLS."""
    optimized = list(skills)
    _dedupe_append(optimized, [k.text for k in keywords if k.weight > OPTIMIZE_SKILL_MIN_WEIGHT])
    return optimized[:MAX_SKILLS]


def recommendations(analysis: MatchAnalysis) -> List[Recommendation]:
    """Improvement recommendations for a match analysis."""
    found = []
    if analysis.match_score < LOW_SCORE_THRESHOLD:
        found.append(
            Recommendation(
                type="low_match_score",
                priority="high",
                message=(
                    "Your CV has a low keyword match score. "
                    "Consider adding more relevant skills and experience."
                ),
                action="Add missing keywords to your skills and experience sections",
            )
        )
    if analysis.missing:
        top_missing = ", ".join(k.text for k in analysis.missing[:5])
        found.append(
            Recommendation(
                type="missing_keywords",
                priority="medium",
                message=f"Consider adding these relevant keywords: {top_missing}",
                action="Incorporate these keywords naturally into your experience descriptions",
            )
        )
    if len(analysis.matched) < MIN_MATCHED_KEYWORDS:
        found.append(
            Recommendation(
                type="enhance_experience",
                priority="high",
                message="Your work experience could better highlight relevant skills.",
                action=(
                    "Rewrite bullet points to emphasize job-relevant achievements and technologies"
                ),
            )
        )
    return found


# --- Orchestration ---


class ContentTailor:
    """
    Tailors a candidate profile to a job posting.

    Args:
        provider: Generative-text provider; None uses deterministic fallbacks throughout
        extractor: Keyword extractor for jobs without keywords (default: one sharing provider)
        max_workers: Thread pool size for concurrent bullet rewriting
    """

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        extractor: Optional[KeywordExtractor] = None,
        max_workers: int = 4,
    ):
        self.provider = provider
        self.extractor = extractor or KeywordExtractor(provider=provider, max_workers=max_workers)
        self.max_workers = max_workers

    # --- Generative steps (each with a fallback) ---

    def _generate_text(
        self, prompt: Tuple[str, str], max_tokens: int, temperature: float
    ) -> Optional[str]:
        """Plain-text generation; None when unavailable, failed or empty."""
        if self.provider is None:
            return None
        system_prompt, user_prompt = prompt
        try:
            response = self.provider.generate(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except ExternalServiceError as e:
            _log_warning(f"Generation failed, using fallback: {e}")
            return None
        text = clean_text_response(response.content)
        return text or None

    def rewrite_bullet(self, bullet: Bullet, keywords: Sequence[Keyword]) -> str:
        """Rewritten bullet text, or the original text if rewriting fails."""
        rewritten = self._generate_text(
            prompts.bullet_prompt(bullet.text, keywords, bullet.metrics),
            max_tokens=200,
            temperature=0.5,
        )
        return rewritten or bullet.text

    def rewrite_bullets(
        self, bullets: Sequence[Bullet], keywords: Sequence[Keyword]
    ) -> List[str]:
        """Rewrite bullets concurrently; any failed unit keeps its original text."""
        if not bullets:
            return []
        if self.provider is None:
            return [b.text for b in bullets]

        outcome = run_concurrently(
            bullets,
            lambda bullet: self.rewrite_bullet(bullet, keywords),
            label="bullet",
            max_workers=self.max_workers,
            describe=lambda bullet: repr(bullet.text[:40]),
        )
        return [r.value if r.ok else r.unit.text for r in outcome.results]

    def generate_summary(
        self, profile: UserProfile, job: JobDescription, keywords: Sequence[Keyword]
    ) -> str:
        """Provider summary from the top keywords; deterministic sentence on failure."""
        summary = self._generate_text(
            prompts.summary_prompt(
                name=profile.personal.name,
                experience_count=len(profile.work_experience),
                skills=profile.skill_names,
                job_description=job.description,
                keywords=keywords[:SUMMARY_KEYWORD_LIMIT],
            ),
            max_tokens=300,
            temperature=0.6,
        )
        if summary is None:
            _log_info("Using fallback summary")
            return fallback_summary(profile, keywords)
        return summary

    def suggest_skills(self, keywords: Sequence[Keyword]) -> List[str]:
        """Provider-organized skills list; high-weight keywords on failure."""
        if self.provider is not None:
            system_prompt, user_prompt = prompts.skills_prompt(keywords)
            try:
                response = self.provider.generate(
                    system_prompt=system_prompt,
                    user_prompt=user_prompt,
                    max_tokens=400,
                    temperature=0.3,
                )
                items = parse_json_array(response.content)
                if items is not None:
                    return [str(s).strip() for s in items if isinstance(s, str) and s.strip()]
                _log_warning("Skills generation returned non-JSON output, using fallback")
            except ExternalServiceError as e:
                _log_warning(f"Skills generation failed, using fallback: {e}")
        return fallback_skill_suggestions(keywords)

    # --- Pipeline ---

    def job_keywords(self, job: JobDescription) -> List[Keyword]:
        """Top tailoring keywords, extracting them first if the job has none."""
        keywords = list(job.keywords) or self.extractor.extract(job.description)
        return keywords[:TAILORING_KEYWORD_LIMIT]

    def tailor(
        self, profile: UserProfile, job: JobDescription, template: str = "modern"
    ) -> TailoringResult:
        """
        Build a TailoredCV for profile aligned to job.

        Args:
            profile: Candidate profile (read-only)
            job: Job posting, with or without pre-extracted keywords
            template: Template identifier recorded on the CV

        Returns:
            TailoringResult with the CV, initial/final analyses and recommendations
        """
        _log_info(f"Tailoring CV for '{job.title}'" + (f" at {job.company}" if job.company else ""))

        keywords = self.job_keywords(job)
        initial = score_match(profile_keywords(profile), keywords)
        _log_info(f"Profile match before tailoring: {initial.match_score}%")

        # Experience: select, then rewrite every selected bullet in one batch
        selected = select_experience(profile.work_experience, keywords)
        units = [b for exp, _ in selected for b in exp.bullets[:MAX_BULLETS_PER_ENTRY]]
        rewritten = iter(self.rewrite_bullets(units, keywords[:BULLET_KEYWORD_LIMIT]))
        experience = [
            ExperienceEntry(
                company=exp.company,
                role=exp.role,
                dates=exp.dates,
                bullets=[next(rewritten) for _ in exp.bullets[:MAX_BULLETS_PER_ENTRY]],
                relevance_score=score,
            )
            for exp, score in selected
        ]
        _log_debug(f"  Selected roles: {[e.role for e in experience]}")

        cv = TailoredCV(
            summary=self.generate_summary(profile, job, keywords),
            skills=merge_skills(profile.skill_names, self.suggest_skills(keywords), keywords),
            experience=experience,
            projects=select_projects(profile.projects, keywords),
            education=format_education(profile.education),
            template_used=template,
        )

        final = score_match(tailored_keywords(cv), keywords)
        cv = cv.with_changes(
            matched_keywords=final.matched_keywords, relevance_score=final.match_score
        )
        _log_info(
            f"Tailoring complete: score {final.match_score}% "
            f"({len(final.matched)}/{len(keywords)} keywords matched)"
        )

        return TailoringResult(
            cv=cv,
            keywords=keywords,
            initial_analysis=initial,
            final_analysis=final,
            recommendations=recommendations(initial),
        )

    def optimize(
        self,
        cv: TailoredCV,
        job_keywords: Iterable[Any],
        target_score: int = DEFAULT_TARGET_SCORE,
    ) -> OptimizationResult:
        """
        Run at most one optimization pass toward target_score.

        No provider calls are made when the CV already meets the target. Otherwise
        bullets and summary are rewritten toward the top missing keywords and
        high-weight missing keywords are added as skills. There is no loop: the
        result may still fall short of the target.
        """
        keywords = normalize_keywords(job_keywords)
        current = score_match(tailored_keywords(cv), keywords)

        if current.match_score >= target_score:
            _log_info(f"CV already meets target ({current.match_score}% >= {target_score}%)")
            return OptimizationResult(
                cv=cv,
                analysis=current,
                optimized=False,
                message="Content already meets target score",
            )

        _log_info(f"Optimizing CV: {current.match_score}% toward {target_score}%")
        focus = current.missing[:OPTIMIZE_KEYWORD_LIMIT]

        rewritten = iter(self.rewrite_bullets([Bullet(text=b) for b in cv.bullets], focus))
        experience = [
            ExperienceEntry(
                company=e.company,
                role=e.role,
                dates=e.dates,
                bullets=[next(rewritten) for _ in e.bullets],
                relevance_score=e.relevance_score,
            )
            for e in cv.experience
        ]

        summary = cv.summary
        if summary:
            summary = (
                self._generate_text(
                    prompts.summary_optimize_prompt(summary, focus),
                    max_tokens=200,
                    temperature=0.6,
                )
                or summary
            )

        optimized = cv.with_changes(
            experience=experience,
            skills=optimize_skills(cv.skills, current.missing),
            summary=summary,
        )
        final = score_match(tailored_keywords(optimized), keywords)
        optimized = optimized.with_changes(
            matched_keywords=final.matched_keywords, relevance_score=final.match_score
        )

        return OptimizationResult(
            cv=optimized,
            analysis=final,
            optimized=True,
            improvement=final.match_score - current.match_score,
            message=(
                f"Match score improved from {current.match_score}% to {final.match_score}%"
            ),
        )

    def recommendations(self, analysis: MatchAnalysis) -> List[Recommendation]:
        return recommendations(analysis)
