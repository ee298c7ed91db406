"""
Tailored CV Data Structure

The selected and rewritten subset of a candidate profile for one job posting.
Selection caps are enforced at construction, so a TailoredCV that exists is always
within bounds.
"""

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Mapping

from cvforge.contexts.targeting.profile_data_structure import PersonalInfo
from cvforge.exceptions import ValidationError

MAX_EXPERIENCE_ENTRIES = 4
MAX_BULLETS_PER_ENTRY = 4
MAX_SKILLS = 15
MAX_PROJECTS = 3


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"expected a list, got {type(value).__name__}")
    return [str(v) for v in value]


@dataclass(frozen=True)
class ExperienceEntry:
    """
    Selected role with rewritten bullets.

    Attributes:
        company: Employer
        role: Role title
        dates: Display date range ("2020 - Present")
        bullets: Rewritten bullet texts
        relevance_score: Selection score the role was ranked by
    """

    company: str
    role: str
    dates: str = ""
    bullets: List[str] = field(default_factory=list)
    relevance_score: int = 0


@dataclass(frozen=True)
class ProjectEntry:
    name: str
    description: str = ""
    technologies: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class EducationEntry:
    degree: str
    institution: str
    dates: str = ""
    gpa: str = ""
    relevant_courses: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class TailoredCV:
    """
    CV content aligned to one job posting.

    Attributes:
        summary: Professional summary
        skills: Ordered skill names (at most MAX_SKILLS)
        experience: Selected roles (at most MAX_EXPERIENCE_ENTRIES, each with at
            most MAX_BULLETS_PER_ENTRY bullets)
        projects: Selected projects (at most MAX_PROJECTS)
        education: Education entries (passed through)
        matched_keywords: Job keywords present in the tailored content
        relevance_score: Match score in [0, 100]
        template_used: Template identifier for rendering

    Raises:
        ValidationError: If any cap or bound is violated
    """

    summary: str = ""
    skills: List[str] = field(default_factory=list)
    experience: List[ExperienceEntry] = field(default_factory=list)
    projects: List[ProjectEntry] = field(default_factory=list)
    education: List[EducationEntry] = field(default_factory=list)
    matched_keywords: List[str] = field(default_factory=list)
    relevance_score: int = 0
    template_used: str = "modern"

    def __post_init__(self):
        issues = []
        if len(self.experience) > MAX_EXPERIENCE_ENTRIES:
            issues.append(f"at most {MAX_EXPERIENCE_ENTRIES} experience entries allowed")
        for entry in self.experience:
            if len(entry.bullets) > MAX_BULLETS_PER_ENTRY:
                issues.append(
                    f"at most {MAX_BULLETS_PER_ENTRY} bullets allowed per entry ({entry.role})"
                )
        if len(self.skills) > MAX_SKILLS:
            issues.append(f"at most {MAX_SKILLS} skills allowed")
        if len(self.projects) > MAX_PROJECTS:
            issues.append(f"at most {MAX_PROJECTS} projects allowed")
        if not 0 <= self.relevance_score <= 100:
            issues.append("relevance_score must be within [0, 100]")
        if issues:
            raise ValidationError("Tailored CV exceeds selection caps", issues)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TailoredCV":
        """
        Rebuild a TailoredCV from its to_dict() form (e.g. a saved JSON file).

        Raises:
            ValidationError: If the data is malformed or violates caps
        """
        if not isinstance(data, Mapping):
            raise ValidationError("Invalid tailored CV data", ["Expected an object"])
        try:
            return cls(
                summary=str(data.get("summary") or ""),
                skills=_string_list(data.get("skills")),
                experience=[
                    ExperienceEntry(
                        company=e["company"],
                        role=e["role"],
                        dates=e.get("dates", ""),
                        bullets=_string_list(e.get("bullets")),
                        relevance_score=int(e.get("relevance_score", 0)),
                    )
                    for e in data.get("experience") or []
                ],
                projects=[
                    ProjectEntry(
                        name=p["name"],
                        description=p.get("description", ""),
                        technologies=_string_list(p.get("technologies")),
                    )
                    for p in data.get("projects") or []
                ],
                education=[
                    EducationEntry(
                        degree=e["degree"],
                        institution=e["institution"],
                        dates=e.get("dates", ""),
                        gpa=e.get("gpa", ""),
                        relevant_courses=_string_list(e.get("relevant_courses")),
                    )
                    for e in data.get("education") or []
                ],
                matched_keywords=_string_list(data.get("matched_keywords")),
                relevance_score=int(data.get("relevance_score", 0)),
                template_used=str(data.get("template_used") or "modern"),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValidationError("Invalid tailored CV data", [f"Malformed entry: {e}"]) from e

    def with_changes(self, **changes: Any) -> "TailoredCV":
        """Return a copy with the given fields replaced (caps re-checked)."""
        return replace(self, **changes)

    @property
    def bullets(self) -> List[str]:
        return [bullet for entry in self.experience for bullet in entry.bullets]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_render_data(self, personal: PersonalInfo) -> Dict[str, Any]:
        """Render-request `cvData` for this CV under the given contact block."""
        return {
            "personal": personal.to_dict(),
            "summary": self.summary,
            "skills": list(self.skills),
            "experience": [
                {
                    "company": e.company,
                    "role": e.role,
                    "dates": e.dates,
                    "bullets": list(e.bullets),
                }
                for e in self.experience
            ],
            "projects": [
                {
                    "name": p.name,
                    "description": p.description,
                    "technologies": list(p.technologies),
                }
                for p in self.projects
            ],
            "education": [
                {
                    "degree": e.degree,
                    "institution": e.institution,
                    "dates": e.dates,
                    "gpa": e.gpa,
                }
                for e in self.education
            ],
        }
