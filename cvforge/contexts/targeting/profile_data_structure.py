"""
Candidate Profile Data Structures

Defines the read-only candidate profile consumed by the Targeting context. Raw
request data (skills as strings or {name, category} objects, bullets as strings or
{text, metrics} objects) is normalized by UserProfile.from_dict at the boundary.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from cvforge.exceptions import ValidationError

MAX_NAME_LENGTH = 100
MAX_SUMMARY_LENGTH = 500
MAX_BULLET_LENGTH = 300

SKILL_CATEGORIES = ("technical", "soft", "language", "other")


@dataclass(frozen=True)
class PersonalInfo:
    """
    Contact block.

    Attributes:
        name: Full name (required)
        email: Email address (required)
        phone, linkedin, location, website: Optional contact fields
    """

    name: str
    email: str
    phone: str = ""
    linkedin: str = ""
    location: str = ""
    website: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PersonalInfo":
        """Contact block from request data (no validation; see UserProfile.from_dict)."""
        data = data if isinstance(data, Mapping) else {}
        return cls(
            name=_text(data, "name"),
            email=_text(data, "email"),
            phone=_text(data, "phone"),
            linkedin=_text(data, "linkedIn", "linkedin"),
            location=_text(data, "location"),
            website=_text(data, "website"),
        )

    @property
    def first_name(self) -> str:
        return self.name.split()[0] if self.name.strip() else ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "linkedIn": self.linkedin,
            "location": self.location,
            "website": self.website,
        }


@dataclass(frozen=True)
class Bullet:
    """Experience bullet with optional metrics annotation."""

    text: str
    metrics: str = ""


@dataclass(frozen=True)
class WorkExperience:
    company: str
    role: str
    start_date: str = ""
    end_date: str = ""
    bullets: List[Bullet] = field(default_factory=list)

    @property
    def dates(self) -> str:
        return format_date_range(self.start_date, self.end_date)


@dataclass(frozen=True)
class Project:
    name: str
    description: str = ""
    technologies: List[str] = field(default_factory=list)
    url: str = ""


@dataclass(frozen=True)
class Education:
    degree: str
    institution: str
    start_date: str = ""
    end_date: str = ""
    gpa: str = ""
    relevant_courses: List[str] = field(default_factory=list)

    @property
    def dates(self) -> str:
        return format_date_range(self.start_date, self.end_date)


@dataclass(frozen=True)
class Skill:
    name: str
    category: str = "technical"


def format_date_range(start: str, end: str) -> str:
    """'{start} - {end}', with an open end shown as 'Present'. No start: just the end."""
    if not start:
        return end
    return f"{start} - {end or 'Present'}"


def _text(data: Mapping[str, Any], key: str, *aliases: str) -> str:
    for name in (key,) + aliases:
        value = data.get(name)
        if value is not None:
            return str(value).strip()
    return ""


def _list(data: Mapping[str, Any], key: str, *aliases: str) -> List[Any]:
    for name in (key,) + aliases:
        value = data.get(name)
        if isinstance(value, (list, tuple)):
            return list(value)
    return []


def parse_bullet(raw: Any) -> Optional[Bullet]:
    """Bullet from a plain string or a {text, metrics} mapping; None if empty."""
    if isinstance(raw, Bullet):
        return raw
    if isinstance(raw, str):
        return Bullet(text=raw.strip()) if raw.strip() else None
    if isinstance(raw, Mapping):
        text = _text(raw, "text")
        return Bullet(text=text, metrics=_text(raw, "metrics")) if text else None
    return None


def parse_skill(raw: Any) -> Optional[Skill]:
    """Skill from a plain string or a {name, category} mapping; None if empty."""
    if isinstance(raw, Skill):
        return raw
    if isinstance(raw, str):
        return Skill(name=raw.strip()) if raw.strip() else None
    if isinstance(raw, Mapping):
        name = _text(raw, "name")
        if not name:
            return None
        category = _text(raw, "category") or "technical"
        return Skill(name=name, category=category if category in SKILL_CATEGORIES else "other")
    return None


@dataclass(frozen=True)
class UserProfile:
    """
    Candidate profile, read-only to the tailoring pipeline.

    Attributes:
        personal: Contact block
        summary: Existing professional summary (may be empty)
        work_experience: Roles in the order the candidate listed them
        skills: Declared skills
        projects: Portfolio projects
        education: Degrees
    """

    personal: PersonalInfo
    summary: str = ""
    work_experience: List[WorkExperience] = field(default_factory=list)
    skills: List[Skill] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    education: List[Education] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserProfile":
        """
        Build a validated profile from request data.

        Accepts both `work_experience` and `experience` as the roles key, and
        `linkedIn`/`linkedin` for the profile URL.

        Raises:
            ValidationError: If required fields are missing
        """
        if not isinstance(data, Mapping):
            raise ValidationError("Invalid profile data", ["Expected an object"])

        issues = []
        personal_data = data.get("personal") or {}
        if not isinstance(personal_data, Mapping):
            personal_data = {}

        name = _text(personal_data, "name")
        email = _text(personal_data, "email")
        if not name:
            issues.append("personal.name is required")
        elif len(name) > MAX_NAME_LENGTH:
            issues.append(f"personal.name must be at most {MAX_NAME_LENGTH} characters")
        if not email:
            issues.append("personal.email is required")

        summary = _text(data, "summary")
        if len(summary) > MAX_SUMMARY_LENGTH:
            issues.append(f"summary must be at most {MAX_SUMMARY_LENGTH} characters")

        experience = []
        for i, raw in enumerate(_list(data, "work_experience", "experience")):
            if not isinstance(raw, Mapping):
                issues.append(f"work_experience[{i}] must be an object")
                continue
            company, role = _text(raw, "company"), _text(raw, "role")
            if not company or not role:
                issues.append(f"work_experience[{i}] requires company and role")
                continue
            bullets = [b for b in map(parse_bullet, _list(raw, "bullets")) if b is not None]
            for j, bullet in enumerate(bullets):
                if len(bullet.text) > MAX_BULLET_LENGTH:
                    issues.append(
                        f"work_experience[{i}].bullets[{j}] must be at most "
                        f"{MAX_BULLET_LENGTH} characters"
                    )
            experience.append(
                WorkExperience(
                    company=company,
                    role=role,
                    start_date=_text(raw, "start_date"),
                    end_date=_text(raw, "end_date"),
                    bullets=bullets,
                )
            )

        projects = []
        for i, raw in enumerate(_list(data, "projects")):
            if not isinstance(raw, Mapping) or not _text(raw, "name"):
                issues.append(f"projects[{i}] requires a name")
                continue
            projects.append(
                Project(
                    name=_text(raw, "name"),
                    description=_text(raw, "description"),
                    technologies=[str(t).strip() for t in _list(raw, "technologies") if str(t).strip()],
                    url=_text(raw, "url"),
                )
            )

        education = []
        for i, raw in enumerate(_list(data, "education")):
            if not isinstance(raw, Mapping) or not _text(raw, "degree") or not _text(raw, "institution"):
                issues.append(f"education[{i}] requires degree and institution")
                continue
            education.append(
                Education(
                    degree=_text(raw, "degree"),
                    institution=_text(raw, "institution"),
                    start_date=_text(raw, "start_date"),
                    end_date=_text(raw, "end_date"),
                    gpa=_text(raw, "gpa"),
                    relevant_courses=[str(c) for c in _list(raw, "relevant_courses")],
                )
            )

        if issues:
            raise ValidationError("Invalid profile data", issues)

        return cls(
            personal=PersonalInfo.from_dict(personal_data),
            summary=summary,
            work_experience=experience,
            skills=[s for s in map(parse_skill, _list(data, "skills")) if s is not None],
            projects=projects,
            education=education,
        )

    @property
    def skill_names(self) -> List[str]:
        return [skill.name for skill in self.skills]
