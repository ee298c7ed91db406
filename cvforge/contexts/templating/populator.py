"""
Template population: render-request data + options -> LaTeX source.

Request data is normalized into a fixed template context first (every field the
templates reference exists, with empty defaults), so a fully specified CV leaves no
unresolved markers. Anything still unresolved after rendering is reported as a
quality warning, never an error.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from cvforge.contexts.templating.defaults import (
    COLOR_SCHEMES,
    MARGINS,
    sanitize_color_scheme,
    sanitize_font_size,
    sanitize_margins,
)
from cvforge.contexts.templating.logger import _log_debug, _log_warning
from cvforge.contexts.templating.template_registry import TemplateRegistry

UNRESOLVED_MARKER = re.compile(r"<<<\s*[\w.]+\s*>>>")


@dataclass
class PopulatedDocument:
    """
    Populated LaTeX source for one template.

    Attributes:
        template: Template identifier used
        source: Complete LaTeX document
        unresolved_markers: Marker strings left in the source (empty when complete)
    """

    template: str
    source: str
    unresolved_markers: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.unresolved_markers


def find_unresolved_markers(source: str) -> List[str]:
    """Distinct `<<< name >>>` markers in source, in order of first appearance."""
    return list(dict.fromkeys(UNRESOLVED_MARKER.findall(source)))


# --- Context normalization ---


def _text(data: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _dates(data: Mapping[str, Any]) -> str:
    dates = _text(data, "dates")
    if dates:
        return dates
    start = _text(data, "start_date")
    if not start:
        return ""
    return f"{start} - {_text(data, 'end_date') or 'Present'}"


def _strings(values: Any) -> List[str]:
    if not isinstance(values, (list, tuple)):
        return []
    return [str(v).strip() for v in values if v is not None and str(v).strip()]


def _bullet_text(bullet: Any) -> str:
    if isinstance(bullet, Mapping):
        return _text(bullet, "text")
    return str(bullet).strip() if bullet is not None else ""


def _bullets(values: Any) -> List[str]:
    # A lone string is one bullet, not a sequence of characters
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, (list, tuple)):
        return []
    return [t for t in map(_bullet_text, values) if t]


def _mappings(values: Any) -> List[Mapping[str, Any]]:
    if not isinstance(values, (list, tuple)):
        return []
    return [v for v in values if isinstance(v, Mapping)]


def skill_groups(skills: Any) -> List[Dict[str, Any]]:
    """
    Group skills for display.

    Plain strings form a single uncategorized group. When any skill carries a
    category, skills are grouped by category in first-seen order (uncategorized
    skills go under "Technical").
    """
    if not isinstance(skills, (list, tuple)):
        return []

    entries = []
    for skill in skills:
        if isinstance(skill, Mapping):
            name = _text(skill, "name")
            category = _text(skill, "category")
        else:
            name = str(skill).strip() if skill is not None else ""
            category = ""
        if name:
            entries.append((category, name))

    if not any(category for category, _ in entries):
        return [{"category": "", "items": [name for _, name in entries]}] if entries else []

    groups: Dict[str, List[str]] = {}
    for category, name in entries:
        groups.setdefault((category or "technical").capitalize(), []).append(name)
    return [{"category": category, "items": items} for category, items in groups.items()]


def build_context(
    cv_data: Mapping[str, Any],
    font_size: Optional[str] = None,
    margins: Optional[str] = None,
    color_scheme: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Normalize render-request cvData and options into the template context.

    Accepts profile-style keys (start_date/end_date, linkedIn, {text} bullets,
    {name, category} skills) as well as tailored-CV keys.
    """
    personal = cv_data.get("personal") or {}
    if not isinstance(personal, Mapping):
        personal = {}

    color_scheme = sanitize_color_scheme(color_scheme)
    margins = sanitize_margins(margins)

    return {
        "personal": {
            "name": _text(personal, "name"),
            "email": _text(personal, "email"),
            "phone": _text(personal, "phone"),
            "linkedin": _text(personal, "linkedIn", "linkedin"),
            "location": _text(personal, "location"),
            "website": _text(personal, "website"),
        },
        "summary": _text(cv_data, "summary"),
        "skill_groups": skill_groups(cv_data.get("skills")),
        "experience": [
            {
                "company": _text(e, "company"),
                "role": _text(e, "role"),
                "dates": _dates(e),
                "bullets": _bullets(e.get("bullets")),
            }
            for e in _mappings(cv_data.get("experience") or cv_data.get("work_experience"))
        ],
        "projects": [
            {
                "name": _text(p, "name"),
                "description": _text(p, "description"),
                "technologies": _strings(p.get("technologies")),
                "url": _text(p, "url"),
                "dates": _dates(p),
            }
            for p in _mappings(cv_data.get("projects"))
        ],
        "education": [
            {
                "degree": _text(e, "degree"),
                "institution": _text(e, "institution"),
                "dates": _dates(e),
                "gpa": _text(e, "gpa"),
                "relevant_courses": _strings(e.get("relevant_courses")),
            }
            for e in _mappings(cv_data.get("education"))
        ],
        "options": {
            "font_size": sanitize_font_size(font_size),
            "margin": MARGINS[margins],
            "color_scheme": color_scheme,
            "color_rgb": COLOR_SCHEMES[color_scheme],
        },
    }


class TemplatePopulator:
    """
    Populates document templates with request data.

    Args:
        registry: Template registry (default: packaged templates)
    """

    def __init__(self, registry: TemplateRegistry = None):
        self.registry = registry or TemplateRegistry()

    def populate(
        self,
        template: str,
        cv_data: Mapping[str, Any],
        font_size: Optional[str] = None,
        margins: Optional[str] = None,
        color_scheme: Optional[str] = None,
    ) -> PopulatedDocument:
        """
        Render template with cv_data.

        Args:
            template: Already-sanitized template identifier
            cv_data: Render-request cvData
            font_size, margins, color_scheme: Option values (invalid values default)

        Returns:
            PopulatedDocument; unresolved markers are logged as a warning

        Raises:
            TemplateNotFound: If the template file is missing
        """
        context = build_context(cv_data, font_size, margins, color_scheme)
        source = self.registry.get_template(template).render(**context)

        markers = find_unresolved_markers(source)
        if markers:
            _log_warning(
                f"Template '{template}' has {len(markers)} unresolved marker(s): "
                f"{', '.join(markers[:10])}"
            )
        else:
            _log_debug(f"Template '{template}' populated ({len(source)} chars)")

        return PopulatedDocument(template=template, source=source, unresolved_markers=markers)
