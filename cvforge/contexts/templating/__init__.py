"""
Templating Context

Responsibilities:
- Maintains the document template catalog (templates/catalog.yaml)
- Sanitizes template ids and rendering options against allow-lists
- Escapes every substituted value for LaTeX
- Populates templates with CV data and reports unresolved markers

Owns: Jinja2 template system, LaTeX escaping, option defaults
Never: Makes content prioritization decisions or runs the compiler
"""

from cvforge.contexts.templating.escaping import escape_latex
from cvforge.contexts.templating.populator import (
    PopulatedDocument,
    TemplatePopulator,
    find_unresolved_markers,
)
from cvforge.contexts.templating.template_registry import TemplateInfo, TemplateRegistry

__all__ = [
    # Escaping
    "escape_latex",
    # Population
    "TemplatePopulator",
    "PopulatedDocument",
    "find_unresolved_markers",
    # Catalog
    "TemplateRegistry",
    "TemplateInfo",
]
