import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from jinja2 import ChainableUndefined, Environment, FileSystemLoader, Template, TemplateNotFound
from omegaconf import OmegaConf

from cvforge.contexts.templating.escaping import escape_latex

load_dotenv()
TEMPLATES_PATH = Path(os.getenv("TEMPLATES_PATH") or Path(__file__).parent / "templates")
CATALOG_FILENAME = "catalog.yaml"
TEMPLATE_FILENAME = "template.tex.jinja"


class MarkerUndefined(ChainableUndefined):
    """
    Undefined value that renders as a visible `<<< name >>>` marker.

    Missing fields never crash rendering; they survive into the populated source
    where the post-render scan reports them.
    """

    __slots__ = ()

    def __str__(self) -> str:
        return f"<<< {self._undefined_name or 'undefined'} >>>"


def _finalize(value: Any) -> str:
    """Escape every substituted value. Undefined values keep their marker text."""
    if isinstance(value, MarkerUndefined):
        return str(value)
    return escape_latex(value)


@dataclass(frozen=True)
class TemplateInfo:
    """
    Read-only catalog entry for a document template.

    Attributes:
        name: Template identifier (directory name)
        display_name: Human-readable name
        description: Short description of the layout
        color_options: Color schemes the template is designed for
    """

    name: str
    display_name: str
    description: str
    color_options: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "description": self.description,
            "colorOptions": list(self.color_options),
        }


class TemplateRegistry:
    """
    Registry for loading and caching Jinja2 document templates and their catalog.

    Templates are stored in templates/{name}/template.tex.jinja, listed in
    templates/catalog.yaml, and use custom delimiters to avoid conflicts with LaTeX syntax:
    - Variable: <<< var >>>
    - Block: <%% block %%>
    - Comment: <# comment #>

    Every `<<< var >>>` substitution is LaTeX-escaped by the environment's finalize hook,
    so templates never escape by hand.
    """

    def __init__(self, templates_path: Path = None):
        """
        Initialize the template registry.

        Args:
            templates_path: Base path for template directories. Defaults to
                           TEMPLATES_PATH (the packaged templates/ directory)
        """
        self.templates_path = Path(templates_path or TEMPLATES_PATH)
        self._cache: Dict[str, Template] = {}
        self._catalog: Optional[Dict[str, TemplateInfo]] = None

        # Create Jinja2 environment with custom delimiters to avoid LaTeX conflicts
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_path)),
            variable_start_string="<<<",
            variable_end_string=">>>",
            block_start_string="<%%",
            block_end_string="%%>",
            comment_start_string="<#",
            comment_end_string="#>",
            # Preserve whitespace (important for LaTeX)
            trim_blocks=False,
            lstrip_blocks=False,
            keep_trailing_newline=True,
            autoescape=False,
            finalize=_finalize,
            undefined=MarkerUndefined,
        )

    # --- Catalog ---

    def _load_catalog(self) -> Dict[str, TemplateInfo]:
        catalog_path = self.templates_path / CATALOG_FILENAME
        entries = OmegaConf.to_container(OmegaConf.load(catalog_path), resolve=True)

        catalog = {}
        for name, entry in (entries.get("templates") or {}).items():
            catalog[name] = TemplateInfo(
                name=name,
                display_name=entry.get("display_name") or name.capitalize(),
                description=entry.get("description") or "Professional CV template",
                color_options=list(entry.get("color_options") or []),
            )
        return catalog

    def catalog(self) -> List[TemplateInfo]:
        """
        Metadata for every available template (no rendering performed).

        Returns:
            TemplateInfo entries in catalog order
        """
        if self._catalog is None:
            self._catalog = self._load_catalog()
        return list(self._catalog.values())

    def names(self) -> List[str]:
        """Allow-list of template identifiers."""
        return [info.name for info in self.catalog()]

    def get_info(self, name: str) -> TemplateInfo:
        """
        Catalog entry for a template.

        Raises:
            KeyError: If name is not in the catalog
        """
        self.catalog()
        return self._catalog[name]

    # --- Templates ---

    def get_template(self, name: str) -> Template:
        """
        Get a template by name, loading and caching it if necessary.

        Args:
            name: Template identifier (e.g., 'modern')

        Returns:
            Jinja2 Template object

        Raises:
            TemplateNotFound: If template file doesn't exist
            TemplateSyntaxError: If template has Jinja2 syntax errors
        """
        if name in self._cache:
            return self._cache[name]

        template_path = f"{name}/{TEMPLATE_FILENAME}"
        try:
            template = self.env.get_template(template_path)
        except TemplateNotFound as e:
            raise TemplateNotFound(
                f"Template '{name}' not found at {self.templates_path / template_path}"
            ) from e

        self._cache[name] = template
        return template

    def get_template_path(self, name: str) -> Path:
        """File path for a template."""
        return self.templates_path / name / TEMPLATE_FILENAME

    def clear_cache(self):
        """Clear the template and catalog caches."""
        self._cache.clear()
        self._catalog = None

    def is_cached(self, name: str) -> bool:
        return name in self._cache
