"""Unit tests for TemplateRegistry and the template catalog."""

from pathlib import Path

import pytest
from jinja2 import TemplateNotFound

from cvforge.contexts.templating.template_registry import TemplateRegistry


@pytest.mark.unit
def test_template_registry_init():
    registry = TemplateRegistry()

    assert registry.templates_path.exists()
    assert registry._cache == {}


@pytest.mark.unit
def test_catalog_lists_packaged_templates():
    registry = TemplateRegistry()

    assert registry.names() == ["modern", "classic"]
    modern = registry.get_info("modern")
    assert modern.display_name == "Modern"
    assert modern.description == "Clean, modern design with color accents"
    assert "teal" in modern.color_options


@pytest.mark.unit
def test_catalog_entry_to_dict():
    info = TemplateRegistry().get_info("classic")

    assert info.to_dict() == {
        "name": "classic",
        "displayName": "Classic",
        "description": "Traditional, professional layout",
        "colorOptions": ["black", "blue", "red", "green"],
    }


@pytest.mark.unit
def test_every_catalog_entry_has_a_template():
    registry = TemplateRegistry()

    for name in registry.names():
        assert registry.get_template_path(name).exists()


@pytest.mark.unit
def test_template_caching():
    registry = TemplateRegistry()

    template1 = registry.get_template("modern")
    assert registry.is_cached("modern")

    template2 = registry.get_template("modern")
    assert template1 is template2

    registry.clear_cache()
    assert not registry.is_cached("modern")


@pytest.mark.unit
def test_get_template_not_found():
    with pytest.raises(TemplateNotFound):
        TemplateRegistry().get_template("nonexistent_type")


@pytest.mark.unit
def test_get_template_path():
    path = TemplateRegistry().get_template_path("modern")

    assert isinstance(path, Path)
    assert path.name == "template.tex.jinja"
    assert path.parent.name == "modern"


@pytest.mark.unit
def test_custom_delimiters_and_escaping(tmp_path):
    (tmp_path / "mini").mkdir()
    (tmp_path / "mini" / "template.tex.jinja").write_text(
        "<# comment #>\\textbf{<<< name >>>}<%% if show %%> shown<%% endif %%>\n"
    )
    template = TemplateRegistry(tmp_path).get_template("mini")

    assert template.render(name="R&D", show=True) == "\\textbf{R\\&D} shown\n"


@pytest.mark.unit
def test_undefined_values_render_as_markers(tmp_path):
    (tmp_path / "mini").mkdir()
    (tmp_path / "mini" / "template.tex.jinja").write_text("<<< person.nickname >>>|<<< headline >>>")
    template = TemplateRegistry(tmp_path).get_template("mini")

    assert template.render(person={}) == "<<< nickname >>>|<<< headline >>>"
