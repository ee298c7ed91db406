"""Unit tests for template population."""

import pytest

from cvforge.contexts.templating.populator import (
    TemplatePopulator,
    build_context,
    find_unresolved_markers,
    skill_groups,
)
from cvforge.contexts.templating.template_registry import TemplateRegistry


@pytest.mark.unit
@pytest.mark.parametrize("template", ["modern", "classic"])
def test_full_cv_leaves_no_markers(template, cv_data):
    document = TemplatePopulator().populate(template, cv_data)

    assert document.is_complete
    assert find_unresolved_markers(document.source) == []
    assert "<<<" not in document.source
    assert "Ada Lovelace" in document.source


@pytest.mark.unit
@pytest.mark.parametrize("template", ["modern", "classic"])
def test_minimal_cv_leaves_no_markers(template):
    document = TemplatePopulator().populate(
        template, {"personal": {"name": "Ada", "email": "ada@example.com"}}
    )

    assert document.is_complete
    assert "\\cvsection{Experience}" not in document.source


@pytest.mark.unit
def test_substituted_text_is_escaped(cv_data):
    source = TemplatePopulator().populate("modern", cv_data).source

    assert "Engineer \\& mathematician with 100\\% focus" in source
    assert "saving \\$5k/month" in source
    assert "Led R\\&D reviews" in source
    assert "Note\\_G" in source
    assert "Python, SQL, C\\#" in source


@pytest.mark.unit
def test_options_are_substituted(cv_data):
    source = TemplatePopulator().populate(
        "modern", cv_data, font_size="12pt", margins="narrow", color_scheme="red"
    ).source

    assert "\\documentclass[12pt,letterpaper]{article}" in source
    assert "\\usepackage[margin=0.5in]{geometry}" in source
    assert "\\definecolor{accent}{RGB}{155,28,28}" in source


@pytest.mark.unit
def test_invalid_options_fall_back_to_defaults(cv_data):
    source = TemplatePopulator().populate(
        "modern", cv_data, font_size="72pt", margins="huge", color_scheme="\\evil"
    ).source

    assert "\\documentclass[11pt,letterpaper]{article}" in source
    assert "\\usepackage[margin=0.75in]{geometry}" in source
    assert "\\definecolor{accent}{RGB}{31,78,121}" in source


@pytest.mark.unit
def test_unresolved_markers_reported(tmp_path):
    (tmp_path / "mini").mkdir()
    (tmp_path / "mini" / "template.tex.jinja").write_text(
        "<<< personal.name >>> <<< personal.nickname >>> <<< personal.nickname >>>"
    )
    populator = TemplatePopulator(TemplateRegistry(tmp_path))

    document = populator.populate("mini", {"personal": {"name": "Ada"}})

    assert not document.is_complete
    assert document.unresolved_markers == ["<<< nickname >>>"]
    assert document.source.startswith("Ada ")


@pytest.mark.unit
def test_context_accepts_profile_style_keys():
    context = build_context(
        {
            "personal": {"name": "Ada", "email": "a@b.c", "linkedin": "in/ada"},
            "work_experience": [
                {
                    "company": "Co",
                    "role": "Dev",
                    "start_date": "2020",
                    "bullets": [{"text": "Did it"}, "", "Again"],
                }
            ],
        }
    )

    assert context["personal"]["linkedin"] == "in/ada"
    assert context["experience"][0]["dates"] == "2020 - Present"
    assert context["experience"][0]["bullets"] == ["Did it", "Again"]
    assert context["options"]["margin"] == "0.75in"


@pytest.mark.unit
@pytest.mark.parametrize(
    "bullets, expected",
    [
        ("Shipped the ledger", ["Shipped the ledger"]),
        ({"text": "Not a list"}, []),
        (None, []),
        (42, []),
    ],
)
def test_experience_bullet_shapes(bullets, expected):
    """A bare string is one bullet, never split into characters; other shapes are dropped."""
    context = build_context(
        {"experience": [{"company": "Co", "role": "Dev", "bullets": bullets}]}
    )

    assert context["experience"][0]["bullets"] == expected


@pytest.mark.unit
def test_skill_groups():
    assert skill_groups(["Python", "SQL"]) == [{"category": "", "items": ["Python", "SQL"]}]
    assert skill_groups(["Python", {"name": "Leadership", "category": "soft"}]) == [
        {"category": "Technical", "items": ["Python"]},
        {"category": "Soft", "items": ["Leadership"]},
    ]
    assert skill_groups(None) == []
