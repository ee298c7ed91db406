"""
Integration tests compiling real documents with pdflatex.

Skipped when no LaTeX installation is available.
"""

import shutil

import pytest

from cvforge.contexts.rendering.compiler import LATEX_COMPILER, LatexCompiler
from cvforge.contexts.rendering.render_job import DocumentRenderer

pytestmark = [
    pytest.mark.integration,
    pytest.mark.latex,
    pytest.mark.skipif(shutil.which(LATEX_COMPILER) is None, reason="LaTeX compiler not installed"),
]


@pytest.fixture
def renderer(tmp_path):
    return DocumentRenderer(
        compiler=LatexCompiler(), output_dir=tmp_path / "out", work_root=tmp_path / "work"
    )


@pytest.mark.parametrize("template", ["modern", "classic"])
def test_templates_compile(renderer, cv_data, template):
    """Every packaged template compiles, special characters included."""
    result = renderer.render({"cvData": cv_data, "template": template})

    assert result.artifact_path.read_bytes().startswith(b"%PDF")
    assert result.size_bytes > 0
    assert result.page_count == 1
    assert list((renderer.work_root).iterdir()) == []


@pytest.mark.parametrize(
    "options",
    [
        {"fontSize": "10pt", "margins": "narrow", "colorScheme": "teal"},
        {"fontSize": "12pt", "margins": "wide", "colorScheme": "black"},
    ],
)
def test_options_compile(renderer, cv_data, options):
    result = renderer.render({"cvData": cv_data, "options": options})

    assert result.artifact_path.exists()


def test_minimal_cv_compiles(renderer):
    result = renderer.render({"cvData": {"personal": {"name": "Ada", "email": "ada@example.com"}}})

    assert result.page_count == 1
