"""Unit tests for render jobs using a compiler double."""

import pytest

from cvforge.contexts.rendering.render_job import (
    DocumentRenderer,
    RenderOptions,
    RenderRequest,
    RenderState,
)
from cvforge.exceptions import CompilationError, ValidationError

SUCCESS_HISTORY = [
    RenderState.CREATED,
    RenderState.TEMPLATE_POPULATED,
    RenderState.COMPILING,
    RenderState.SUCCEEDED,
    RenderState.CLEANED,
]
FAILURE_HISTORY = [
    RenderState.CREATED,
    RenderState.TEMPLATE_POPULATED,
    RenderState.COMPILING,
    RenderState.FAILED,
    RenderState.CLEANED,
]


@pytest.fixture
def dirs(tmp_path):
    return tmp_path / "work", tmp_path / "out"


@pytest.fixture
def renderer_with(dirs):
    work, out = dirs

    def build(compiler, **kwargs):
        return DocumentRenderer(compiler=compiler, output_dir=out, work_root=work, **kwargs)

    return build


def _request(cv_data, **extra):
    return {"cvData": cv_data, **extra}


@pytest.mark.unit
def test_render_delivers_artifact(renderer_with, make_compiler, cv_data, dirs):
    work, out = dirs
    renderer = renderer_with(make_compiler())

    result = renderer.render(_request(cv_data, template="modern"))

    assert result.filename == f"cv-modern-{result.job_id}.pdf"
    assert result.artifact_path == out / result.filename
    assert result.artifact_path.exists()
    assert result.size_bytes == 1024
    assert result.page_count == 1
    assert result.history == SUCCESS_HISTORY
    assert list(work.iterdir()) == []


@pytest.mark.unit
def test_result_contract(renderer_with, make_compiler, cv_data):
    result = renderer_with(make_compiler()).render(_request(cv_data))

    data = result.to_dict()
    assert set(data) == {"jobId", "filename", "sizeBytes", "generatedAt", "templateUsed"}
    assert data["templateUsed"] == "modern"
    assert "T" in data["generatedAt"]


@pytest.mark.unit
@pytest.mark.parametrize(
    "requested, expected",
    [
        ("unknown-template", "modern"),
        ("../../etc/passwd", "modern"),
        ("Classic", "classic"),
        (None, "modern"),
        (42, "modern"),
    ],
)
def test_template_names_are_sanitized(renderer_with, make_compiler, cv_data, requested, expected):
    """Unknown or hostile template ids silently become the default."""
    result = renderer_with(make_compiler()).render(_request(cv_data, template=requested))

    assert result.template_used == expected


@pytest.mark.unit
def test_workspace_is_tagged_and_removed(renderer_with, make_compiler, cv_data):
    compiler = make_compiler()
    renderer = renderer_with(compiler)
    job = renderer.create_job(_request(cv_data))

    job.run()

    workspace = compiler.workspaces[0]
    assert workspace.name.startswith(f"cvforge-{job.job_id}-")
    assert not workspace.exists()


@pytest.mark.unit
def test_source_is_escaped_and_options_applied(renderer_with, make_compiler, cv_data):
    compiler = make_compiler()
    options = {"fontSize": "12pt", "margins": "wide", "colorScheme": "teal"}

    renderer_with(compiler).render(_request(cv_data, options=options))

    source = compiler.sources[0]
    assert "Led R\\&D reviews" in source
    assert "\\documentclass[12pt,letterpaper]{article}" in source
    assert "\\usepackage[margin=1in]{geometry}" in source
    assert "\\definecolor{accent}{RGB}{0,121,121}" in source


@pytest.mark.unit
@pytest.mark.parametrize(
    "outcome, reason",
    [("timeout", "timeout"), ("error", "compiler_error"), ("empty", "empty_output")],
)
def test_failed_compilation(renderer_with, make_compiler, cv_data, dirs, outcome, reason):
    work, out = dirs
    compiler = make_compiler(outcome=outcome)
    job = renderer_with(compiler).create_job(_request(cv_data))

    with pytest.raises(CompilationError) as excinfo:
        job.run()

    assert excinfo.value.reason == reason
    assert excinfo.value.job_id == job.job_id
    assert job.history == FAILURE_HISTORY
    assert not compiler.workspaces[0].exists()
    assert not out.exists() or list(out.iterdir()) == []


@pytest.mark.unit
def test_compiler_diagnostics_surface_in_error(renderer_with, make_compiler, cv_data):
    with pytest.raises(CompilationError) as excinfo:
        renderer_with(make_compiler(outcome="error")).render(_request(cv_data))

    assert excinfo.value.errors == ["Undefined control sequence."]
    assert excinfo.value.stdout == "! Undefined"


@pytest.mark.unit
def test_oversized_artifact_is_rejected(renderer_with, make_compiler, cv_data, dirs):
    _, out = dirs
    renderer = renderer_with(make_compiler(size=2048), max_artifact_bytes=1000)

    with pytest.raises(CompilationError) as excinfo:
        renderer.render(_request(cv_data))

    assert excinfo.value.reason == "oversized"
    assert not out.exists() or list(out.iterdir()) == []


@pytest.mark.unit
def test_unexpected_error_still_cleans_up(renderer_with, make_compiler, cv_data):
    def explode(source_path, output_dir):
        raise RuntimeError("disk on fire")

    compiler = make_compiler(on_compile=explode)
    job = renderer_with(compiler).create_job(_request(cv_data))

    with pytest.raises(RuntimeError):
        job.run()

    assert job.state is RenderState.CLEANED
    assert RenderState.FAILED in job.history
    assert not compiler.workspaces[0].exists()


@pytest.mark.unit
def test_interrupted_delivery_leaves_no_partial_artifact(
    renderer_with, make_compiler, cv_data, dirs, monkeypatch
):
    """A copy failing midway removes its staging file; the final name never appears."""
    _, out = dirs

    def torn_copy(src, dst):
        with open(dst, "wb") as f:
            f.write(b"%PDF-half")
        raise OSError("No space left on device")

    monkeypatch.setattr("cvforge.contexts.rendering.render_job.shutil.copyfile", torn_copy)
    compiler = make_compiler()
    job = renderer_with(compiler).create_job(_request(cv_data))

    with pytest.raises(OSError):
        job.run()

    assert list(out.iterdir()) == []
    assert job.history[-2:] == [RenderState.FAILED, RenderState.CLEANED]
    assert not compiler.workspaces[0].exists()


@pytest.mark.unit
def test_delivery_replaces_only_under_final_name(renderer_with, make_compiler, cv_data, dirs):
    _, out = dirs

    result = renderer_with(make_compiler()).render(_request(cv_data))

    assert [p.name for p in out.iterdir()] == [result.filename]


@pytest.mark.unit
@pytest.mark.parametrize(
    "cv_data, missing",
    [
        ({"personal": {"name": "Ada"}}, "personal.email is required"),
        ({"personal": {"email": "ada@example.com"}}, "personal.name is required"),
        ({}, "personal.name is required"),
    ],
)
def test_request_validation(renderer_with, make_compiler, cv_data, missing):
    compiler = make_compiler()

    with pytest.raises(ValidationError) as excinfo:
        renderer_with(compiler).render(_request(cv_data))

    assert missing in excinfo.value.issues
    assert compiler.sources == []


@pytest.mark.unit
def test_request_requires_cv_data():
    with pytest.raises(ValidationError):
        RenderRequest.from_dict({"template": "modern"})


@pytest.mark.unit
def test_options_accept_both_key_styles():
    camel = RenderOptions.from_dict({"fontSize": "10pt", "colorScheme": "green"})
    snake = RenderOptions.from_dict({"font_size": "10pt", "color_scheme": "green"})

    assert camel == snake == RenderOptions(font_size="10pt", margins="normal", color_scheme="green")
    assert RenderOptions.from_dict(None) == RenderOptions()
    assert RenderOptions.from_dict({"margins": ["wide"]}).margins == "normal"


@pytest.mark.unit
def test_discard_removes_artifact(renderer_with, make_compiler, cv_data):
    result = renderer_with(make_compiler()).render(_request(cv_data))

    result.discard()
    result.discard()

    assert not result.artifact_path.exists()


@pytest.mark.unit
def test_render_many(renderer_with, make_compiler, cv_data):
    renderer = renderer_with(make_compiler())

    outcome = renderer.render_many(_request(cv_data), ["modern", "classic", "bogus"])

    assert outcome.summary == {"total": 3, "successful": 3, "failed": 0}
    assert [r.template_used for r in outcome.values()] == ["modern", "classic", "modern"]
    assert len({r.filename for r in outcome.values()}) == 3


@pytest.mark.unit
def test_render_many_isolates_failures(renderer_with, make_compiler, cv_data):
    def fail_classic(source_path, output_dir):
        if "\\textsc" in source_path.read_text(encoding="utf-8"):
            raise RuntimeError("classic broke")

    renderer = renderer_with(make_compiler(on_compile=fail_classic))

    outcome = renderer.render_many(_request(cv_data), ["modern", "classic"])

    assert outcome.partial_failure
    assert [r.unit for r in outcome.failed] == ["classic"]
    assert outcome.values()[0].template_used == "modern"


@pytest.mark.unit
@pytest.mark.parametrize("templates", [[], ["modern"] * 6])
def test_render_many_limits(renderer_with, make_compiler, cv_data, templates):
    with pytest.raises(ValidationError):
        renderer_with(make_compiler()).render_many(_request(cv_data), templates)


@pytest.mark.unit
def test_templates_catalog(renderer_with, make_compiler):
    names = [info.name for info in renderer_with(make_compiler()).templates()]

    assert names == ["modern", "classic"]
