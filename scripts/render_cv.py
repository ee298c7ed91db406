#!/usr/bin/env python3
"""
CV Rendering CLI

Renders CV data into PDF documents using the rendering context.

Commands:
    render    - Render one document
    templates - List available templates
    multi     - Render the same CV with several templates concurrently

Input files may be a render request ({cvData, template, options}), the output of
tailor_cv.py tailor/optimize, or a bare cvData object.

Examples:\n

    render_cv.py render request.json                               # Render with request options

    render_cv.py render outs/tailored.json -t classic --color red   # Render a tailoring result

    render_cv.py templates

    render_cv.py multi outs/tailored.json -t modern -t classic
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from typing_extensions import Annotated

from cvforge.contexts.rendering.logger import setup_rendering_logger
from cvforge.contexts.rendering.render_job import DocumentRenderer, RenderResult
from cvforge.contexts.targeting.profile_data_structure import PersonalInfo
from cvforge.contexts.targeting.tailored_cv import TailoredCV
from cvforge.exceptions import CompilationError, ValidationError
from cvforge.utils.data_files import load_data_file

app = typer.Typer(
    help="Render CV data into PDF documents",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def build_request(
    data: Any,
    template: Optional[str] = None,
    font_size: Optional[str] = None,
    margins: Optional[str] = None,
    color_scheme: Optional[str] = None,
) -> Dict[str, Any]:
    """Turn any supported input file shape into a render request; CLI flags win."""
    if not isinstance(data, dict):
        raise ValidationError("Invalid render input", ["Expected an object"])

    if "cvData" in data:
        request = dict(data)
    else:
        cv_block = data.get("tailoredCV") or data.get("content")
        if cv_block is not None:
            cv = TailoredCV.from_dict(cv_block)
            request = {
                "cvData": cv.to_render_data(PersonalInfo.from_dict(data.get("personal"))),
                "template": cv.template_used,
            }
        else:
            request = {"cvData": data}

    options = dict(request.get("options") or {})
    for key, value in (("fontSize", font_size), ("margins", margins), ("colorScheme", color_scheme)):
        if value is not None:
            options[key] = value
    request["options"] = options
    if template is not None:
        request["template"] = template
    return request


def _load_request(path: Path, **overrides: Optional[str]) -> Dict[str, Any]:
    try:
        return build_request(load_data_file(path), **overrides)
    except (FileNotFoundError, ValueError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _show_result(result: RenderResult) -> None:
    typer.secho(f"✓ {result.template_used}: {result.filename}", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Size: {result.size_bytes} bytes, pages: {result.page_count or '?'}")
    typer.echo(f"  PDF: {result.artifact_path}")
    if result.unresolved_markers:
        typer.secho(
            f"  Unresolved markers: {', '.join(result.unresolved_markers)}",
            fg=typer.colors.YELLOW,
        )


@app.command("render")
def render_command(
    input_file: Annotated[Path, typer.Argument(help="Render request, tailoring output or cvData")],
    template: Annotated[
        Optional[str],
        typer.Option("--template", "-t", help="Template identifier"),
    ] = None,
    font_size: Annotated[
        Optional[str],
        typer.Option("--font-size", help="10pt | 11pt | 12pt"),
    ] = None,
    margins: Annotated[
        Optional[str],
        typer.Option("--margins", help="narrow | normal | wide"),
    ] = None,
    color_scheme: Annotated[
        Optional[str],
        typer.Option("--color", help="blue | red | green | purple | orange | teal | black"),
    ] = None,
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output-dir", "-o", help="Artifact directory (default: RENDER_OUTPUT_PATH)"),
    ] = None,
):
    """
    Render one document.

    Examples:\n

        $ render_cv.py render request.json

        $ render_cv.py render outs/tailored.json -t classic --margins narrow
    """
    request = _load_request(
        input_file,
        template=template,
        font_size=font_size,
        margins=margins,
        color_scheme=color_scheme,
    )

    setup_rendering_logger()
    renderer = DocumentRenderer(output_dir=output_dir) if output_dir else DocumentRenderer()

    typer.echo("")
    try:
        result = renderer.render(request)
    except ValidationError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except CompilationError as e:
        typer.secho(f"✗ Rendering failed ({e.reason})", fg=typer.colors.RED, bold=True)
        for error in e.errors[:10]:
            typer.secho(f"  - {error}", fg=typer.colors.RED)
        typer.echo("")
        raise typer.Exit(code=1)

    _show_result(result)
    typer.echo("")


@app.command("templates")
def templates_command():
    """List available templates and their color options."""
    for info in DocumentRenderer().templates():
        typer.secho(f"{info.name}", bold=True, nl=False)
        typer.echo(f" - {info.display_name}: {info.description}")
        typer.echo(f"    colors: {', '.join(info.color_options)}")


@app.command("multi")
def multi_command(
    input_file: Annotated[Path, typer.Argument(help="Render request, tailoring output or cvData")],
    templates: Annotated[
        List[str],
        typer.Option("--template", "-t", help="Template identifier (repeatable, at most 5)"),
    ],
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output-dir", "-o", help="Artifact directory (default: RENDER_OUTPUT_PATH)"),
    ] = None,
    workers: Annotated[
        int,
        typer.Option("--workers", "-w", help="Concurrent render jobs", min=1, max=5),
    ] = 4,
):
    """
    Render the same CV with several templates concurrently.

    One template failing does not stop the others.

    Examples:\n

        $ render_cv.py multi request.json -t modern -t classic
    """
    request = _load_request(input_file)

    setup_rendering_logger()
    kwargs = {"output_dir": output_dir} if output_dir else {}
    renderer = DocumentRenderer(max_workers=workers, **kwargs)

    try:
        outcome = renderer.render_many(request, templates)
    except ValidationError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo("")
    for unit in outcome.results:
        if unit.ok:
            _show_result(unit.value)
        else:
            reason = getattr(unit.error, "reason", type(unit.error).__name__)
            typer.secho(f"✗ {unit.unit}: {reason}", fg=typer.colors.RED, bold=True)

    summary = outcome.summary
    typer.echo(f"\n{summary['successful']}/{summary['total']} templates rendered\n")
    raise typer.Exit(code=0 if not outcome.failed else 1)


if __name__ == "__main__":
    app()
