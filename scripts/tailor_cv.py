#!/usr/bin/env python3
"""
CV Tailoring CLI

Tailors a candidate profile to a job posting using the targeting context.

Commands:
    tailor   - Build a tailored CV for a profile and a job posting
    score    - Score a profile against job keywords
    optimize - Run one optimization pass on a tailored CV

Examples:\n

    tailor_cv.py tailor profile.yaml job.yaml                    # Tailor with generated rewrites

    tailor_cv.py tailor profile.yaml job.yaml --no-llm           # Deterministic fallbacks only

    tailor_cv.py score profile.yaml outs/keywords.json

    tailor_cv.py optimize outs/tailored.json outs/keywords.json --target 85
"""

from pathlib import Path
from typing import Any

import typer
from typing_extensions import Annotated

from cvforge.contexts.intake.job_data_structure import JobDescription
from cvforge.contexts.intake.keyword_extractor import KeywordExtractor
from cvforge.contexts.targeting.content_tailor import DEFAULT_TARGET_SCORE, ContentTailor
from cvforge.contexts.targeting.logger import setup_targeting_logger
from cvforge.contexts.targeting.profile_data_structure import UserProfile
from cvforge.contexts.targeting.relevance import MatchAnalysis, profile_keywords, score_match
from cvforge.contexts.targeting.tailored_cv import TailoredCV
from cvforge.exceptions import ValidationError
from cvforge.utils.data_files import load_data_file, write_json
from cvforge.utils.llm import try_get_provider

app = typer.Typer(
    help="Tailor candidate profiles to job postings",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load(path: Path) -> Any:
    try:
        return load_data_file(path)
    except (FileNotFoundError, ValueError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _keywords(data: Any) -> Any:
    """Accept a keyword list, an analysis ({keywords: [...]}) or a job description."""
    if isinstance(data, dict):
        return data.get("keywords") or []
    return data or []


def _tailor(no_llm: bool) -> ContentTailor:
    provider = None if no_llm else try_get_provider()
    return ContentTailor(provider, extractor=KeywordExtractor(provider))


def _show_analysis(label: str, analysis: MatchAnalysis) -> None:
    color = typer.colors.GREEN if analysis.match_score >= DEFAULT_TARGET_SCORE else typer.colors.YELLOW
    typer.secho(f"{label}: {analysis.match_score}%", fg=color, bold=True)
    typer.echo(f"  Matched: {', '.join(analysis.matched_keywords) or '-'}")
    typer.echo(f"  Missing: {', '.join(analysis.missing_keywords) or '-'}")


@app.command("tailor")
def tailor_command(
    profile_file: Annotated[Path, typer.Argument(help="JSON/YAML candidate profile")],
    job_file: Annotated[Path, typer.Argument(help="JSON/YAML job posting {title, company, description}")],
    template: Annotated[
        str,
        typer.Option("--template", "-t", help="Template recorded on the CV"),
    ] = "modern",
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write the tailoring result"),
    ] = Path("outs/tailored.json"),
    no_llm: Annotated[
        bool,
        typer.Option("--no-llm", help="Skip the generative-text service (fallbacks only)"),
    ] = False,
):
    """
    Build a tailored CV for a profile and job posting.

    The output's tailoredCV block can be fed to `optimize` or rendered with
    render_cv.py --tailored.

    Examples:\n

        $ tailor_cv.py tailor profile.yaml job.yaml

        $ tailor_cv.py tailor profile.yaml job.yaml -t classic -o outs/acme.json
    """
    try:
        profile = UserProfile.from_dict(_load(profile_file))
        job = JobDescription.from_dict(_load(job_file))
    except ValidationError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    setup_targeting_logger()
    result = _tailor(no_llm).tailor(profile, job, template=template)

    typer.echo("")
    _show_analysis("Before tailoring", result.initial_analysis)
    _show_analysis("After tailoring", result.final_analysis)
    for recommendation in result.recommendations:
        typer.echo(f"  [{recommendation.priority}] {recommendation.message}")

    write_json(output, {"personal": profile.personal.to_dict(), **result.to_dict()})
    typer.echo(f"\nSaved: {output}\n")


@app.command("score")
def score_command(
    profile_file: Annotated[Path, typer.Argument(help="JSON/YAML candidate profile")],
    keywords_file: Annotated[Path, typer.Argument(help="JSON/YAML job keywords")],
):
    """Score a profile against job keywords without changing anything."""
    try:
        profile = UserProfile.from_dict(_load(profile_file))
    except ValidationError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    analysis = score_match(profile_keywords(profile), _keywords(_load(keywords_file)))
    typer.echo("")
    _show_analysis("Match score", analysis)
    for keyword in analysis.suggestions:
        typer.echo(f"  Consider adding: {keyword.text}")
    typer.echo("")


@app.command("optimize")
def optimize_command(
    cv_file: Annotated[Path, typer.Argument(help="Tailoring output (or a bare tailored CV)")],
    keywords_file: Annotated[Path, typer.Argument(help="JSON/YAML job keywords")],
    target: Annotated[
        int,
        typer.Option("--target", help="Target match score", min=0, max=100),
    ] = DEFAULT_TARGET_SCORE,
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write the optimization result"),
    ] = Path("outs/optimized.json"),
    no_llm: Annotated[
        bool,
        typer.Option("--no-llm", help="Skip the generative-text service (fallbacks only)"),
    ] = False,
):
    """
    Run a single optimization pass toward the target score.

    Examples:\n

        $ tailor_cv.py optimize outs/tailored.json outs/keywords.json

        $ tailor_cv.py optimize outs/tailored.json outs/keywords.json --target 90
    """
    data = _load(cv_file)
    cv_data = data.get("tailoredCV", data) if isinstance(data, dict) else data
    try:
        cv = TailoredCV.from_dict(cv_data)
    except ValidationError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    setup_targeting_logger()
    result = _tailor(no_llm).optimize(cv, _keywords(_load(keywords_file)), target_score=target)

    typer.echo("")
    typer.secho(result.message, bold=True)
    _show_analysis("Match score", result.analysis)

    payload = result.to_dict()
    if isinstance(data, dict) and "personal" in data:
        payload["personal"] = data["personal"]
    write_json(output, payload)
    typer.echo(f"\nSaved: {output}\n")


if __name__ == "__main__":
    app()
