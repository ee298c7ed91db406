#!/usr/bin/env python3
"""
Job Keyword Extraction CLI

Extracts ranked, weighted keywords from job postings using the intake context.

Commands:
    extract - Extract keywords from a single posting text file
    batch   - Extract keywords from a JSON/YAML list of postings concurrently
    suggest - Suggest industry keywords not already in a list

Examples:\n

    extract_keywords.py extract posting.txt                     # Pattern + generated extraction

    extract_keywords.py extract posting.txt --no-llm            # Vocabulary extraction only

    extract_keywords.py batch postings.yaml -o outs/keywords.json

    extract_keywords.py suggest software -c python -c docker
"""

from pathlib import Path
from typing import List, Optional

import typer
from typing_extensions import Annotated

from cvforge.contexts.intake.keyword_extractor import KeywordExtractor, suggest_keywords
from cvforge.contexts.intake.logger import setup_intake_logger
from cvforge.utils.data_files import load_data_file, write_json
from cvforge.utils.llm import try_get_provider

app = typer.Typer(
    help="Extract weighted keywords from job postings",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _extractor(no_llm: bool, workers: int = 4) -> KeywordExtractor:
    return KeywordExtractor(None if no_llm else try_get_provider(), max_workers=workers)


@app.command("extract")
def extract_command(
    posting_file: Annotated[
        Path,
        typer.Argument(help="Text file containing the job posting"),
    ],
    no_llm: Annotated[
        bool,
        typer.Option("--no-llm", help="Skip the generative-text service (vocabulary only)"),
    ] = False,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the analysis as JSON"),
    ] = None,
):
    """
    Extract keywords from one job posting.

    Examples:\n

        $ extract_keywords.py extract posting.txt

        $ extract_keywords.py extract posting.txt --no-llm -o keywords.json
    """
    if not posting_file.exists():
        typer.secho(f"Error: File not found: {posting_file}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    setup_intake_logger()
    analysis = _extractor(no_llm).analyze(posting_file.read_text(encoding="utf-8"))

    typer.secho(
        f"\n{len(analysis.keywords)} keywords ({analysis.method})", fg=typer.colors.BLUE, bold=True
    )
    for category, keywords in analysis.categories.items():
        typer.echo(f"\n{category}:")
        for keyword in keywords:
            typer.echo(f"  {keyword.weight:.2f}  {keyword.text}")

    if output:
        write_json(output, analysis.to_dict())
        typer.echo(f"\nSaved: {output}")
    typer.echo("")


@app.command("batch")
def batch_command(
    postings_file: Annotated[
        Path,
        typer.Argument(help="JSON/YAML list of {title, company, description} postings"),
    ],
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write extracted job descriptions"),
    ] = Path("outs/keywords.json"),
    workers: Annotated[
        int,
        typer.Option("--workers", "-w", help="Concurrent extractions", min=1, max=16),
    ] = 4,
    no_llm: Annotated[
        bool,
        typer.Option("--no-llm", help="Skip the generative-text service (vocabulary only)"),
    ] = False,
):
    """
    Extract keywords for many postings concurrently.

    Invalid postings fail individually; the rest are still written.

    Examples:\n

        $ extract_keywords.py batch postings.yaml

        $ extract_keywords.py batch postings.json -w 8 -o outs/batch.json
    """
    try:
        postings = load_data_file(postings_file)
    except (FileNotFoundError, ValueError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if not isinstance(postings, list):
        typer.secho("Error: Expected a list of postings\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    setup_intake_logger()
    outcome = _extractor(no_llm, workers).extract_many(postings)

    write_json(output, [job.to_dict() for job in outcome.values()])
    summary = outcome.summary

    typer.echo("")
    color = typer.colors.GREEN if not outcome.failed else typer.colors.YELLOW
    typer.secho(
        f"{summary['successful']}/{summary['total']} postings processed", fg=color, bold=True
    )
    for failure in outcome.failed:
        typer.secho(f"  - posting {failure.index}: {failure.error}", fg=typer.colors.RED)
    typer.echo(f"  Output: {output}\n")

    raise typer.Exit(code=0 if not outcome.failed else 1)


@app.command("suggest")
def suggest_command(
    industry: Annotated[
        str,
        typer.Argument(help="Industry (software, marketing, finance)"),
    ],
    current: Annotated[
        Optional[List[str]],
        typer.Option("--current", "-c", help="Keywords already present (repeatable)"),
    ] = None,
):
    """Suggest industry keywords not already in the current list."""
    for keyword in suggest_keywords(industry, current or []):
        typer.echo(f"{keyword.weight:.2f}  {keyword.text}")


if __name__ == "__main__":
    app()
