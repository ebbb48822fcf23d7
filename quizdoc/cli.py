"""
Quiz Import CLI.

Commands for importing quiz documents and re-processing stored questions.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from config import get_settings

from .exceptions import QuizImportError
from .markers import MarkerConfig
from .models import ImportResult, ParsedQuestion
from .pipeline import QuizImportPipeline
from .render import questions_from_dicts, questions_to_dicts, render_plain_text
from .sanitizer import Sanitizer
from .sources import FileSource, RemoteSource, TextSource

app = typer.Typer(
    help="Extract structured quiz questions from documents",
    no_args_is_help=True,
)

console = Console()


def _configure_logging(verbose: bool) -> None:
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else settings.log_level)


def _markers(locale: str | None) -> MarkerConfig:
    settings = get_settings()
    try:
        return MarkerConfig.for_locale(
            locale or settings.quiz_locale,
            blank_min_underscores=settings.quiz_blank_min_underscores,
        )
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _load_questions(path: Path) -> list[ParsedQuestion]:
    if not path.exists():
        console.print(f"[red]Error: File not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            data = data.get("questions", [])
        return questions_from_dicts(data)
    except (json.JSONDecodeError, ValueError, TypeError, AttributeError) as e:
        console.print(f"[red]Error: {path} is not a question list: {e}[/red]")
        raise typer.Exit(1)


def _questions_table(questions: list[ParsedQuestion], title: str) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Title")
    table.add_column("Options", justify="right")
    table.add_column("Correct", style="green")

    for question in questions:
        correct = ", ".join(
            (option.key or option.text) for option in question.options if option.is_correct
        )
        if question.type.value == "MATCHING":
            correct = f"{len(question.pairs)} pairs"
        table.add_row(
            str(question.order + 1),
            question.type.value,
            question.title[:60],
            str(len(question.options)),
            correct,
        )
    return table


def _print_result(result: ImportResult) -> None:
    console.print(_questions_table(result.questions, f"Imported {len(result.questions)} questions"))

    if result.dropped:
        console.print(f"\n[bold red]Dropped ({len(result.dropped)}):[/bold red]")
        for item in result.dropped:
            console.print(f"  [red]-[/red] #{item.question.number}: {item.question.title[:60]} ({item.reason})")

    if result.warnings:
        console.print(f"\n[bold yellow]Warnings ({len(result.warnings)}):[/bold yellow]")
        for warning in result.warnings:
            console.print(f"  [yellow]![/yellow] {warning}")

    if result.images:
        console.print(f"\n[bold]Images:[/bold] {len(result.images)}")
        for image in result.images:
            console.print(f"  {image.suggested_key} ({image.content_type}, {len(image.data)} bytes)")


@app.command("parse")
def parse_document(
    source: str = typer.Argument(None, help="Document path (.docx or text) or http(s) URL"),
    text: str = typer.Option(None, "--text", "-t", help="Parse this text instead of a file"),
    locale: str = typer.Option(None, "--locale", "-l", help="Marker locale (en, vi, all)"),
    output_json: Path = typer.Option(None, "--output-json", "-o", help="Save result to JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """
    Parse a quiz document into structured questions.

    Examples:
        quizdoc parse quiz.docx
        quizdoc parse --text "1. What is 2+2?\\nA. 3\\nB. *4"
        quizdoc parse https://example.com/quiz.docx --output-json quiz.json
    """
    _configure_logging(verbose)
    settings = get_settings()

    if text is not None:
        document_source = TextSource(text.replace("\\n", "\n"))
    elif source is None:
        console.print("[red]Error: Give a document path, URL or --text[/red]")
        raise typer.Exit(1)
    elif source.startswith(("http://", "https://")):
        document_source = RemoteSource(
            source,
            max_bytes=settings.quiz_max_upload_bytes,
            timeout=settings.quiz_fetch_timeout_seconds,
        )
    else:
        document_source = FileSource(Path(source), max_bytes=settings.quiz_max_upload_bytes)

    pipeline = QuizImportPipeline.from_settings(settings, markers=_markers(locale))
    try:
        result = asyncio.run(pipeline.run_source(document_source))
    except QuizImportError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    _print_result(result)

    if output_json:
        output_json.write_text(json.dumps(result.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"\n[green]Saved to {output_json}[/green]")


@app.command("sanitize")
def sanitize_questions(
    json_file: Path = typer.Argument(..., help="JSON file with stored questions"),
    output_json: Path = typer.Option(None, "--output-json", "-o", help="Save sanitized questions"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Sanitize stored questions again (re-import)."""
    _configure_logging(verbose)
    settings = get_settings()
    questions = _load_questions(json_file)

    result = Sanitizer(matching_min_pairs=settings.quiz_matching_min_pairs).sanitize(questions)
    console.print(_questions_table(result.questions, f"Sanitized {len(result.questions)} questions"))
    for item in result.dropped:
        console.print(f"  [red]-[/red] {item.question.title[:60]} ({item.reason})")
    for warning in result.warnings:
        console.print(f"  [yellow]![/yellow] {warning}")

    if output_json:
        payload = {"questions": questions_to_dicts(result.questions)}
        output_json.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"\n[green]Saved to {output_json}[/green]")


@app.command("render")
def render_questions(
    json_file: Path = typer.Argument(..., help="JSON file with stored questions"),
    locale: str = typer.Option(None, "--locale", "-l", help="Marker locale (en, vi, all)"),
    output: Path = typer.Option(None, "--output", "-o", help="Write text here instead of stdout"),
):
    """Render stored questions as importable plain text."""
    questions = _load_questions(json_file)
    text = render_plain_text(questions, _markers(locale))
    if output:
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]Wrote {len(questions)} questions to {output}[/green]")
    else:
        typer.echo(text, nl=False)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
