"""aozorize CLI entrypoint."""

from __future__ import annotations

import json
import shutil
from dataclasses import asdict
from pathlib import Path

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn, TimeRemainingColumn

from aozorize.batch import BatchDriver, BatchSummary, DocumentResult
from aozorize.decoder import DEFAULT_ENCODING
from aozorize.errors import DocumentError, RegistryError
from aozorize.logging_config import configure_logging
from aozorize.parser.base import Document
from aozorize.parser.ruby_txt import RubyTxtParser
from aozorize.parser.tables import build_tables
from aozorize.registry import WorkEntry, load_registry, qualifying_works
from aozorize.renderer.html_renderer import HTMLRenderer
from aozorize.renderer.json_renderer import JSONRenderer

_FORMATS = click.Choice(["json", "html"], case_sensitive=False)


@click.group(context_settings={"help_option_names": ["-h", "--help"], "auto_envvar_prefix": "AOZORIZE"})
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity",
)
@click.option("--log-json", is_flag=True, help="Emit logs as JSON lines")
def main(log_level: str, log_json: bool) -> None:
    """Convert annotated ruby-txt works into structured documents."""
    configure_logging(log_level, json_format=log_json)


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Path(path_type=Path), required=True, help="Output path")
@click.option("--format", "output_format", type=_FORMATS, default="json", show_default=True, help="Output format")
@click.option("--title", type=str, default=None, help="Override document title")
@click.option("--author", "authors", type=str, multiple=True, help="Override author (repeatable)")
@click.option("--encoding", type=str, default=DEFAULT_ENCODING, show_default=True, help="Source text encoding")
@click.option("--dark-mode", is_flag=True, help="Enable dark mode stylesheet (html only)")
def convert(
    input_path: Path,
    output: Path,
    output_format: str,
    title: str | None,
    authors: tuple[str, ...],
    encoding: str,
    dark_mode: bool,
) -> None:
    """Convert a single ruby-txt file (or zip) into JSON or HTML."""
    parser = RubyTxtParser(build_tables(), encoding=encoding)
    try:
        document = parser.parse(input_path, title=title, authors=list(authors) or None)
    except DocumentError as exc:
        raise click.ClickException(str(exc)) from exc

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(_render(document, output_format.lower(), dark_mode=dark_mode), encoding="utf-8")

    for warning in document.warnings:
        click.echo(f"warning: {warning.kind.value}: {warning.message}", err=True)
    click.echo(f"Rendered: {output}")


@main.command()
@click.argument("corpus_root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("output_dir", type=click.Path(path_type=Path))
@click.option("--workers", type=click.IntRange(min=1), default=1, show_default=True, help="Parallel documents")
@click.option("--format", "output_format", type=_FORMATS, default="json", show_default=True, help="Output format")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Process at most N works")
@click.option("--overwrite", is_flag=True, help="Replace an existing output directory")
@click.option("--encoding", type=str, default=DEFAULT_ENCODING, show_default=True, help="Source text encoding")
def build(
    corpus_root: Path,
    output_dir: Path,
    workers: int,
    output_format: str,
    limit: int | None,
    overwrite: bool,
    encoding: str,
) -> None:
    """Convert every qualifying work of a corpus checkout into OUTPUT_DIR."""
    if output_dir.exists() and not overwrite:
        raise click.ClickException(f"Already exists: {output_dir} (use --overwrite)")

    try:
        registry = load_registry(corpus_root)
    except RegistryError as exc:
        raise click.ClickException(str(exc)) from exc

    # Previous output is only removed once the registry is known to be readable.
    if output_dir.exists():
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True)
    _write_json(output_dir / "books.json", [asdict(book) for book in registry.books])
    _write_json(output_dir / "authors.json", [asdict(author) for author in registry.authors])
    _write_json(output_dir / "book_authors.json", [asdict(link) for link in registry.book_authors])

    works = qualifying_works(registry, corpus_root)
    if limit is not None:
        works = works[:limit]

    output_format = output_format.lower()
    book_root = output_dir / "book"

    def sink(work: WorkEntry, document: Document) -> Path:
        book_dir = book_root / work.book_id
        book_dir.mkdir(parents=True, exist_ok=True)
        target = book_dir / f"content.{output_format}"
        target.write_text(_render(document, output_format), encoding="utf-8")
        return target

    driver = BatchDriver(RubyTxtParser(build_tables(), encoding=encoding), sink=sink, workers=workers)
    summary = _run_with_progress(driver, works)
    _echo_summary(summary)


def _run_with_progress(driver: BatchDriver, works: list[WorkEntry]) -> BatchSummary:
    console = Console(stderr=True)
    progress = Progress(
        TextColumn("{task.description}", justify="left"),
        BarColumn(bar_width=None),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
        disable=not console.is_terminal,
    )
    with progress:
        task = progress.add_task("Processing works", total=len(works))

        def advance(result: DocumentResult) -> None:
            progress.advance(task)

        return driver.run(works, progress=advance)


def _echo_summary(summary: BatchSummary) -> None:
    click.echo(
        f"Processed {summary.total} works: {summary.ok} ok, "
        f"{summary.warnings} with warnings, {summary.failed} failed"
    )
    for result in summary.failures:
        click.echo(f"  failed {result.work.book_id} 「{result.work.title}」: {result.error}", err=True)


def _render(document: Document, output_format: str, *, dark_mode: bool = False) -> str:
    if output_format == "html":
        return HTMLRenderer().render(document, dark_mode=dark_mode)
    return JSONRenderer(indent=2).render(document)


def _write_json(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


if __name__ == "__main__":  # pragma: no cover
    main()
