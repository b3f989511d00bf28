"""Command-line interface for the Bookshelf reading tracker."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from bookshelf.config import load_config
from bookshelf.context import LedgerContext
from bookshelf.models.statistics import PeriodStats
from bookshelf.storage.library import BookLibrary
from bookshelf.validation import validate_book, validate_session

app = typer.Typer(
    name="bookshelf",
    help="Track reading progress in Markdown book notes.",
    add_completion=False,
)

console = Console()

ConfigOption = Annotated[
    Path,
    typer.Option("--config", "-c", help="Path to config.yaml"),
]


def _library(config_path: Path, folder: Optional[Path] = None) -> BookLibrary:
    config = load_config(config_path)
    context = LedgerContext(reading=config.reading)
    return BookLibrary(
        folder or config.library.book_folder,
        pattern=config.library.file_pattern,
        context=context,
    )


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Track reading progress in Markdown book notes."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def stats(
    folder: Annotated[
        Optional[Path],
        typer.Argument(help="Folder of book notes (defaults to library.book_folder)"),
    ] = None,
    config: ConfigOption = Path("config.yaml"),
) -> None:
    """Show library-wide reading statistics."""
    snapshot = _library(config, folder).statistics()

    overview = Table(title="Library", show_header=False)
    overview.add_column("Metric", style="cyan")
    overview.add_column("Value", justify="right")
    overview.add_row("Books", str(snapshot.total_books))
    overview.add_row("Unread", str(snapshot.unread))
    overview.add_row("Reading", str(snapshot.reading))
    overview.add_row("Finished", str(snapshot.finished))
    overview.add_row("Total pages", f"{snapshot.total_pages:,}")
    overview.add_row("Pages read", f"{snapshot.read_pages:,}")
    overview.add_row("Reading days", str(snapshot.total_reading_days))
    overview.add_row("Avg sessions to finish", f"{snapshot.average_sessions_to_finish:.1f}")
    if snapshot.skipped_documents:
        overview.add_row("Skipped documents", f"[yellow]{snapshot.skipped_documents}[/]")
    console.print(overview)

    if snapshot.category_counts:
        categories = Table(title="Books by category")
        categories.add_column("Category")
        categories.add_column("Books", justify="right")
        ranked = sorted(snapshot.category_counts.items(), key=lambda item: (-item[1], item[0]))
        for name, count in ranked:
            categories.add_row(name, str(count))
        console.print(categories)

    for title, buckets in (("Finished by year", snapshot.yearly), ("Finished by month", snapshot.monthly)):
        if buckets:
            console.print(_period_table(title, buckets))


def _period_table(title: str, buckets: dict[str, PeriodStats]) -> Table:
    table = Table(title=title)
    table.add_column("Period")
    table.add_column("Books", justify="right")
    table.add_column("Pages", justify="right")
    table.add_column("Change", justify="right")
    for key, bucket in buckets.items():
        change = ""
        if bucket.change is not None:
            change = f"{bucket.change:+d} ({bucket.change_percent:+d}%)"
        table.add_row(key, str(bucket.count), f"{bucket.pages:,}", change)
    return table


@app.command()
def show(
    path: Annotated[
        Path,
        typer.Argument(help="Book note", exists=True, dir_okay=False, resolve_path=True),
    ],
    config: ConfigOption = Path("config.yaml"),
) -> None:
    """Show one book and its reading sessions."""
    book, sessions = _library(config).read_book(path)

    console.print(f"[bold]{book.title or path.stem}[/]")
    if book.authors:
        console.print(", ".join(book.authors))
    total = book.total_pages if book.total_pages is not None else "?"
    console.print(f"Status: {book.status}  Page {book.current_page}/{total}")
    for problem in validate_book(book):
        console.print(f"[yellow]Warning: {problem}[/]")

    if not sessions:
        console.print("[dim]No reading sessions recorded[/]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Date")
    table.add_column("From", justify="right")
    table.add_column("To", justify="right")
    table.add_column("Pages", justify="right")
    table.add_column("Notes", overflow="fold")
    for session in reversed(sessions):
        table.add_row(
            session.date,
            str(session.start_page),
            str(session.end_page),
            str(session.pages_read),
            session.notes or "",
        )
    console.print(table)


@app.command()
def progress(
    path: Annotated[
        Path,
        typer.Argument(help="Book note", exists=True, dir_okay=False, resolve_path=True),
    ],
    end_page: Annotated[int, typer.Argument(help="Page reached")],
    start_page: Annotated[
        Optional[int],
        typer.Option("--from", help="Page the session started on"),
    ] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", "-n", help="Session notes")] = None,
    config: ConfigOption = Path("config.yaml"),
) -> None:
    """Record a reading session in a book note."""
    problems = validate_session(start_page=start_page, end_page=end_page)
    if problems:
        for problem in problems:
            console.print(f"[red]{problem}[/]")
        raise typer.Exit(1)

    try:
        update = _library(config).update_progress(path, end_page, start_page, notes)
    except OSError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    session = update.session
    console.print(
        f"[green]Recorded[/] pages {session.start_page}-{session.end_page} "
        f"({session.pages_read} read) for [bold]{update.book.title or path.stem}[/]"
    )
    if update.book.status == "finished":
        console.print("[green]Finished![/]")
