"""
Tactics Coach CLI.

A Rich terminal interface over the recommendation engine.

Commands:
- tactics-coach init-db          - Create the database tables
- tactics-coach import-puzzles   - Load a Lichess puzzle CSV export
- tactics-coach provision        - Create a user's rating record
- tactics-coach rating           - Show a user's rating
- tactics-coach themes           - Show a user's per-theme ratings
- tactics-coach starter          - Build a first batch around the user's rating
- tactics-coach batch            - Show the user's current batch
- tactics-coach similar          - Build the next batch from the similarity cache
- tactics-coach nearest          - Build the next batch by tag distance
- tactics-coach review           - Draw the next Leitner review
- tactics-coach answer           - Record an answer for a puzzle
"""
from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Optional, TypeVar

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tactics_coach.config import get_settings
from tactics_coach.db.database import get_database
from tactics_coach.errors import TacticsCoachError
from tactics_coach.models import Puzzle, RatingRecord
from tactics_coach.rating.lichess import LichessRatingClient
from tactics_coach.service import CoachService

T = TypeVar("T")


# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="tactics-coach",
    help="Tactics Coach: adaptive chess puzzle recommendations",
    no_args_is_help=True,
)
console = Console()


def _run(action: Callable[[CoachService], Awaitable[T]], use_lichess: bool = False) -> T:
    """Run one service call against the configured database."""

    async def runner() -> T:
        database = get_database()
        lichess = LichessRatingClient() if use_lichess else None
        try:
            return await action(CoachService(database, external_rating=lichess))
        finally:
            if lichess is not None:
                await lichess.close()
            await database.dispose()

    try:
        return asyncio.run(runner())
    except TacticsCoachError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(1) from e


# =============================================================================
# Display Helpers
# =============================================================================

def show_batch(title: str, batch: list[Puzzle]) -> None:
    if not batch:
        console.print("[yellow]No puzzles in batch[/yellow]")
        return

    table = Table(title=title)
    table.add_column("#", style="dim")
    table.add_column("Puzzle")
    table.add_column("Rating", justify="right")
    table.add_column("Themes")

    for index, puzzle in enumerate(batch, start=1):
        table.add_row(str(index), puzzle.id, f"{puzzle.rating:.0f}", ", ".join(sorted(puzzle.tags)))

    console.print(table)


def show_rating(title: str, record: RatingRecord) -> None:
    console.print(Panel(
        f"Rating: [bold]{record.rating:.0f}[/bold]\n"
        f"Deviation: {record.rating_deviation:.1f}\n"
        f"Volatility: {record.volatility:.3f}\n"
        f"Results: {record.number_of_results}",
        title=title,
        border_style="cyan",
    ))


# =============================================================================
# Commands
# =============================================================================

@app.command("init-db")
def init_db() -> None:
    """Create the database tables."""
    _run(lambda service: service.database.init_db())
    console.print("[green]Database initialized[/green]")


@app.command("import-puzzles")
def import_puzzles(
    csv_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Lichess puzzle CSV"),
) -> None:
    """Load puzzles from a Lichess puzzle database export."""
    count = _run(lambda service: service.catalog.import_lichess_csv(csv_path))
    console.print(f"[green]Imported {count} puzzles[/green]")


@app.command()
def provision(
    username: str = typer.Argument(..., help="User to provision"),
    lichess: bool = typer.Option(
        True,
        "--lichess/--no-lichess",
        help="Seed the rating from Lichess",
    ),
) -> None:
    """Create a user's rating record if it does not exist."""
    record = _run(lambda service: service.provision_user_rating(username), use_lichess=lichess)
    show_rating(f"{username} (provisioned)", record)


@app.command()
def rating(username: str = typer.Argument(..., help="User to show")) -> None:
    """Show a user's overall puzzle rating."""
    show_rating(username, _run(lambda service: service.get_user_rating(username)))


@app.command()
def themes(
    username: str = typer.Argument(..., help="User to show"),
    show_all: bool = typer.Option(
        False,
        "--all", "-a",
        help="Include length, phase and evaluation themes",
    ),
) -> None:
    """Show a user's per-theme ratings."""
    ratings = _run(lambda service: service.get_theme_ratings(username, not show_all))
    if not ratings:
        console.print("[yellow]No theme ratings yet[/yellow]")
        return

    table = Table(title=f"Theme ratings for {username}")
    table.add_column("Theme")
    table.add_column("Rating", justify="right")
    table.add_column("Deviation", justify="right")
    table.add_column("Results", justify="right")

    for theme, record in sorted(ratings.items(), key=lambda item: -item[1].rating):
        table.add_row(
            theme,
            f"{record.rating:.0f}",
            f"{record.rating_deviation:.1f}",
            str(record.number_of_results),
        )

    console.print(table)


@app.command()
def starter(
    username: str = typer.Argument(..., help="User to build a batch for"),
    size: Optional[int] = typer.Option(None, "--size", "-n", help="Batch size"),
) -> None:
    """Build a first batch from puzzles rated near the user."""
    show_batch("Starter batch", _run(lambda service: service.starter_batch(username, size)))


@app.command()
def batch(username: str = typer.Argument(..., help="User to show")) -> None:
    """Show the user's current batch."""
    show_batch("Current batch", _run(lambda service: service.next_batch(username)))


@app.command()
def similar(username: str = typer.Argument(..., help="User to build a batch for")) -> None:
    """Build the next batch from the similarity cache."""
    show_batch("Similar batch", _run(lambda service: service.similar_batch(username)))


@app.command()
def nearest(username: str = typer.Argument(..., help="User to build a batch for")) -> None:
    """Build the next batch by tag distance within the user's rating window."""
    show_batch("Nearest batch", _run(lambda service: service.nearest_batch(username)))


@app.command()
def review(username: str = typer.Argument(..., help="User to review")) -> None:
    """Draw the next puzzle to review from the Leitner boxes."""
    puzzle = _run(lambda service: service.next_review(username))
    if puzzle is None:
        console.print("[green]Nothing to review[/green]")
        return
    show_batch("Next review", [puzzle])


@app.command()
def answer(
    username: str = typer.Argument(..., help="User answering"),
    puzzle_id: str = typer.Argument(..., help="Puzzle answered"),
    correct: bool = typer.Option(
        ...,
        "--correct/--incorrect",
        help="Whether the puzzle was solved",
    ),
) -> None:
    """Record an answer and update the Leitner boxes."""

    async def record(service: CoachService):
        puzzle = await service.lookup_puzzle(puzzle_id)
        return await service.record_answer(username, puzzle, correct)

    state = _run(record)
    if state is None:
        console.print("[dim]Not tracked for review[/dim]")
        return

    box_a, box_b = state.ids()
    console.print(f"[bold cyan]Box A[/bold cyan]: {', '.join(box_a) or '-'}")
    console.print(f"[bold cyan]Box B[/bold cyan]: {', '.join(box_b) or '-'}")


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="10 MB")

    app()


if __name__ == "__main__":
    main()
