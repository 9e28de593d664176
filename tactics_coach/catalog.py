"""
Puzzle Catalog.

Read access to the immutable puzzle collection plus an importer for the
Lichess puzzle database CSV export:

    PuzzleId,FEN,Moves,Rating,RatingDeviation,Popularity,NbPlays,Themes,GameUrl,OpeningTags
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Iterator
from pathlib import Path

from loguru import logger
from sqlalchemy import select

from tactics_coach.db.database import Database
from tactics_coach.db.models import PuzzleRow
from tactics_coach.models import Puzzle

IMPORT_CHUNK_SIZE = 500


def puzzle_from_row(row: PuzzleRow) -> Puzzle:
    """Convert a catalog row into a domain puzzle."""
    return Puzzle(
        id=row.puzzle_id,
        rating=row.rating,
        rating_deviation=row.rating_deviation,
        play_count=row.play_count,
        tags=frozenset(row.themes or []),
        fen=row.fen,
        moves=row.moves,
        popularity=row.popularity,
        game_url=row.game_url,
    )


def parse_lichess_csv(path: Path) -> Iterator[Puzzle]:
    """Yield puzzles from a Lichess puzzle CSV file."""
    with path.open(encoding="utf-8", newline="") as handle:
        for record in csv.DictReader(handle):
            themes = (record.get("Themes") or "").split()
            opening = (record.get("OpeningTags") or "").split()
            yield Puzzle(
                id=record["PuzzleId"],
                rating=float(record["Rating"]),
                rating_deviation=float(record.get("RatingDeviation") or 350),
                play_count=int(record.get("NbPlays") or 0),
                tags=frozenset(themes + opening),
                fen=record.get("FEN", ""),
                moves=record.get("Moves", ""),
                popularity=int(record.get("Popularity") or 0),
                game_url=record.get("GameUrl", ""),
            )


class PuzzleCatalog:
    """Lookups and rating-window queries over the puzzle collection."""

    def __init__(self, database: Database):
        self.database = database

    async def lookup_puzzle_by_id(self, puzzle_id: str) -> Puzzle | None:
        async with self.database.session_scope() as session:
            row = await session.get(PuzzleRow, puzzle_id)
            return puzzle_from_row(row) if row else None

    async def find_in_window(
        self,
        low: float,
        high: float,
        exclude_ids: Iterable[str] = (),
    ) -> list[Puzzle]:
        """
        Return unsolved puzzles with ``low < rating < high``.

        Args:
            low: Exclusive lower rating bound.
            high: Exclusive upper rating bound.
            exclude_ids: Puzzle ids to leave out (typically the solved history).

        Returns:
            Puzzles ordered by id.
        """
        excluded = list(exclude_ids)
        query = select(PuzzleRow).where(PuzzleRow.rating > low, PuzzleRow.rating < high)
        if excluded:
            query = query.where(PuzzleRow.puzzle_id.notin_(excluded))
        query = query.order_by(PuzzleRow.puzzle_id)

        async with self.database.session_scope() as session:
            rows = (await session.execute(query)).scalars().all()
            return [puzzle_from_row(row) for row in rows]

    async def add_puzzles(self, puzzles: Iterable[Puzzle]) -> int:
        """Insert puzzles, leaving existing ids untouched. Returns rows attempted."""
        count = 0
        async with self.database.session_scope() as session:
            for puzzle in puzzles:
                await session.execute(
                    self.database.insert_ignore(
                        PuzzleRow,
                        {
                            "puzzle_id": puzzle.id,
                            "fen": puzzle.fen,
                            "moves": puzzle.moves,
                            "rating": puzzle.rating,
                            "rating_deviation": puzzle.rating_deviation,
                            "popularity": puzzle.popularity,
                            "play_count": puzzle.play_count,
                            "themes": sorted(puzzle.tags),
                            "game_url": puzzle.game_url,
                        },
                    )
                )
                count += 1
        return count

    async def import_lichess_csv(self, path: Path) -> int:
        """Import a Lichess puzzle CSV in chunks."""
        total = 0
        chunk: list[Puzzle] = []
        for puzzle in parse_lichess_csv(path):
            chunk.append(puzzle)
            if len(chunk) >= IMPORT_CHUNK_SIZE:
                total += await self.add_puzzles(chunk)
                chunk = []
        if chunk:
            total += await self.add_puzzles(chunk)
        logger.info(f"Imported {total} puzzles from {path.name}")
        return total
