"""
Similarity Cache.

Maps a puzzle id to an ordered list of topically similar puzzle ids. Each
entry is computed once, on first need, and shared by every user.

At most one entry may exist per puzzle id. Population goes through
``insert_if_absent``: the primary key on ``similarity_cache.puzzle_id``
plus ``INSERT ... ON CONFLICT DO NOTHING`` makes concurrent first-time
requests converge on whichever row landed first. Within one process,
concurrent misses for the same puzzle also share a single computation.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence, Set

from loguru import logger

from tactics_coach.catalog import PuzzleCatalog
from tactics_coach.config import get_settings
from tactics_coach.db.database import Database
from tactics_coach.db.models import SimilarityCacheRow
from tactics_coach.errors import WHOLE_CACHE_SOLVED, WholeCacheSolved
from tactics_coach.external import CandidateComputer, TagDistance, bounded_call
from tactics_coach.models import Puzzle, SimilarityEntry
from tactics_coach.rating.window import clamp_rating, radius_for_rating
from tactics_coach.similarity.distance import rank_by_distance, tag_overlap_distance


class TagSimilarityCandidates:
    """
    Default candidate computer: catalog puzzles in the rating window around
    the reference puzzle, ranked by tag distance. The reference puzzle is
    always the first candidate.
    """

    def __init__(
        self,
        catalog: PuzzleCatalog,
        distance: TagDistance = tag_overlap_distance,
        cache_size: int | None = None,
        compromise: int | None = None,
    ):
        settings = get_settings()
        self.catalog = catalog
        self.distance = distance
        self.cache_size = cache_size or settings.similarity_cache_size
        self.compromise = settings.initial_compromise if compromise is None else compromise

    async def compute_candidates(self, puzzle: Puzzle) -> list[str]:
        centre = clamp_rating(puzzle.rating)
        radius = radius_for_rating(centre, self.compromise)
        pool = await self.catalog.find_in_window(centre - radius, centre + radius, [puzzle.id])
        ranked = rank_by_distance(puzzle, pool, self.distance)
        return [puzzle.id] + [p.id for p in ranked[: max(0, self.cache_size - 1)]]


def pick_unsolved(entry: SimilarityEntry, solved: Set[str]) -> str | WholeCacheSolved:
    """First candidate not yet solved, or ``WHOLE_CACHE_SOLVED``."""
    for candidate in entry.candidates:
        if candidate not in solved:
            return candidate
    return WHOLE_CACHE_SOLVED


def recycle_solved(entry: SimilarityEntry, solved_history: list[str]) -> str | None:
    """
    Re-surface the earliest solved puzzle that belongs to an exhausted entry.

    The id is removed from ``solved_history`` in place. Returns None when no
    solved id overlaps the entry.
    """
    cache = set(entry.candidates)
    for index, puzzle_id in enumerate(solved_history):
        if puzzle_id in cache:
            del solved_history[index]
            return puzzle_id
    return None


class SimilarityCache:
    """Persistent, shared similarity cache."""

    def __init__(
        self,
        database: Database,
        computer: CandidateComputer,
        timeout_seconds: float | None = None,
    ):
        self.database = database
        self.computer = computer
        self.timeout_seconds = (
            get_settings().external_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self._inflight: dict[str, asyncio.Future[SimilarityEntry]] = {}

    async def lookup(self, puzzle_id: str) -> SimilarityEntry | None:
        async with self.database.session_scope() as session:
            row = await session.get(SimilarityCacheRow, puzzle_id)
            if row is None:
                return None
            return SimilarityEntry(puzzle_id=row.puzzle_id, candidates=list(row.candidates))

    async def insert_if_absent(
        self,
        puzzle_id: str,
        compute: Callable[[], Awaitable[Sequence[str]]],
    ) -> SimilarityEntry:
        """
        Return the stored entry for ``puzzle_id``, computing and storing it if absent.

        When another writer stores an entry between the computation and the
        insert, that entry is kept and returned.
        """
        existing = await self.lookup(puzzle_id)
        if existing is not None:
            return existing

        candidates = list(await compute())
        async with self.database.session_scope() as session:
            await session.execute(
                self.database.insert_ignore(
                    SimilarityCacheRow,
                    {"puzzle_id": puzzle_id, "candidates": candidates},
                )
            )

        stored = await self.lookup(puzzle_id)
        if stored is None:
            raise RuntimeError(f"Similarity entry for {puzzle_id} vanished after insert")
        if stored.candidates != candidates:
            logger.debug(f"Similarity entry for {puzzle_id} was stored concurrently; using stored entry")
        return stored

    async def get_or_compute(self, puzzle: Puzzle) -> SimilarityEntry:
        existing = await self.lookup(puzzle.id)
        if existing is not None:
            logger.debug(f"Similarity cache hit for {puzzle.id}")
            return existing

        logger.debug(f"Similarity cache miss for {puzzle.id}")
        future = self._inflight.get(puzzle.id)
        if future is None:
            future = asyncio.ensure_future(
                self.insert_if_absent(puzzle.id, lambda: self._compute(puzzle))
            )
            self._inflight[puzzle.id] = future
            future.add_done_callback(lambda _: self._inflight.pop(puzzle.id, None))
        return await asyncio.shield(future)

    async def _compute(self, puzzle: Puzzle) -> Sequence[str]:
        candidates = await bounded_call(
            "compute_candidates",
            self.computer.compute_candidates(puzzle),
            self.timeout_seconds,
        )
        return candidates
