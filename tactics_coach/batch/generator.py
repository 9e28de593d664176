"""
Batch Generator.

Builds a user's next batch of puzzles from the previous one:

- similar_batch: item i is the first unsolved puzzle in the similarity cache
  entry of previous item i. When the whole entry is solved, the earliest
  solved puzzle from that entry is recycled instead.
- nearest_batch: item i is the unsolved puzzle closest by tag distance to
  previous item i, drawn from a rating window around the user's rating that
  widens until it holds enough candidates.
- starter_batch: the first batch for a user without one, taken from the
  rating window around the user's rating.

The per-item lookups of a batch run concurrently and each one is checked
against the solved history read at the start of the request, so the result
does not depend on which lookup finishes first. Two items may therefore
resolve to the same puzzle. Any failure fails the whole batch. The solved list and the new batch are committed together with
a compare-and-swap on the solved history, and the batch is rebuilt from a
fresh read when another request for the same user got there first.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from loguru import logger

from tactics_coach.catalog import PuzzleCatalog
from tactics_coach.config import get_settings
from tactics_coach.errors import WHOLE_CACHE_SOLVED, ConcurrentUpdateError, ExternalLookupFailure
from tactics_coach.external import TagDistance, bounded_call
from tactics_coach.history import HistoryStore
from tactics_coach.models import Puzzle
from tactics_coach.rating.store import RatingStore
from tactics_coach.rating.window import clamp_rating, radius_for_rating
from tactics_coach.similarity.cache import SimilarityCache, pick_unsolved, recycle_solved
from tactics_coach.similarity.distance import nearest_candidate, tag_overlap_distance


def _extend_unique(history: list[str], ids: Sequence[str]) -> list[str]:
    seen = set(history)
    extended = list(history)
    for puzzle_id in ids:
        if puzzle_id not in seen:
            seen.add(puzzle_id)
            extended.append(puzzle_id)
    return extended


class BatchGenerator:
    """Orchestrates catalog, ratings and similarity cache into batches."""

    def __init__(
        self,
        catalog: PuzzleCatalog,
        history: HistoryStore,
        ratings: RatingStore,
        similarity: SimilarityCache,
        distance: TagDistance = tag_overlap_distance,
        timeout_seconds: float | None = None,
    ):
        self.settings = get_settings()
        self.catalog = catalog
        self.history = history
        self.ratings = ratings
        self.similarity = similarity
        self.distance = distance
        self.timeout_seconds = (
            self.settings.external_timeout_seconds if timeout_seconds is None else timeout_seconds
        )

    # =========================================================================
    # Last batch
    # =========================================================================

    async def next_batch(self, username: str) -> list[Puzzle]:
        """The user's persisted last batch; empty when there is none."""
        return await self.history.load_last_batch(username)

    # =========================================================================
    # Similarity-cache batches
    # =========================================================================

    async def similar_batch(self, username: str) -> list[Puzzle]:
        last_batch = await self.next_batch(username)
        if not last_batch:
            return last_batch

        for attempt in range(1, self.history.retry_attempts + 1):
            solved, version = await self.history.load_solved(username)
            working = list(solved)
            solved_set = frozenset(solved)

            chosen_ids = await asyncio.gather(
                *(self._similar_to(puzzle, working, solved_set) for puzzle in last_batch)
            )
            batch = await asyncio.gather(*(self._resolve(puzzle_id) for puzzle_id in chosen_ids))

            if await self.history.commit_batch(
                username, version, _extend_unique(working, chosen_ids), batch
            ):
                return list(batch)
            logger.warning(f"Solved history changed during similar batch for {username} (attempt {attempt})")

        raise ConcurrentUpdateError("solved_history", username, self.history.retry_attempts)

    async def _similar_to(self, puzzle: Puzzle, working: list[str], solved: frozenset[str]) -> str:
        """Choose against the solved history read at the start of the request."""
        entry = await self.similarity.get_or_compute(puzzle)
        choice = pick_unsolved(entry, solved)
        if choice is WHOLE_CACHE_SOLVED:
            recycled = recycle_solved(entry, working)
            if recycled is None:
                logger.warning(
                    f"Nothing to recycle for exhausted cache of {puzzle.id}; repeating the puzzle"
                )
                recycled = puzzle.id
            else:
                logger.debug(f"Recycled {recycled} from exhausted cache of {puzzle.id}")
            choice = recycled
        return choice

    async def _resolve(self, puzzle_id: str) -> Puzzle:
        puzzle = await bounded_call(
            "lookup_puzzle_by_id",
            self.catalog.lookup_puzzle_by_id(puzzle_id),
            self.timeout_seconds,
        )
        if puzzle is None:
            raise ExternalLookupFailure("lookup_puzzle_by_id", f"puzzle {puzzle_id} not in catalog")
        return puzzle

    # =========================================================================
    # Rating-window batches
    # =========================================================================

    async def ranked_candidates(
        self,
        username: str,
        clamped_rating: float,
        solved_ids: Sequence[str],
        batch_size: int,
        min_batch_factor: int | None = None,
        compromise: int | None = None,
    ) -> list[Puzzle]:
        """
        Unsolved puzzles within ``radius_for_rating`` of ``clamped_rating``.

        The window widens one compromise level at a time while fewer than
        ``min_batch_factor * batch_size`` candidates are found, stopping at
        the maximum level. Whatever the last window holds is returned.
        """
        factor = self.settings.min_batch_factor if min_batch_factor is None else min_batch_factor
        level = self.settings.initial_compromise if compromise is None else compromise
        max_level = self.settings.max_compromise

        while True:
            if level >= max_level:
                logger.warning(f"Maximum compromise reached in candidate search for {username}")
            radius = radius_for_rating(clamped_rating, level)
            logger.debug(f"Radius for {clamped_rating} is {radius}")
            candidates = await self.catalog.find_in_window(
                clamped_rating - radius, clamped_rating + radius, solved_ids
            )
            logger.debug(f"Found {len(candidates)} candidates")
            if level < max_level and len(candidates) < factor * batch_size:
                level += 1
                continue
            return candidates

    async def nearest_batch(self, username: str) -> list[Puzzle]:
        last_batch = await self.next_batch(username)
        if not last_batch:
            return last_batch
        user_rating = await self.ratings.get_user_rating(username)
        clamped = clamp_rating(user_rating.rating)

        for attempt in range(1, self.history.retry_attempts + 1):
            solved, version = await self.history.load_solved(username)
            working = list(solved)
            solved_set = set(solved)
            candidates = await self.ranked_candidates(username, clamped, solved, len(last_batch))
            batch = [
                nearest_candidate(puzzle, candidates, working, solved_set, self.distance)
                for puzzle in last_batch
            ]
            if await self.history.commit_batch(username, version, working, batch):
                return batch
            logger.warning(f"Solved history changed during nearest batch for {username} (attempt {attempt})")

        raise ConcurrentUpdateError("solved_history", username, self.history.retry_attempts)

    async def starter_batch(self, username: str, batch_size: int | None = None) -> list[Puzzle]:
        """First batch: the unsolved puzzles rated closest to the user."""
        size = batch_size or self.settings.batch_size
        user_rating = await self.ratings.get_user_rating(username)
        clamped = clamp_rating(user_rating.rating)

        for attempt in range(1, self.history.retry_attempts + 1):
            solved, version = await self.history.load_solved(username)
            candidates = await self.ranked_candidates(username, clamped, solved, size, compromise=0)
            batch = sorted(candidates, key=lambda p: abs(p.rating - clamped))[:size]
            if await self.history.commit_batch(
                username, version, _extend_unique(solved, [p.id for p in batch]), batch
            ):
                return batch
            logger.warning(f"Solved history changed during starter batch for {username} (attempt {attempt})")

        raise ConcurrentUpdateError("solved_history", username, self.history.retry_attempts)
