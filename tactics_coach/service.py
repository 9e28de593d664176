"""
Coach Service: the operations offered to the request-handling layer.

Every operation takes the user identity explicitly and returns a plain
value or raises a ``TacticsCoachError``; nothing here formats responses.
"""

from __future__ import annotations

import random

from tactics_coach.batch.generator import BatchGenerator
from tactics_coach.catalog import PuzzleCatalog
from tactics_coach.db.database import Database
from tactics_coach.errors import ExternalLookupFailure
from tactics_coach.external import CandidateComputer, ExternalRatingSource, TagDistance, ThemeClassifier
from tactics_coach.history import HistoryStore
from tactics_coach.leitner.scheduler import LeitnerScheduler, LeitnerState
from tactics_coach.models import Puzzle, RatingRecord
from tactics_coach.rating.store import RatingStore, puzzle_rating
from tactics_coach.similarity.cache import SimilarityCache, TagSimilarityCandidates
from tactics_coach.similarity.distance import tag_overlap_distance


class CoachService:
    """Wires the stores and recommendation components over one database."""

    def __init__(
        self,
        database: Database,
        external_rating: ExternalRatingSource | None = None,
        candidate_computer: CandidateComputer | None = None,
        distance: TagDistance = tag_overlap_distance,
        is_irrelevant_theme: ThemeClassifier | None = None,
        rng: random.Random | None = None,
    ):
        self.database = database
        self.catalog = PuzzleCatalog(database)
        self.ratings = RatingStore(database, external_rating, is_irrelevant_theme)
        self.history = HistoryStore(database)
        self.leitner = LeitnerScheduler(database, rng=rng)
        self.similarity = SimilarityCache(
            database,
            candidate_computer or TagSimilarityCandidates(self.catalog, distance),
        )
        self.batches = BatchGenerator(
            self.catalog,
            self.history,
            self.ratings,
            self.similarity,
            distance=distance,
        )

    # Batches ------------------------------------------------------------
    async def next_batch(self, username: str) -> list[Puzzle]:
        return await self.batches.next_batch(username)

    async def similar_batch(self, username: str) -> list[Puzzle]:
        return await self.batches.similar_batch(username)

    async def nearest_batch(self, username: str) -> list[Puzzle]:
        return await self.batches.nearest_batch(username)

    async def starter_batch(self, username: str, batch_size: int | None = None) -> list[Puzzle]:
        return await self.batches.starter_batch(username, batch_size)

    # Reviews ------------------------------------------------------------
    async def next_review(self, username: str) -> Puzzle | None:
        return await self.leitner.next_review(username)

    async def record_answer(self, username: str, puzzle: Puzzle, correct: bool) -> LeitnerState | None:
        """Apply the Leitner transition and add the puzzle to the solved history."""
        state = await self.leitner.record_answer(username, puzzle, correct)
        await self.history.mark_solved(username, puzzle.id)
        return state

    async def lookup_puzzle(self, puzzle_id: str) -> Puzzle:
        puzzle = await self.catalog.lookup_puzzle_by_id(puzzle_id)
        if puzzle is None:
            raise ExternalLookupFailure("lookup_puzzle_by_id", f"puzzle {puzzle_id} not in catalog")
        return puzzle

    # Ratings ------------------------------------------------------------
    async def get_user_rating(self, username: str) -> RatingRecord:
        return await self.ratings.get_user_rating(username)

    async def get_theme_ratings(self, username: str, filter_irrelevant: bool = False) -> dict[str, RatingRecord]:
        return await self.ratings.get_theme_ratings(username, filter_irrelevant)

    async def provision_user_rating(self, username: str) -> RatingRecord:
        return await self.ratings.provision_user_rating(username)

    async def save_user_rating(self, username: str, record: RatingRecord) -> None:
        await self.ratings.save_user_rating(username, record)

    async def save_theme_rating(self, username: str, theme: str, record: RatingRecord) -> None:
        await self.ratings.save_theme_rating(username, theme, record)

    def puzzle_rating(self, puzzle: Puzzle) -> RatingRecord:
        return puzzle_rating(puzzle)
