"""
Two-box Leitner Scheduler.

Box A holds newly seen or recently missed puzzles, box B holds puzzles
answered correctly once and awaiting confirmation. Both boxes are ordered
most-recent-first and bounded.

Transitions on answering a puzzle:
- Incorrect: move to the front of box A (from box B, within box A, or new)
- Correct, in box A: promote to the front of box B
- Correct, in box B: mastered, drop from the boxes
- Correct, untracked: no change

Membership is decided by puzzle id only. A puzzle fetched independently may
differ in incidental fields, so structural equality is never used.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy import update

from tactics_coach.config import get_settings
from tactics_coach.db.database import Database
from tactics_coach.db.models import LeitnerRecord
from tactics_coach.errors import ConcurrentUpdateError
from tactics_coach.models import Puzzle

# =============================================================================
# Box Transitions
# =============================================================================


@dataclass(frozen=True)
class LeitnerState:
    """Contents of both boxes for one user."""

    box_a: tuple[Puzzle, ...] = field(default_factory=tuple)
    box_b: tuple[Puzzle, ...] = field(default_factory=tuple)

    def ids(self) -> tuple[list[str], list[str]]:
        return [p.id for p in self.box_a], [p.id for p in self.box_b]


def _without(box: tuple[Puzzle, ...], puzzle: Puzzle) -> tuple[Puzzle, ...]:
    return tuple(boxed for boxed in box if not boxed.same_as(puzzle))


def _contains(box: tuple[Puzzle, ...], puzzle: Puzzle) -> bool:
    return any(boxed.same_as(puzzle) for boxed in box)


def apply_incorrect(state: LeitnerState, puzzle: Puzzle, limit: int) -> LeitnerState:
    """Move ``puzzle`` to the front of box A and out of box B."""
    return LeitnerState(
        box_a=((puzzle,) + _without(state.box_a, puzzle))[:limit],
        box_b=_without(state.box_b, puzzle)[:limit],
    )


def apply_correct(state: LeitnerState, puzzle: Puzzle, limit: int) -> LeitnerState:
    """Promote from box A to box B, or retire from box B."""
    if _contains(state.box_a, puzzle):
        return LeitnerState(
            box_a=_without(state.box_a, puzzle)[:limit],
            box_b=((puzzle,) + _without(state.box_b, puzzle))[:limit],
        )
    if _contains(state.box_b, puzzle):
        return LeitnerState(box_a=state.box_a, box_b=_without(state.box_b, puzzle)[:limit])
    return state


def pick_review(
    state: LeitnerState,
    rng: random.Random,
    box_a_probability: float,
) -> Puzzle | None:
    """
    Sample the next review without removing it.

    A biased coin chooses the box; when the chosen box is empty the other
    one is used, box A first.
    """
    try_box_a = rng.random() < box_a_probability
    if try_box_a and state.box_a:
        return state.box_a[0]
    if not try_box_a and state.box_b:
        return state.box_b[0]
    if state.box_a:
        return state.box_a[0]
    if state.box_b:
        return state.box_b[0]
    return None


# =============================================================================
# Persistent Scheduler
# =============================================================================


class LeitnerScheduler:
    """
    Leitner boxes backed by the ``leitner_states`` table.

    Updates are compare-and-swap on the record version and retried a bounded
    number of times, so concurrent answers for the same user are never lost.
    """

    def __init__(
        self,
        database: Database,
        box_limit: int | None = None,
        box_a_probability: float | None = None,
        rng: random.Random | None = None,
        retry_attempts: int | None = None,
    ):
        settings = get_settings()
        self.database = database
        self.box_limit = settings.leitner_box_limit if box_limit is None else box_limit
        self.box_a_probability = (
            settings.leitner_box_a_probability if box_a_probability is None else box_a_probability
        )
        self.rng = rng or random.Random()
        self.retry_attempts = (
            settings.persist_retry_attempts if retry_attempts is None else retry_attempts
        )

    async def load(self, username: str) -> tuple[LeitnerState, int] | None:
        """Return the user's boxes and record version, or None if never created."""
        async with self.database.session_scope() as session:
            row = await session.get(LeitnerRecord, username)
            if row is None:
                return None
            state = LeitnerState(
                box_a=tuple(Puzzle.from_dict(p) for p in row.box_a or []),
                box_b=tuple(Puzzle.from_dict(p) for p in row.box_b or []),
            )
            return state, row.version

    async def next_review(self, username: str) -> Puzzle | None:
        loaded = await self.load(username)
        if loaded is None:
            return None
        state, _ = loaded
        box_a, box_b = state.ids()
        logger.debug(f"boxA = {box_a}, boxB = {box_b}")
        return pick_review(state, self.rng, self.box_a_probability)

    async def record_answer(self, username: str, puzzle: Puzzle, correct: bool) -> LeitnerState | None:
        """
        Apply an answer to the user's boxes.

        Returns:
            The resulting state, or None when the user has no boxes and
            answered correctly (nothing to track).

        Raises:
            ConcurrentUpdateError: If the record kept changing for every attempt
        """
        for attempt in range(1, self.retry_attempts + 1):
            loaded = await self.load(username)

            if loaded is None:
                if correct:
                    return None
                created = LeitnerState(box_a=(puzzle,))
                if await self._create(username, created):
                    logger.debug(f"Created Leitner boxes for {username} with {puzzle.id}")
                    return created
                continue

            state, version = loaded
            logger.debug(f"Before update: boxA = {state.ids()[0]}, boxB = {state.ids()[1]}")
            if correct:
                new_state = apply_correct(state, puzzle, self.box_limit)
            else:
                new_state = apply_incorrect(state, puzzle, self.box_limit)

            if new_state.ids() == state.ids():
                return state
            if await self._swap(username, version, new_state):
                logger.debug(f"After update: boxA = {new_state.ids()[0]}, boxB = {new_state.ids()[1]}")
                return new_state
            logger.warning(f"Leitner update conflict for {username} (attempt {attempt})")

        raise ConcurrentUpdateError("leitner_states", username, self.retry_attempts)

    async def _create(self, username: str, state: LeitnerState) -> bool:
        async with self.database.session_scope() as session:
            result = await session.execute(
                self.database.insert_ignore(
                    LeitnerRecord,
                    {
                        "username": username,
                        "box_a": [p.to_dict() for p in state.box_a],
                        "box_b": [p.to_dict() for p in state.box_b],
                        "version": 0,
                    },
                )
            )
            return result.rowcount == 1

    async def _swap(self, username: str, version: int, state: LeitnerState) -> bool:
        stmt = (
            update(LeitnerRecord.__table__)
            .where(LeitnerRecord.username == username, LeitnerRecord.version == version)
            .values(
                box_a=[p.to_dict() for p in state.box_a],
                box_b=[p.to_dict() for p in state.box_b],
                version=version + 1,
            )
        )
        async with self.database.session_scope() as session:
            result = await session.execute(stmt)
            return result.rowcount == 1
