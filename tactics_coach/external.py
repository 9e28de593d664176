"""
Interfaces of the collaborators the engine consumes but does not own,
and the timeout discipline applied when calling them.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable, Sequence
from typing import Protocol, TypeVar

from tactics_coach.errors import ExternalLookupFailure, TacticsCoachError
from tactics_coach.models import Puzzle, RatingRecord

T = TypeVar("T")


class CandidateComputer(Protocol):
    """Produces the ordered ids of puzzles similar to a reference puzzle."""

    async def compute_candidates(self, puzzle: Puzzle) -> Sequence[str]: ...


class ExternalRatingSource(Protocol):
    """Third-party provisional rating source."""

    async def fetch_external_rating(self, username: str) -> RatingRecord: ...


class TagDistance(Protocol):
    """Topical distance between tag sets; may stop early once above ``bound``."""

    def __call__(self, tags_a: Iterable[str], tags_b: Iterable[str], bound: float) -> float: ...


class ThemeClassifier(Protocol):
    def __call__(self, theme: str) -> bool: ...


async def bounded_call(capability: str, call: Awaitable[T], timeout: float | None) -> T:
    """
    Await an external call under a timeout.

    Timeouts and unexpected errors surface as ``ExternalLookupFailure``;
    engine errors raised by the collaborator pass through unchanged.
    """
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ExternalLookupFailure(capability, f"timed out after {timeout}s") from e
    except TacticsCoachError:
        raise
    except Exception as e:  # Intentionally broad - every collaborator failure is a lookup failure
        raise ExternalLookupFailure(capability, repr(e)) from e
