"""
Tag-distance helpers.

The engine treats topical distance as a pluggable function over tag sets.
``tag_overlap_distance`` is the stand-in wired by default: the number of
tags carried by exactly one of the two puzzles.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from loguru import logger

from tactics_coach.external import TagDistance
from tactics_coach.models import Puzzle

UNREACHABLE_DISTANCE = 1_000_000.0


def tag_overlap_distance(tags_a: Iterable[str], tags_b: Iterable[str], bound: float) -> float:
    """Count tags present in only one set, stopping once the count exceeds ``bound``."""
    set_a, set_b = set(tags_a), set(tags_b)
    distance = 0
    for _ in set_a.symmetric_difference(set_b):
        distance += 1
        if distance > bound:
            break
    return float(distance)


def nearest_candidate(
    reference: Puzzle,
    candidates: Sequence[Puzzle],
    solved_ids: list[str],
    solved_set: set[str],
    distance: TagDistance = tag_overlap_distance,
) -> Puzzle:
    """
    Pick the unsolved candidate closest to ``reference`` by tag distance.

    Ties keep the first candidate seen. The chosen id is appended to
    ``solved_ids`` and added to ``solved_set`` straight away so later picks
    in the same batch do not repeat it. With no eligible candidate the
    reference puzzle itself is returned and nothing is recorded.
    """
    min_distance = UNREACHABLE_DISTANCE
    closest = None
    for candidate in candidates:
        if candidate.id in solved_set:
            continue
        d = distance(reference.tags, candidate.tags, min_distance)
        if closest is None or d < min_distance:
            min_distance = d
            closest = candidate

    if closest is None:
        logger.debug(f"No unsolved candidate for {reference.id}; keeping it")
        return reference

    logger.debug(
        f"Found {sorted(closest.tags)} for {sorted(reference.tags)} with distance {min_distance}"
    )
    solved_set.add(closest.id)
    solved_ids.append(closest.id)
    return closest


def rank_by_distance(
    reference: Puzzle,
    candidates: Sequence[Puzzle],
    distance: TagDistance = tag_overlap_distance,
) -> list[Puzzle]:
    """Order candidates most-similar first; equal distances keep catalog order."""
    scored = [
        (distance(reference.tags, candidate.tags, UNREACHABLE_DISTANCE), index, candidate)
        for index, candidate in enumerate(candidates)
    ]
    scored.sort(key=lambda item: (item[0], item[1]))
    return [candidate for _, _, candidate in scored]
