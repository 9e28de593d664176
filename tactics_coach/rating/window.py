"""
Rating-window policy for candidate search.

The search window around a (clamped) rating is ``rating ± radius`` where the
radius grows geometrically with the compromise level:

    radius(c) = radius_base * radius_growth ** min(c, max_compromise)

With the defaults (50, 2.0, max 4) the radius runs 50, 100, 200, 400, 800.
The curve only promises to be non-decreasing in the compromise level and
bounded at the maximum level.
"""

from __future__ import annotations

from tactics_coach.config import get_settings


def clamp_rating(rating: float, floor: float | None = None, ceiling: float | None = None) -> float:
    """Clamp a raw rating into the range used as a search centre."""
    settings = get_settings()
    low = settings.rating_floor if floor is None else floor
    high = settings.rating_ceiling if ceiling is None else ceiling
    return max(low, min(high, rating))


def radius_for_rating(
    rating: float,
    compromise: int,
    base: float | None = None,
    growth: float | None = None,
    max_compromise: int | None = None,
) -> float:
    """
    Half-width of the acceptable rating window.

    Args:
        rating: Clamped rating at the centre of the window.
        compromise: Compromise level (negative values are treated as 0).
        base: Radius at compromise 0.
        growth: Per-level multiplier (values below 1 are treated as 1).
        max_compromise: Level beyond which the radius stops growing.

    Returns:
        Radius in rating points.
    """
    settings = get_settings()
    base = settings.radius_base if base is None else base
    growth = settings.radius_growth if growth is None else growth
    max_compromise = settings.max_compromise if max_compromise is None else max_compromise

    level = max(0, min(compromise, max_compromise))
    radius = base * max(1.0, growth) ** level

    # Near the clamp limits the window is lopsided; widen it so the
    # in-range side still covers a full radius worth of puzzles.
    edge_gap = min(rating - settings.rating_floor, settings.rating_ceiling - rating)
    if 0 <= edge_gap < radius:
        radius += radius - edge_gap
    return radius
