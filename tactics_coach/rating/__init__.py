"""Rating records and the rating-window search policy."""

from .store import RatingStore, default_rating, puzzle_rating
from .window import clamp_rating, radius_for_rating

__all__ = [
    "RatingStore",
    "default_rating",
    "puzzle_rating",
    "clamp_rating",
    "radius_for_rating",
]
