# SQLAlchemy models
from .base import Base
from .records import (
    LastBatchRow,
    LeitnerRecord,
    PuzzleRow,
    SimilarityCacheRow,
    SolvedHistoryRow,
    UserRating,
    UserThemeRating,
)

__all__ = [
    # Base
    "Base",
    # Catalog
    "PuzzleRow",
    # Ratings
    "UserRating",
    "UserThemeRating",
    # Per-user state
    "LeitnerRecord",
    "SolvedHistoryRow",
    "LastBatchRow",
    # Shared cache
    "SimilarityCacheRow",
]
