"""
Domain objects shared by the stores and the recommendation components.

Puzzles are immutable and compared by id only: two copies fetched
independently may differ in incidental fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_RATING: float = 1500.0
DEFAULT_RATING_DEVIATION: float = 350.0
DEFAULT_VOLATILITY: float = 0.09


@dataclass(frozen=True)
class Puzzle:
    """A reference practice item from the puzzle catalog."""

    id: str
    rating: float
    rating_deviation: float = DEFAULT_RATING_DEVIATION
    play_count: int = 0
    tags: frozenset[str] = field(default_factory=frozenset)
    fen: str = ""
    moves: str = ""
    popularity: int = 0
    game_url: str = ""

    def same_as(self, other: Puzzle) -> bool:
        """Identity comparison used for Leitner box membership."""
        return self.id == other.id

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe payload for persisted batches and boxes."""
        return {
            "id": self.id,
            "rating": self.rating,
            "rating_deviation": self.rating_deviation,
            "play_count": self.play_count,
            "tags": sorted(self.tags),
            "fen": self.fen,
            "moves": self.moves,
            "popularity": self.popularity,
            "game_url": self.game_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Puzzle:
        """Parse a persisted payload."""
        return cls(
            id=data["id"],
            rating=float(data.get("rating", DEFAULT_RATING)),
            rating_deviation=float(data.get("rating_deviation", DEFAULT_RATING_DEVIATION)),
            play_count=int(data.get("play_count", 0)),
            tags=frozenset(data.get("tags", [])),
            fen=data.get("fen", ""),
            moves=data.get("moves", ""),
            popularity=int(data.get("popularity", 0)),
            game_url=data.get("game_url", ""),
        )


@dataclass(frozen=True)
class RatingRecord:
    """Skill estimate for a user, a puzzle or a theme."""

    rating: float = DEFAULT_RATING
    rating_deviation: float = DEFAULT_RATING_DEVIATION
    volatility: float = DEFAULT_VOLATILITY
    number_of_results: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "rating": self.rating,
            "rating_deviation": self.rating_deviation,
            "volatility": self.volatility,
            "number_of_results": self.number_of_results,
        }


@dataclass
class SimilarityEntry:
    """Persisted set of topically similar alternates for one puzzle."""

    puzzle_id: str
    candidates: list[str]
