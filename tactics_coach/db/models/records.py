"""
Recommendation Engine Models.

SQLAlchemy models for the adaptive puzzle engine:
- Puzzle catalog
- User, theme ratings
- Leitner boxes, solved history and last batch per user
- Similarity cache per puzzle

Per-user records carry a ``version`` column so that read-modify-write
updates can be applied as compare-and-swap.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Float, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class PuzzleRow(Base):
    """Immutable puzzle catalog entry (Lichess puzzle database format)."""

    __tablename__ = "puzzles"

    puzzle_id: Mapped[str] = mapped_column(Text, primary_key=True)
    fen: Mapped[str] = mapped_column(Text, default="")
    moves: Mapped[str] = mapped_column(Text, default="")
    rating: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    rating_deviation: Mapped[float] = mapped_column(Float, default=350.0)
    popularity: Mapped[int] = mapped_column(Integer, default=0)
    play_count: Mapped[int] = mapped_column(Integer, default=0)
    themes: Mapped[list] = mapped_column(JSON, default=list)
    game_url: Mapped[str] = mapped_column(Text, default="")

    def __repr__(self) -> str:
        return f"<PuzzleRow {self.puzzle_id} rating={self.rating}>"


class UserRating(Base):
    """Overall puzzle rating per user."""

    __tablename__ = "user_ratings"

    username: Mapped[str] = mapped_column(Text, primary_key=True)
    rating: Mapped[float] = mapped_column(Float, nullable=False)
    rating_deviation: Mapped[float] = mapped_column(Float, nullable=False)
    volatility: Mapped[float] = mapped_column(Float, nullable=False)
    number_of_results: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())


class UserThemeRating(Base):
    """Rating per user per puzzle theme."""

    __tablename__ = "user_theme_ratings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    theme: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[float] = mapped_column(Float, nullable=False)
    rating_deviation: Mapped[float] = mapped_column(Float, nullable=False)
    volatility: Mapped[float] = mapped_column(Float, nullable=False)
    number_of_results: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (UniqueConstraint("username", "theme", name="uq_user_theme"),)


class LeitnerRecord(Base):
    """Two Leitner boxes per user, stored as serialized puzzles (front = most recent)."""

    __tablename__ = "leitner_states"

    username: Mapped[str] = mapped_column(Text, primary_key=True)
    box_a: Mapped[list] = mapped_column(JSON, default=list)
    box_b: Mapped[list] = mapped_column(JSON, default=list)
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class SimilarityCacheRow(Base):
    """Similar puzzle ids for one puzzle; at most one row per puzzle id."""

    __tablename__ = "similarity_cache"

    puzzle_id: Mapped[str] = mapped_column(Text, primary_key=True)
    candidates: Mapped[list] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=func.now())


class SolvedHistoryRow(Base):
    """Puzzle ids a user has completed, oldest first."""

    __tablename__ = "solved_history"

    username: Mapped[str] = mapped_column(Text, primary_key=True)
    solved: Mapped[list] = mapped_column(JSON, default=list)
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class LastBatchRow(Base):
    """The batch of puzzles a user most recently received."""

    __tablename__ = "last_batches"

    username: Mapped[str] = mapped_column(Text, primary_key=True)
    batch: Mapped[list] = mapped_column(JSON, default=list)
