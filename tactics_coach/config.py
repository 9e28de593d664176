"""
Configuration settings for the tactics-coach engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///tactics_coach.db",
        description="Async SQLAlchemy connection string (sqlite+aiosqlite or postgresql)",
    )
    persist_retry_attempts: int = Field(
        default=5,
        description="Attempts for optimistic read-modify-write of per-user records",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # External Services
    # ========================================
    lichess_api_url: str = Field(
        default="https://lichess.org",
        description="Base URL of the Lichess API used for provisional ratings",
    )
    external_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for external lookups (rating fetch, similarity computation)",
    )

    # ========================================
    # Leitner Scheduling
    # ========================================
    leitner_box_limit: int = Field(
        default=50,
        description="Maximum number of puzzles held in each Leitner box",
    )
    leitner_box_a_probability: float = Field(
        default=0.8,
        description="Probability of drawing the next review from box A",
    )

    # ========================================
    # Rating Window
    # ========================================
    rating_floor: float = Field(
        default=600.0,
        description="Lowest rating used as the centre of a candidate search",
    )
    rating_ceiling: float = Field(
        default=2800.0,
        description="Highest rating used as the centre of a candidate search",
    )
    radius_base: float = Field(
        default=50.0,
        description="Half-width of the rating window at compromise level 0",
    )
    radius_growth: float = Field(
        default=2.0,
        description="Multiplier applied to the radius per compromise level",
    )
    initial_compromise: int = Field(
        default=2,
        description="Starting compromise level for batched searches",
    )
    max_compromise: int = Field(
        default=4,
        description="Compromise level at which the window stops widening",
    )
    min_batch_factor: int = Field(
        default=2,
        description="Candidates wanted per batch slot before widening stops",
    )

    # ========================================
    # Batches & Similarity
    # ========================================
    batch_size: int = Field(
        default=10,
        description="Batch size assumed when a user has no previous batch",
    )
    similarity_cache_size: int = Field(
        default=10,
        description="Number of similar puzzles stored per similarity cache entry",
    )
    irrelevant_themes: list[str] = Field(
        default=[
            "short",
            "long",
            "veryLong",
            "oneMove",
            "opening",
            "middlegame",
            "endgame",
            "advantage",
            "crushing",
            "equality",
            "mate",
            "master",
            "masterVsMaster",
            "superGM",
        ],
        description="Themes excluded from theme-rating summaries when filtering",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def get_async_database_url(self) -> str:
        """Return the database URL rewritten for an async driver."""
        url = self.database_url
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite:///"):
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
