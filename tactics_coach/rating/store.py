"""
Rating Store Adapter.

Reads and writes per-user, per-theme and puzzle-derived rating records.
The rating update formula itself lives outside this package: callers run
their transform and persist the result through ``save_user_rating`` /
``save_theme_rating``.

A user's rating record must be provisioned (``provision_user_rating``)
before ``get_user_rating`` is used; a missing record is an error, never
silently defaulted.
"""

from __future__ import annotations

from loguru import logger
from sqlalchemy import select

from tactics_coach.config import get_settings
from tactics_coach.db.database import Database
from tactics_coach.db.models import UserRating, UserThemeRating
from tactics_coach.errors import NotFoundError
from tactics_coach.external import ExternalRatingSource, ThemeClassifier, bounded_call
from tactics_coach.models import DEFAULT_VOLATILITY, Puzzle, RatingRecord
from tactics_coach.rating.themes import IrrelevantThemeClassifier


def default_rating() -> RatingRecord:
    """Default, provisional rating (1500 / 350 / 0.09 / 0)."""
    return RatingRecord()


def puzzle_rating(puzzle: Puzzle) -> RatingRecord:
    """Rating of a puzzle; the catalog has no volatility, so the default is used."""
    return RatingRecord(
        rating=puzzle.rating,
        rating_deviation=puzzle.rating_deviation,
        volatility=DEFAULT_VOLATILITY,
        number_of_results=puzzle.play_count,
    )


def _record_from_row(row: UserRating | UserThemeRating) -> RatingRecord:
    return RatingRecord(
        rating=row.rating,
        rating_deviation=row.rating_deviation,
        volatility=row.volatility,
        number_of_results=row.number_of_results,
    )


class RatingStore:
    """Persistence for user and theme rating records."""

    def __init__(
        self,
        database: Database,
        external_source: ExternalRatingSource | None = None,
        is_irrelevant_theme: ThemeClassifier | None = None,
        timeout_seconds: float | None = None,
    ):
        self.database = database
        self.external_source = external_source
        self.is_irrelevant_theme = is_irrelevant_theme or IrrelevantThemeClassifier()
        self.timeout_seconds = (
            get_settings().external_timeout_seconds if timeout_seconds is None else timeout_seconds
        )

    async def get_user_rating(self, username: str) -> RatingRecord:
        """
        Get a user's rating record.

        Raises:
            NotFoundError: If no record was provisioned for the user
        """
        async with self.database.session_scope() as session:
            row = await session.get(UserRating, username)
            if row is None:
                raise NotFoundError(username)
            return _record_from_row(row)

    async def get_theme_ratings(
        self,
        username: str,
        filter_irrelevant: bool = False,
    ) -> dict[str, RatingRecord]:
        """
        Get every per-theme rating of a user.

        Args:
            username: User identity
            filter_irrelevant: Drop themes the classifier marks as irrelevant

        Returns:
            Mapping of theme to rating record
        """
        query = select(UserThemeRating).where(UserThemeRating.username == username)
        async with self.database.session_scope() as session:
            rows = (await session.execute(query)).scalars().all()

        ratings: dict[str, RatingRecord] = {}
        for row in rows:
            if filter_irrelevant and self.is_irrelevant_theme(row.theme):
                continue
            ratings[row.theme] = _record_from_row(row)
        return ratings

    async def provision_user_rating(self, username: str) -> RatingRecord:
        """
        Create the user's rating record on first login.

        Seeds it from the external rating source when one is configured,
        otherwise from the default rating. Existing records are returned as is.
        """
        async with self.database.session_scope() as session:
            existing = await session.get(UserRating, username)
            if existing is not None:
                return _record_from_row(existing)

        if self.external_source is not None:
            seed = await bounded_call(
                "fetch_external_rating",
                self.external_source.fetch_external_rating(username),
                self.timeout_seconds,
            )
        else:
            seed = default_rating()

        async with self.database.session_scope() as session:
            await session.execute(
                self.database.insert_ignore(UserRating, {"username": username, **seed.to_dict()})
            )
        logger.info(f"Provisioned rating {seed.rating:.0f} for {username}")
        return await self.get_user_rating(username)

    async def save_user_rating(self, username: str, record: RatingRecord) -> None:
        """Persist the result of an external rating update."""
        async with self.database.session_scope() as session:
            await session.execute(
                self.database.upsert(
                    UserRating,
                    {"username": username, **record.to_dict()},
                    index_elements=["username"],
                    update_columns=list(record.to_dict()),
                )
            )

    async def save_theme_rating(self, username: str, theme: str, record: RatingRecord) -> None:
        async with self.database.session_scope() as session:
            await session.execute(
                self.database.upsert(
                    UserThemeRating,
                    {"username": username, "theme": theme, **record.to_dict()},
                    index_elements=["username", "theme"],
                    update_columns=list(record.to_dict()),
                )
            )
