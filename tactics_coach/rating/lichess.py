"""
Lichess API client for provisional puzzle ratings.

Used only when a user has no internal rating record yet. Volatility is not
public on Lichess, so the default volatility is used.
"""

from __future__ import annotations

import httpx
from loguru import logger

from tactics_coach.config import get_settings
from tactics_coach.errors import ExternalLookupFailure
from tactics_coach.models import DEFAULT_VOLATILITY, RatingRecord


class LichessRatingClient:
    """HTTP client for the public Lichess user endpoint."""

    def __init__(
        self,
        api_url: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the Lichess client.

        Args:
            api_url: Base URL for the Lichess API
            timeout_seconds: Request timeout in seconds
            transport: Optional transport (tests pass ``httpx.MockTransport``)
        """
        settings = get_settings()
        self.api_url = (api_url or settings.lichess_api_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.external_timeout_seconds
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def fetch_external_rating(self, username: str) -> RatingRecord:
        """
        Fetch the user's Lichess puzzle rating.

        Returns the default provisional rating when the user has never
        solved a puzzle on Lichess.

        Raises:
            ExternalLookupFailure: On timeout, HTTP error or malformed payload
        """
        try:
            response = await self.client.get(f"{self.api_url}/api/user/{username}")
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as e:
            raise ExternalLookupFailure("fetch_external_rating", f"timed out: {e}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalLookupFailure("fetch_external_rating", str(e)) from e

        puzzle_perf = (payload.get("perfs") or {}).get("puzzle")
        if not puzzle_perf:
            logger.info(f"No Lichess puzzle rating for {username}, using provisional default")
            return RatingRecord()

        try:
            return RatingRecord(
                rating=float(puzzle_perf["rating"]),
                rating_deviation=float(puzzle_perf["rd"]),
                volatility=DEFAULT_VOLATILITY,
                number_of_results=int(puzzle_perf.get("games", 0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalLookupFailure("fetch_external_rating", f"malformed perf: {e}") from e
