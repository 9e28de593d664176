"""
Unit tests for the Lichess provisional-rating client.
"""

import httpx
import pytest

from tactics_coach.errors import ExternalLookupFailure
from tactics_coach.models import RatingRecord
from tactics_coach.rating.lichess import LichessRatingClient


@pytest.fixture
def user_payload():
    """Trimmed /api/user response for a player with puzzle history."""
    return {
        "id": "alice",
        "username": "Alice",
        "perfs": {
            "blitz": {"games": 310, "rating": 1720, "rd": 60, "prog": 4},
            "puzzle": {"games": 842, "rating": 1934, "rd": 71, "prog": -12},
        },
    }


def make_client(handler) -> LichessRatingClient:
    return LichessRatingClient(
        api_url="https://lichess.test",
        timeout_seconds=5,
        transport=httpx.MockTransport(handler),
    )


class TestLichessRatingClient:
    """Tests for LichessRatingClient."""

    @pytest.mark.asyncio
    async def test_fetch_puzzle_rating(self, user_payload):
        """The puzzle perf becomes a rating record with default volatility."""
        requests_seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            return httpx.Response(200, json=user_payload)

        client = make_client(handler)
        try:
            record = await client.fetch_external_rating("alice")
        finally:
            await client.close()

        assert record == RatingRecord(rating=1934, rating_deviation=71, volatility=0.09, number_of_results=842)
        assert requests_seen[0].url.path == "/api/user/alice"

    @pytest.mark.asyncio
    async def test_no_puzzle_history_returns_default(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"id": "bob", "perfs": {"blitz": {"rating": 1500}}})

        client = make_client(handler)
        try:
            record = await client.fetch_external_rating("bob")
        finally:
            await client.close()

        assert record == RatingRecord()

    @pytest.mark.asyncio
    async def test_http_error(self):
        """A 404 for an unknown account is a lookup failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "Not found"})

        client = make_client(handler)
        try:
            with pytest.raises(ExternalLookupFailure) as exc_info:
                await client.fetch_external_rating("ghost")
        finally:
            await client.close()

        assert exc_info.value.capability == "fetch_external_rating"

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        client = make_client(handler)
        try:
            with pytest.raises(ExternalLookupFailure, match="timed out"):
                await client.fetch_external_rating("alice")
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_malformed_perf(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"perfs": {"puzzle": {"rating": "n/a", "rd": 50}}})

        client = make_client(handler)
        try:
            with pytest.raises(ExternalLookupFailure, match="malformed"):
                await client.fetch_external_rating("alice")
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>maintenance</html>")

        client = make_client(handler)
        try:
            with pytest.raises(ExternalLookupFailure):
                await client.fetch_external_rating("alice")
        finally:
            await client.close()
