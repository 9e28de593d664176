"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import asyncio
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tactics_coach.catalog import PuzzleCatalog  # noqa: E402
from tactics_coach.db.database import Database  # noqa: E402
from tactics_coach.models import Puzzle  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (require database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def make_puzzle():
    """Factory for catalog puzzles with sensible defaults."""

    def factory(puzzle_id: str, rating: float = 1500.0, tags=(), **kwargs) -> Puzzle:
        return Puzzle(id=puzzle_id, rating=rating, tags=frozenset(tags), **kwargs)

    return factory


@pytest.fixture
def sample_puzzles(make_puzzle):
    """A small catalog spread around 1500."""
    return [
        make_puzzle("P1", 1500, ["fork", "middlegame", "short"]),
        make_puzzle("P2", 1510, ["fork", "middlegame"]),
        make_puzzle("P3", 1480, ["pin", "endgame"]),
        make_puzzle("P4", 1520, ["fork", "short"]),
        make_puzzle("P5", 1450, ["pin", "middlegame"]),
        make_puzzle("P6", 1600, ["skewer", "endgame", "long"]),
        make_puzzle("P7", 1390, ["fork", "pin"]),
        make_puzzle("P8", 1700, ["mateIn2", "short"]),
        make_puzzle("P9", 1300, ["hangingPiece", "opening"]),
    ]


@pytest_asyncio.fixture
async def database(tmp_path):
    """Fresh SQLite database with all tables created."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.init_db()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def catalog(database, sample_puzzles):
    """Puzzle catalog seeded with ``sample_puzzles``."""
    puzzle_catalog = PuzzleCatalog(database)
    await puzzle_catalog.add_puzzles(sample_puzzles)
    return puzzle_catalog


class StaticCandidates:
    """Candidate computer backed by a fixed table, with optional delays and failures."""

    def __init__(self, entries, delays=None, failing=()):
        self.entries = entries
        self.delays = delays or {}
        self.failing = set(failing)
        self.calls = []

    async def compute_candidates(self, puzzle):
        self.calls.append(puzzle.id)
        await asyncio.sleep(self.delays.get(puzzle.id, 0))
        if puzzle.id in self.failing:
            raise RuntimeError(f"similarity backend unavailable for {puzzle.id}")
        return list(self.entries[puzzle.id])


@pytest.fixture
def static_candidates():
    """Factory for ``StaticCandidates`` computers."""
    return StaticCandidates
