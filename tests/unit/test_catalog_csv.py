"""
Unit tests for parsing the Lichess puzzle CSV export.
"""

import pytest

from tactics_coach.catalog import parse_lichess_csv
from tactics_coach.models import Puzzle

CSV_HEADER = "PuzzleId,FEN,Moves,Rating,RatingDeviation,Popularity,NbPlays,Themes,GameUrl,OpeningTags\n"
CSV_ROWS = (
    "00008,r6k/pp2r2p/4Rp1Q/3p4/8/1N1P2R1/PqP2bPP/7K b - - 0 24,f2g3 e6e7 b2b1 b3c1 b1c1 h6c1,"
    "1913,75,94,6230,crushing hangingPiece long middlegame,https://lichess.org/787zsVup/black#48,\n"
    "0000D,5rk1/1p3ppp/pq3b2/8/8/1P1Q1N2/P4PPP/3R2K1 w - - 2 27,d3d6 f8d8 d6d8 f6d8,"
    "1504,74,96,29468,advantage endgame short,https://lichess.org/F8M8OS71#53,"
    "Kings_Pawn_Game Kings_Pawn_Game_Other\n"
)


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "lichess_db_puzzle.csv"
    path.write_text(CSV_HEADER + CSV_ROWS, encoding="utf-8")
    return path


class TestParseLichessCsv:
    """Tests for parse_lichess_csv."""

    def test_parses_rows(self, csv_file):
        puzzles = list(parse_lichess_csv(csv_file))

        assert [p.id for p in puzzles] == ["00008", "0000D"]
        first = puzzles[0]
        assert first.rating == 1913
        assert first.rating_deviation == 75
        assert first.play_count == 6230
        assert first.popularity == 94
        assert first.tags == frozenset({"crushing", "hangingPiece", "long", "middlegame"})
        assert first.game_url.endswith("#48")

    def test_opening_tags_become_tags(self, csv_file):
        puzzles = list(parse_lichess_csv(csv_file))

        assert "Kings_Pawn_Game" in puzzles[1].tags
        assert "endgame" in puzzles[1].tags


class TestPuzzleSerialization:
    """Tests for Puzzle payloads stored in batches and boxes."""

    def test_from_dict_tolerates_missing_fields(self):
        puzzle = Puzzle.from_dict({"id": "P1"})

        assert puzzle.rating == 1500
        assert puzzle.tags == frozenset()

    def test_same_as_ignores_incidental_fields(self):
        assert Puzzle("P1", 1500).same_as(Puzzle("P1", 1800, tags=frozenset({"fork"})))
        assert not Puzzle("P1", 1500).same_as(Puzzle("P2", 1500))
