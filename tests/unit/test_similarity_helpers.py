"""
Unit tests for tag distance, cache picking and recycling.
"""

from tactics_coach.errors import WHOLE_CACHE_SOLVED
from tactics_coach.models import SimilarityEntry
from tactics_coach.similarity.cache import pick_unsolved, recycle_solved
from tactics_coach.similarity.distance import (
    nearest_candidate,
    rank_by_distance,
    tag_overlap_distance,
)


class TestTagOverlapDistance:
    """Tests for the default tag distance."""

    def test_counts_symmetric_difference(self):
        assert tag_overlap_distance({"fork", "pin"}, {"pin", "skewer"}, 100) == 2

    def test_identical_tags(self):
        assert tag_overlap_distance({"fork"}, {"fork"}, 100) == 0

    def test_stops_past_bound(self):
        """Counting stops as soon as the bound is exceeded."""
        assert tag_overlap_distance({"a", "b", "c"}, {"d", "e", "f"}, 1) == 2


class TestPickUnsolved:
    """Tests for pick_unsolved."""

    def test_first_unsolved_in_order(self):
        entry = SimilarityEntry("P1", ["P1", "P4", "P2", "P3"])

        assert pick_unsolved(entry, {"P4", "P1"}) == "P2"

    def test_whole_cache_solved(self):
        entry = SimilarityEntry("P1", ["P1", "P4"])

        result = pick_unsolved(entry, {"P1", "P4"})

        assert result is WHOLE_CACHE_SOLVED
        assert not result


class TestRecycleSolved:
    """Tests for recycle_solved."""

    def test_removes_earliest_overlap(self):
        """The earliest solved id that is in the entry is re-surfaced."""
        entry = SimilarityEntry("P1", ["P1", "P4"])
        history = ["P9", "P4", "P1"]

        assert recycle_solved(entry, history) == "P4"
        assert history == ["P9", "P1"]

    def test_no_overlap(self):
        entry = SimilarityEntry("P1", ["P1", "P4"])
        history = ["P9"]

        assert recycle_solved(entry, history) is None
        assert history == ["P9"]


class TestNearestCandidate:
    """Tests for nearest_candidate."""

    def test_picks_closest_and_records_it(self, make_puzzle):
        reference = make_puzzle("R", tags=["fork", "short"])
        candidates = [
            make_puzzle("A", tags=["fork"]),
            make_puzzle("B", tags=["fork", "short"]),
            make_puzzle("C", tags=["pin"]),
        ]
        solved_ids, solved_set = ["X"], {"X"}

        chosen = nearest_candidate(reference, candidates, solved_ids, solved_set)

        assert chosen.id == "B"
        assert solved_ids == ["X", "B"]
        assert "B" in solved_set

    def test_ties_keep_first_seen(self, make_puzzle):
        reference = make_puzzle("R", tags=["fork"])
        candidates = [make_puzzle("A", tags=["fork"]), make_puzzle("B", tags=["fork"])]

        chosen = nearest_candidate(reference, candidates, [], set())

        assert chosen.id == "A"

    def test_skips_solved(self, make_puzzle):
        reference = make_puzzle("R", tags=["fork"])
        candidates = [make_puzzle("A", tags=["fork"]), make_puzzle("B", tags=["pin"])]

        chosen = nearest_candidate(reference, candidates, ["A"], {"A"})

        assert chosen.id == "B"

    def test_falls_back_to_reference(self, make_puzzle):
        """With nothing eligible the reference is returned and not duplicated."""
        reference = make_puzzle("R", tags=["fork"])
        solved_ids, solved_set = ["R"], {"R"}

        chosen = nearest_candidate(reference, [], solved_ids, solved_set)

        assert chosen.id == "R"
        assert solved_ids == ["R"]

    def test_fallback_records_nothing(self, make_puzzle):
        """Returning the reference for lack of candidates does not mark it solved."""
        reference = make_puzzle("R", tags=["fork"])
        solved_ids, solved_set = ["A"], {"A"}

        chosen = nearest_candidate(reference, [make_puzzle("A", tags=["fork"])], solved_ids, solved_set)

        assert chosen.id == "R"
        assert solved_ids == ["A"]
        assert solved_set == {"A"}

    def test_consecutive_picks_do_not_repeat(self, make_puzzle):
        candidates = [make_puzzle("A", tags=["fork"]), make_puzzle("B", tags=["fork"])]
        solved_ids, solved_set = [], set()

        first = nearest_candidate(make_puzzle("R1", tags=["fork"]), candidates, solved_ids, solved_set)
        second = nearest_candidate(make_puzzle("R2", tags=["fork"]), candidates, solved_ids, solved_set)

        assert (first.id, second.id) == ("A", "B")


class TestRankByDistance:
    def test_stable_order(self, make_puzzle):
        reference = make_puzzle("R", tags=["fork"])
        candidates = [
            make_puzzle("A", tags=["pin"]),
            make_puzzle("B", tags=["fork"]),
            make_puzzle("C", tags=["fork"]),
        ]

        assert [p.id for p in rank_by_distance(reference, candidates)] == ["B", "C", "A"]
