"""Similarity cache and tag-distance helpers."""

from .cache import SimilarityCache, TagSimilarityCandidates, pick_unsolved, recycle_solved
from .distance import nearest_candidate, rank_by_distance, tag_overlap_distance

__all__ = [
    "SimilarityCache",
    "TagSimilarityCandidates",
    "pick_unsolved",
    "recycle_solved",
    "nearest_candidate",
    "rank_by_distance",
    "tag_overlap_distance",
]
