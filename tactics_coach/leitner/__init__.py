"""Two-box Leitner review scheduling."""

from .scheduler import LeitnerScheduler, LeitnerState, apply_correct, apply_incorrect, pick_review

__all__ = ["LeitnerScheduler", "LeitnerState", "apply_correct", "apply_incorrect", "pick_review"]
