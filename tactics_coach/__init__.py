"""
Tactics Coach

Adaptive puzzle recommendation: skill ratings, two-box Leitner review
scheduling and similarity-driven batch generation.
"""

__version__ = "1.0.0"
