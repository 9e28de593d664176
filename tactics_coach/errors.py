"""
Failure taxonomy for the recommendation engine.

Lower-level components raise these; the batch generator lets them propagate
so a single failed item fails the whole batch.
"""

from __future__ import annotations


class TacticsCoachError(Exception):
    """Base class for all engine failures."""
    pass


class NotFoundError(TacticsCoachError):
    """Raised when a user's rating record is requested before it was provisioned."""

    def __init__(self, username: str):
        super().__init__(f"User {username!r} not present in rating collection")
        self.username = username


class ExternalLookupFailure(TacticsCoachError):
    """Raised when an external capability fails or times out."""

    def __init__(self, capability: str, detail: str):
        super().__init__(f"{capability} failed: {detail}")
        self.capability = capability
        self.detail = detail


class ConcurrentUpdateError(TacticsCoachError):
    """Raised when a per-user record keeps changing underneath a read-modify-write."""

    def __init__(self, record: str, username: str, attempts: int):
        super().__init__(
            f"Gave up updating {record} for {username!r} after {attempts} conflicting attempts"
        )
        self.record = record
        self.username = username
        self.attempts = attempts


class WholeCacheSolved:
    """Sentinel returned when every candidate in a similarity entry is solved."""

    _instance: WholeCacheSolved | None = None

    def __new__(cls) -> WholeCacheSolved:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "WHOLE_CACHE_SOLVED"

    def __bool__(self) -> bool:
        return False


WHOLE_CACHE_SOLVED = WholeCacheSolved()
