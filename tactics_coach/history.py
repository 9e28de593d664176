"""
Solved History and Last Batch persistence.

The solved history is a versioned record; every write is a compare-and-swap
against the version read at the start of the operation. A new batch and the
solved list it extends are committed in one transaction, so a batch request
either lands completely or not at all.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger
from sqlalchemy import update

from tactics_coach.config import get_settings
from tactics_coach.db.database import Database
from tactics_coach.db.models import LastBatchRow, SolvedHistoryRow
from tactics_coach.errors import ConcurrentUpdateError
from tactics_coach.models import Puzzle


class HistoryStore:
    """Per-user solved history and last batch."""

    def __init__(self, database: Database, retry_attempts: int | None = None):
        self.database = database
        self.retry_attempts = (
            get_settings().persist_retry_attempts if retry_attempts is None else retry_attempts
        )

    async def load_solved(self, username: str) -> tuple[list[str], int | None]:
        """Return the solved ids (oldest first) and the record version (None if absent)."""
        async with self.database.session_scope() as session:
            row = await session.get(SolvedHistoryRow, username)
            if row is None:
                return [], None
            return list(row.solved or []), row.version

    async def load_last_batch(self, username: str) -> list[Puzzle]:
        async with self.database.session_scope() as session:
            row = await session.get(LastBatchRow, username)
            if row is None:
                return []
            return [Puzzle.from_dict(p) for p in row.batch or []]

    async def commit_batch(
        self,
        username: str,
        expected_version: int | None,
        solved: Sequence[str],
        batch: Sequence[Puzzle],
    ) -> bool:
        """
        Write the solved list and the new last batch together.

        Returns:
            False, with nothing written, if the solved history changed since
            ``expected_version`` was read.
        """
        logger.debug(f"Persisting {list(solved)} for {username}...")
        async with self.database.session_scope() as session:
            if not await self._swap_solved(session, username, expected_version, solved):
                return False
            await session.execute(
                self.database.upsert(
                    LastBatchRow,
                    {"username": username, "batch": [p.to_dict() for p in batch]},
                    index_elements=["username"],
                    update_columns=["batch"],
                )
            )
        return True

    async def mark_solved(self, username: str, puzzle_id: str) -> list[str]:
        """Append ``puzzle_id`` to the solved history unless already present."""
        for attempt in range(1, self.retry_attempts + 1):
            solved, version = await self.load_solved(username)
            if puzzle_id in solved:
                return solved
            updated = solved + [puzzle_id]
            async with self.database.session_scope() as session:
                if await self._swap_solved(session, username, version, updated):
                    return updated
            logger.warning(f"Solved history conflict for {username} (attempt {attempt})")
        raise ConcurrentUpdateError("solved_history", username, self.retry_attempts)

    async def _swap_solved(
        self,
        session,
        username: str,
        expected_version: int | None,
        solved: Sequence[str],
    ) -> bool:
        if expected_version is None:
            result = await session.execute(
                self.database.insert_ignore(
                    SolvedHistoryRow,
                    {"username": username, "solved": list(solved), "version": 0},
                )
            )
        else:
            result = await session.execute(
                update(SolvedHistoryRow.__table__)
                .where(
                    SolvedHistoryRow.username == username,
                    SolvedHistoryRow.version == expected_version,
                )
                .values(solved=list(solved), version=expected_version + 1)
            )
        return result.rowcount == 1
