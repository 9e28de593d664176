from __future__ import annotations

from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from loguru import logger
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from tactics_coach.config import get_settings
from tactics_coach.db.models import Base


class Database:
    """Async engine and session factory for one database URL."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, pool_pre_ping=True)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    async def init_db(self) -> None:
        """Initialize database tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialized")

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide an async transactional scope around a series of operations."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:  # Intentionally broad - rollback on any error before re-raising
                await session.rollback()
                raise

    def _insert(self, table: Any):
        table = getattr(table, "__table__", table)
        if self.dialect == "postgresql":
            return postgresql.insert(table)
        if self.dialect == "sqlite":
            return sqlite.insert(table)
        raise NotImplementedError(f"Conditional inserts are not supported on {self.dialect}")

    def insert_ignore(self, table: Any, values: dict[str, Any]):
        """Build ``INSERT ... ON CONFLICT DO NOTHING`` for the active dialect."""
        return self._insert(table).values(**values).on_conflict_do_nothing()

    def upsert(
        self,
        table: Any,
        values: dict[str, Any],
        index_elements: Sequence[str],
        update_columns: Sequence[str],
    ):
        """Build ``INSERT ... ON CONFLICT DO UPDATE`` for the active dialect."""
        stmt = self._insert(table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=list(index_elements),
            set_={column: stmt.excluded[column] for column in update_columns},
        )


_database: Database | None = None


def get_database() -> Database:
    """Get or create the process-wide database (lazy initialization)."""
    global _database
    if _database is None:
        settings = get_settings()
        _database = Database(settings.get_async_database_url(), echo=settings.log_level == "DEBUG")
    return _database
