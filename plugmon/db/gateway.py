"""
Storage gateway: execute one parameterized statement against SQLite.

Holds a single long-lived SQLAlchemy async engine (aiosqlite driver).
Each ``execute()`` call checks a connection out of the engine, runs one
statement, commits, and always returns the connection to the engine,
whatever happens. The gateway provides no multi-statement transactions;
callers get multi-statement consistency from the request queue, which
is the only thing allowed to call ``execute()``.

The store is opened read-write without create, so a missing database
file is reported as ``StoreConnectionError``. ``init_schema()`` is the
one place that creates the file and its tables.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-002)
- 2026-10-13: Track in-flight executions (STORY-004)

TODO:
- None
"""

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from plugmon.db.models import Base
from plugmon.errors import StoreConnectionError, StoreStatementError

logger = logging.getLogger(__name__)


def build_database_url(path: str | Path, *, create: bool = False) -> str:
    """Build an aiosqlite URL for *path*.

    Args:
        path: SQLite database file path.
        create: Open with ``mode=rwc`` (create if missing) instead of
            ``mode=rw``.

    Returns:
        str: SQLAlchemy URL using SQLite URI filenames.
    """
    mode = "rwc" if create else "rw"
    return f"sqlite+aiosqlite:///file:{Path(path)}?mode={mode}&uri=true"


def create_engine(path: str | Path, *, create: bool = False) -> AsyncEngine:
    """Create an async SQLAlchemy engine for the SQLite file at *path*."""
    return create_async_engine(build_database_url(path, create=create), echo=False)


async def init_schema(path: str | Path) -> None:
    """Create the database file (if needed) and all tables.

    Idempotent: existing tables are left untouched.

    Args:
        path: SQLite database file path.
    """
    engine = create_engine(path, create=True)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()
    logger.info("Database schema ready at %s", path)


class StorageGateway:
    """Executes single statements against the plug store.

    Args:
        path: SQLite database file path. The file must already exist.
        engine: Optional pre-built engine (overrides *path*).
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        if engine is None:
            if path is None:
                raise ValueError("StorageGateway needs a path or an engine")
            engine = create_engine(path)
        self._engine = engine

        # Instrumentation: executions currently running and the peak seen.
        self.in_flight: int = 0
        self.max_in_flight: int = 0

    async def execute(
        self,
        template: str,
        parameters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Run one statement and return its rows.

        Args:
            template: SQL text with ``:name`` placeholders.
            parameters: Values bound to the placeholders.

        Returns:
            List of row dicts (empty for statements returning no rows).

        Raises:
            StoreConnectionError: If the store cannot be opened.
            StoreStatementError: If the statement fails.
        """
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            conn = self._engine.connect()
            try:
                await conn.start()
            except (SQLAlchemyError, OSError) as exc:
                raise StoreConnectionError(
                    f"Failed to open database: {exc}"
                ) from exc

            try:
                result = await conn.execute(text(template), parameters or {})
                rows = (
                    [dict(row._mapping) for row in result.fetchall()]
                    if result.returns_rows
                    else []
                )
                await conn.commit()
            except SQLAlchemyError as exc:
                raise StoreStatementError(
                    f"Failed to execute sql: {exc}"
                ) from exc
            finally:
                await conn.close()
        finally:
            self.in_flight -= 1

        return rows

    async def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        await self._engine.dispose()
