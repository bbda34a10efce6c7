"""Engine and session plumbing for the SQLite asset store."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

_ASSET_STORE_PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
)


def utc_now() -> datetime:
    """Timestamp stamped on ``asset_data`` writes."""

    return datetime.now(tz=UTC)


def sqlite_url(db_path: Path, *, driver: str | None = None) -> str:
    """SQLAlchemy URL for the asset store file, optionally with a DBAPI driver."""

    dialect = f"sqlite+{driver}" if driver else "sqlite"
    return f"{dialect}:///{db_path}"


def build_async_engine(*, db_path: Path, busy_timeout_ms: int) -> AsyncEngine:
    """Async engine over aiosqlite; every new connection gets the store pragmas."""

    engine = create_async_engine(
        sqlite_url(db_path, driver="aiosqlite"),
        connect_args={"timeout": max(1.0, busy_timeout_ms / 1000.0)},
        poolclass=NullPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _record: Any) -> None:
        _configure_connection(dbapi_connection, busy_timeout_ms=busy_timeout_ms)

    return engine


def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by callers that hand sessions to tasks."""

    return async_sessionmaker(engine, autoflush=False, expire_on_commit=False)


def _configure_connection(dbapi_connection: Any, *, busy_timeout_ms: int) -> None:
    # Concurrent workers contend on the same file; wait instead of failing fast.
    statements = (*_ASSET_STORE_PRAGMAS, f"PRAGMA busy_timeout = {max(1, busy_timeout_ms)}")
    cursor = dbapi_connection.cursor()
    try:
        for statement in statements:
            cursor.execute(statement)
    finally:
        cursor.close()
