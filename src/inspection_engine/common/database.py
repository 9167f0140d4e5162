"""Async database engine and session scope for Inspection-Engine."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from inspection_engine.common.config import InspectionSettings, get_settings
from inspection_engine.common.logging import get_logger
from inspection_engine.common.models import Base

# Registers every table on Base.metadata before create_all().
import inspection_engine.auth.models  # noqa: F401
import inspection_engine.catalog.models  # noqa: F401
import inspection_engine.inspections.models  # noqa: F401
import inspection_engine.deliveries.models  # noqa: F401

logger = get_logger("database")


def _prepare_sqlite_file(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return
    database = parsed.database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


def _enforce_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    # SQLite ignores ON DELETE rules unless the pragma is set per connection.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class DatabaseManager:
    """Owns the engine; every unit of work runs inside :meth:`get_session`."""

    def __init__(self, settings: InspectionSettings | None = None):
        self._settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        url = self._settings.db_url
        _prepare_sqlite_file(url)
        self.engine = create_async_engine(url, echo=False)
        if self.engine.dialect.name == "sqlite":
            _enforce_sqlite_foreign_keys(self.engine)
        self._session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    def _require_engine(self) -> AsyncEngine:
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized; call init() first")
        return self.engine

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Commit on success, roll back and re-raise on any error."""
        self._require_engine()
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """True when the database answers a trivial query."""
        if self.engine is None:
            return False
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            logger.warning("Database ping failed: %s", exc)
            return False
        return True

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self._session_factory = None
