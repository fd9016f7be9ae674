import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from radio_reminder.errors import PersistenceError
from radio_reminder.models import Base

logger = logging.getLogger(__name__)


def _configure_sqlite(dbapi_conn, _) -> None:
    """Configure SQLite connection parameters"""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode = WAL")
    # Cascade delete of tasks depends on this pragma, it is off by default
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def _create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create async session factory from engine"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


class Database:
    """
    Transactional store over one SQLite file.

    Every store failure leaving a session scope is re-raised as PersistenceError
    after the transaction has been rolled back.
    """

    def __init__(self, database_path: str):
        self.database_path = database_path
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        """Create engine, schema and session factory"""
        logger.info("Initializing database at %s", self.database_path)

        self._engine = create_async_engine(
            f"sqlite+aiosqlite:///{self.database_path}",
            echo=False,
            pool_pre_ping=True,
            connect_args={"timeout": 30, "check_same_thread": False},
        )
        event.listen(self._engine.sync_engine, "connect", _configure_sqlite)

        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to initialize database: {exc}", code="DB_INIT_FAILED") from exc

        self._session_factory = _create_session_factory(self._engine)
        logger.info("Database initialized successfully")

    async def close(self) -> None:
        """Close database connections on shutdown"""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connections closed")

    def get_session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call init() during startup.")
        return self._session_factory

    @asynccontextmanager
    async def session_scope(self) -> AsyncIterator[AsyncSession]:
        """
        Provide an async session wrapped in one transaction.

        The transaction commits on clean exit and rolls back on any exception.

        Raises:
            PersistenceError: When the store raised inside the scope or failed to commit
        """
        session_factory = self.get_session_factory()

        async with session_factory() as session:
            try:
                async with session.begin():
                    yield session
            except SQLAlchemyError as exc:
                logger.error("Database operation failed, transaction rolled back: %s", exc)
                raise PersistenceError(f"Database operation failed: {exc}") from exc


# Process-wide database - initialized in init_db() during startup
_database: Database | None = None


async def init_db(database_path: str) -> Database:
    """Initialize the process-wide database"""
    global _database
    database = Database(database_path)
    await database.init()
    _database = database
    return database


async def close_db() -> None:
    global _database
    if _database is not None:
        await _database.close()
        _database = None
