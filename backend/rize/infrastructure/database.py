"""Database Session Manager — async SQLite stores with automatic rollback and schema versioning.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - All SQLAlchemy exceptions mapped to StorageIOError (core/errors.py)
    - A store is opened only at SCHEMA_VERSION; version 0 is created fresh,
      any other version raises SchemaVersionError and the file is left untouched
    - Each manager owns exactly the tables it was constructed with

Design Decisions:
    - One manager per physical store (notes, tasks, session cache): stores never contend
    - Schema version kept in PRAGMA user_version: no extra bookkeeping table
    - expire_on_commit=False: prevents lazy-load issues in async context
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import Table, text
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)

from rize.core.errors import SchemaVersionError, StorageIOError
from rize.db.base import Base

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class DatabaseSessionManager:
    """Manages async sessions for one SQLite store, with rollback and health checks."""

    def __init__(
        self, database_url: str, tables: list[Table], echo: bool = False,
    ):
        self.database_url = database_url
        self.tables = tables
        self.engine = create_async_engine(
            database_url, echo=echo, pool_pre_ping=True,
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"DB integrity error: {e}")
            raise StorageIOError("Integrity constraint violated", "commit")
        except OperationalError as e:
            await session.rollback()
            logger.error(f"DB operational error: {e}")
            raise StorageIOError("Disk or operational error", "execute")
        except DBAPIError as e:
            await session.rollback()
            logger.error(f"DB driver error: {e}")
            raise StorageIOError("Database driver error", "query")
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise StorageIOError("Database operation failed", "unknown")
        finally:
            await session.close()

    async def init_schema(self) -> None:
        """Create tables on a fresh store; refuse stores at an unknown version."""
        try:
            async with self.engine.begin() as conn:
                result = await conn.exec_driver_sql("PRAGMA user_version")
                version = result.scalar_one()
                if version == 0:
                    await conn.run_sync(
                        Base.metadata.create_all, tables=self.tables,
                    )
                    await conn.exec_driver_sql(
                        f"PRAGMA user_version = {SCHEMA_VERSION}",
                    )
                    logger.info(
                        f"Created schema v{SCHEMA_VERSION} at {self.database_url}",
                    )
                elif version != SCHEMA_VERSION:
                    raise SchemaVersionError(version, SCHEMA_VERSION)
        except SQLAlchemyError as e:
            logger.error(f"Schema init failed for {self.database_url}: {e}")
            raise StorageIOError("Could not open store", "init_schema")

    async def schema_version(self) -> int:
        async with self.engine.connect() as conn:
            result = await conn.exec_driver_sql("PRAGMA user_version")
            return result.scalar_one()

    async def health_check(self) -> bool:
        """Check store connectivity (for readiness checks)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except StorageIOError as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()
