"""
Durable Store

Persistence for the redirect counter and the request log.

Operations:
- initialize(): apply pending schema migrations, one transaction each
- read_counter() / increment_counter(): the singleton durable counter
- append_log_entry(): insert one request log row
- count_log_entries() / count_all_log_entries(): aggregate counts
- list_log_entries(): paged, newest first
- health_check(): one round trip to the database

Every operation opens its own short-lived session or connection; no
transaction spans more than one operation except a migration. Transport
and driver failures surface as StoreUnavailable so callers deal with one
error type regardless of backend.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from types import ModuleType
from typing import AsyncIterator, Iterable, Optional

from sqlalchemy import func, select, text, update
from sqlalchemy.exc import DBAPIError, DisconnectionError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from redirector.core.exceptions import MigrationFailed, RecordMissing, StoreUnavailable
from redirector.core.setting import Settings
from redirector.db.migrations import (
    MIGRATIONS,
    apply_migration,
    ensure_version_table,
    is_applied,
    ordered,
)
from redirector.db.models import COUNTER_ROW_ID, RedirectCount, RequestLog
from redirector.db.session import build_engine, create_session_maker

logger = logging.getLogger(__name__)


def to_naive_utc(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC; convert aware values before comparing."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def is_connection_failure(error: BaseException) -> bool:
    """True when the error means the database went away, not that a statement failed."""
    if isinstance(error, (DisconnectionError, OSError)):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


@asynccontextmanager
async def store_errors(operation: str) -> AsyncIterator[None]:
    """Translate driver and transport failures into StoreUnavailable."""
    try:
        yield
    except (SQLAlchemyError, OSError) as e:
        raise StoreUnavailable(operation, e) from e


class DurableStore:
    """
    Durable counter and request log backed by a SQLAlchemy async engine.

    The store owns its engine: close() disposes it.
    """

    def __init__(self, engine: AsyncEngine):
        """
        Initialize the store with an engine.

        Args:
            engine: Async engine created through a DatabaseAdapter
        """
        self.engine = engine
        self.session_maker = create_session_maker(engine)

    @classmethod
    def from_url(cls, database_url: str, auth_token: Optional[str] = None) -> "DurableStore":
        return cls(build_engine(database_url, auth_token))

    @classmethod
    def from_settings(cls, settings: Settings) -> "DurableStore":
        return cls.from_url(settings.DATABASE_URL, settings.DATABASE_AUTH_TOKEN)

    async def initialize(self, migrations: Iterable[ModuleType] = MIGRATIONS) -> list[int]:
        """
        Apply every migration not yet recorded in schema_migrations.

        Each migration runs in its own transaction together with the insert
        of its version marker, so a failed migration leaves neither behind.
        Running this against an up-to-date schema changes nothing.

        Args:
            migrations: Migration modules to apply (defaults to MIGRATIONS)

        Returns:
            Versions applied by this call, ascending

        Raises:
            StoreUnavailable: If the database cannot be reached or the
                connection drops while a migration runs
            MigrationFailed: If a migration's statements error
        """
        async with store_errors("initialize"):
            async with self.engine.begin() as conn:
                await conn.run_sync(ensure_version_table)

        applied = []
        for migration in ordered(migrations):
            async with store_errors("initialize"):
                conn = await self.engine.connect()
            try:
                async with conn.begin():
                    if await conn.run_sync(is_applied, migration.version):
                        continue
                    await conn.run_sync(apply_migration, migration)
            except Exception as e:
                if is_connection_failure(e):
                    logger.error(
                        f"Store connection lost during migration {migration.version}: {str(e)}",
                        exc_info=True
                    )
                    raise StoreUnavailable("initialize", e) from e
                logger.error(
                    f"Migration {migration.version} ({migration.description}) failed: {str(e)}",
                    exc_info=True
                )
                raise MigrationFailed(migration.version, migration.description, e) from e
            finally:
                await conn.close()

            applied.append(migration.version)
            logger.info(f"Applied migration {migration.version}: {migration.description}")

        return applied

    async def read_counter(self) -> int:
        """
        Read the durable counter.

        Raises:
            StoreUnavailable: On connectivity loss
            RecordMissing: If the seed row is absent
        """
        statement = select(RedirectCount.count).where(RedirectCount.id == COUNTER_ROW_ID)
        async with store_errors("read_counter"):
            async with self.session_maker() as session:
                result = await session.execute(statement)
                count = result.scalar_one_or_none()

        if count is None:
            raise RecordMissing(RedirectCount.__tablename__, COUNTER_ROW_ID)
        return count

    async def increment_counter(self) -> None:
        """
        Add one to the durable counter.

        Uses a single UPDATE ... SET count = count + 1, so concurrent
        callers never lose an increment to a read-modify-write race.

        Raises:
            StoreUnavailable: On connectivity loss
            RecordMissing: If no row was updated
        """
        statement = (
            update(RedirectCount)
            .where(RedirectCount.id == COUNTER_ROW_ID)
            .values(count=RedirectCount.count + 1)
        )
        async with store_errors("increment_counter"):
            async with self.session_maker() as session:
                result = await session.execute(statement)
                if result.rowcount == 0:
                    await session.rollback()
                    raise RecordMissing(RedirectCount.__tablename__, COUNTER_ROW_ID)
                await session.commit()

    async def append_log_entry(self, entry: RequestLog) -> None:
        """Insert one request log row."""
        entry.timestamp = to_naive_utc(entry.timestamp)
        async with store_errors("append_log_entry"):
            async with self.session_maker() as session:
                session.add(entry)
                await session.commit()

    async def count_log_entries(self, start: datetime, end: datetime) -> int:
        """
        Count log rows with start <= timestamp <= end.

        Args:
            start: Window start (inclusive)
            end: Window end (inclusive)
        """
        statement = (
            select(func.count())
            .select_from(RequestLog)
            .where(RequestLog.timestamp.between(to_naive_utc(start), to_naive_utc(end)))
        )
        async with store_errors("count_log_entries"):
            async with self.session_maker() as session:
                result = await session.execute(statement)
                return result.scalar_one()

    async def count_all_log_entries(self) -> int:
        statement = select(func.count()).select_from(RequestLog)
        async with store_errors("count_all_log_entries"):
            async with self.session_maker() as session:
                result = await session.execute(statement)
                return result.scalar_one()

    async def list_log_entries(self, page: int = 1, page_size: int = 50) -> list[RequestLog]:
        """
        Return one page of log rows, newest first.

        Args:
            page: 1-based page number
            page_size: Rows per page

        Raises:
            ValueError: If page or page_size is below 1
        """
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be positive")

        statement = (
            select(RequestLog)
            .order_by(RequestLog.timestamp.desc(), RequestLog.id.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        async with store_errors("list_log_entries"):
            async with self.session_maker() as session:
                result = await session.execute(statement)
                return list(result.scalars().all())

    async def health_check(self) -> None:
        """
        Liveness probe: succeeds iff a round trip to the database succeeds.

        Raises:
            StoreUnavailable: If the database cannot be reached
        """
        async with store_errors("health_check"):
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

    async def close(self) -> None:
        await self.engine.dispose()
