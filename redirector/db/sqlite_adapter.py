"""
Database Adapters

This module implements the DatabaseAdapter interface for SQLite and for
server databases reached through an async SQLAlchemy driver.

SQLite is the default backend. It fits this service well:
- Single-instance deployment (one process owns the counter)
- Tiny write per redirect, cheap aggregate reads
- No server to run

Key characteristics:
- File-based (single .db file)
- Single writer at a time (file locking, writers wait on busy timeout)
- The stdlib driver does not wrap DDL in transactions unless told to
"""

from typing import Any, Optional
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool, Pool

from redirector.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    Uses NullPool: every operation opens its own connection, so detached
    writes from concurrent redirects never share a connection.
    """

    def __init__(self, busy_timeout: float = 5.0):
        self.busy_timeout = busy_timeout

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create SQLite async engine with appropriate configuration.

        Args:
            database_url: SQLite connection string (sqlite+aiosqlite:///...)
            **kwargs: Additional engine options (merged with SQLite defaults)

        Returns:
            Configured AsyncEngine for SQLite
        """
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)

        engine = create_async_engine(
            database_url,
            poolclass=self.get_pool_class(),
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )
        self.configure_transactions(engine)
        return engine

    def get_pool_class(self) -> type[NullPool]:
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        """
        Get SQLite-specific connection arguments.

        - check_same_thread=False: aiosqlite runs the connection on its own thread
        - timeout: how long a writer waits for the file lock
        """
        return {
            "check_same_thread": False,
            "timeout": self.busy_timeout,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    def configure_transactions(self, engine: AsyncEngine) -> None:
        """
        Take BEGIN away from the sqlite3 driver and emit it ourselves.

        The driver only opens a transaction before INSERT/UPDATE/DELETE, so
        CREATE/ALTER statements would otherwise autocommit and survive a
        rolled-back migration.
        """

        @event.listens_for(engine.sync_engine, "connect")
        def _disable_driver_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")

    def get_dialect_name(self) -> str:
        return "sqlite"


class ServerDatabaseAdapter(DatabaseAdapter):
    """
    Adapter for client/server databases (e.g. PostgreSQL via asyncpg).

    Uses the default QueuePool with pre-ping so a restarted database
    server surfaces as a fresh connection rather than a stale one.
    """

    def __init__(self, dialect_name: str, pool_size: int = 5, max_overflow: int = 10):
        self.dialect_name = dialect_name
        self.pool_size = pool_size
        self.max_overflow = max_overflow

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)
        engine = create_async_engine(
            database_url,
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )
        self.configure_transactions(engine)
        return engine

    def get_pool_class(self) -> Optional[type[Pool]]:
        return None

    def get_connect_args(self) -> dict[str, Any]:
        return {}

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_pre_ping": True,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
        }

    def configure_transactions(self, engine: AsyncEngine) -> None:
        # Server databases handled here support transactional DDL natively.
        return None

    def get_dialect_name(self) -> str:
        return self.dialect_name


def get_database_adapter(database_url: str) -> DatabaseAdapter:
    """
    Factory function to get the database adapter for a connection string.

    Returns SQLiteAdapter for sqlite URLs and ServerDatabaseAdapter otherwise.

    Args:
        database_url: SQLAlchemy connection string

    Returns:
        DatabaseAdapter instance
    """
    backend = make_url(database_url).get_backend_name()
    if backend == "sqlite":
        return SQLiteAdapter()
    return ServerDatabaseAdapter(dialect_name=backend)
