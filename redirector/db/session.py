"""
Database Engine and Session Factory

This module builds the async engine and session factory the durable store
works with. Uses the database abstraction layer so the store never
contains backend conditionals.

Key Features:
- Database abstraction: adapter chosen from the connection string
- Credentials: an auth token is injected as the URL password when the
  URL carries none (hosted databases hand out tokens, not passwords)
- Async session management: one short-lived session per store operation
"""

from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from redirector.db.sqlite_adapter import get_database_adapter


def resolve_database_url(database_url: str, auth_token: Optional[str] = None) -> str:
    """
    Combine the configured URL and auth token into one connection string.

    Args:
        database_url: SQLAlchemy connection string from settings
        auth_token: Optional credential

    Returns:
        Connection string with the token applied as password when the URL has none
    """
    url = make_url(database_url)
    if auth_token and url.get_backend_name() != "sqlite" and url.password is None:
        url = url.set(password=auth_token)
    return url.render_as_string(hide_password=False)


def build_engine(database_url: str, auth_token: Optional[str] = None) -> AsyncEngine:
    """Create an engine configured by the adapter for this URL."""
    resolved = resolve_database_url(database_url, auth_token)
    adapter = get_database_adapter(resolved)
    return adapter.create_engine(resolved)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create the async session factory bound to an engine.

    expire_on_commit=False keeps log entries readable after the insert commits.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
