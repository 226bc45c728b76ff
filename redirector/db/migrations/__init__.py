"""
Schema Migrations

Ordered, append-only list of schema migrations. Each migration module
exposes ``version``, ``description`` and ``upgrade(op)`` where ``op`` is an
Alembic ``Operations`` object bound to the migration's own transaction.

Rules:
- Versions are consecutive integers starting at 1
- A released migration is never edited; renames and restructuring are
  new migrations appended to MIGRATIONS
- Applying a migration and recording its version happen in one transaction
"""

from types import ModuleType
from typing import Iterable

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import insert, select
from sqlalchemy.engine import Connection

from redirector.db.models import SchemaMigration, utcnow
from redirector.db.migrations import (
    v0001_create_redirects,
    v0002_rename_redirects,
    v0003_create_request_logs,
    v0004_index_request_logs_timestamp,
)

MIGRATIONS: tuple[ModuleType, ...] = (
    v0001_create_redirects,
    v0002_rename_redirects,
    v0003_create_request_logs,
    v0004_index_request_logs_timestamp,
)


def ensure_version_table(connection: Connection) -> None:
    """Create schema_migrations if this is a fresh database."""
    SchemaMigration.__table__.create(connection, checkfirst=True)


def is_applied(connection: Connection, version: int) -> bool:
    statement = select(SchemaMigration.__table__.c.version).where(
        SchemaMigration.__table__.c.version == version
    )
    return connection.execute(statement).first() is not None


def apply_migration(connection: Connection, migration: ModuleType) -> None:
    """
    Run one migration's upgrade and record its version marker.

    Must be called inside a transaction; the caller commits or rolls back
    both effects together.
    """
    context = MigrationContext.configure(connection)
    migration.upgrade(Operations(context))
    connection.execute(
        insert(SchemaMigration.__table__).values(
            version=migration.version,
            applied_at=utcnow(),
        )
    )


def ordered(migrations: Iterable[ModuleType]) -> list[ModuleType]:
    """Sort migrations by version and reject gaps or duplicates."""
    result = sorted(migrations, key=lambda m: m.version)
    for expected, migration in enumerate(result, start=1):
        if migration.version != expected:
            raise ValueError(
                f"Migration versions must be consecutive from 1; "
                f"expected {expected}, found {migration.version}"
            )
    return result


__all__ = [
    "MIGRATIONS",
    "apply_migration",
    "ensure_version_table",
    "is_applied",
    "ordered",
]
