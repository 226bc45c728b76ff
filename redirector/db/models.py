"""
Database Models for the Redirect Service

This module defines the SQLModel table models for:
- RedirectCount: the singleton durable counter row
- RequestLog: one immutable row per redirect served
- SchemaMigration: one row per applied schema migration

The tables themselves are created by the ordered migrations in
redirector.db.migrations; these models describe the schema those
migrations arrive at and are what the store queries against.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlmodel import Field, SQLModel

COUNTER_ROW_ID = 1


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every stored timestamp uses."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RedirectCount(SQLModel, table=True):
    """
    Durable copy of the redirect counter.

    Exactly one row (id = COUNTER_ROW_ID) exists once migrations have run.
    Incremented in place with UPDATE ... SET count = count + 1.
    """
    __tablename__ = "redirects_count"

    id: Optional[int] = Field(default=None, primary_key=True)
    count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))


class RequestLog(SQLModel, table=True):
    """
    Request log table, one row per redirect.

    Rows are append-only. They feed the all-time and rolling-window counts
    reported by the info endpoint; the counter is never rebuilt from them.
    """
    __tablename__ = "request_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    timestamp: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, index=True)
    )
    remote_addr: str = Field(default="", sa_column=Column(String(255), nullable=False))
    request_method: str = Field(default="", sa_column=Column(String(16), nullable=False))
    request_uri: str = Field(default="", sa_column=Column(Text, nullable=False))
    protocol: str = Field(default="", sa_column=Column(String(16), nullable=False))
    status_code: int = Field(sa_column=Column(Integer, nullable=False))
    user_agent: str = Field(default="", sa_column=Column(Text, nullable=False))
    referer: str = Field(default="", sa_column=Column(Text, nullable=False))


class SchemaMigration(SQLModel, table=True):
    """Applied migration marker. Append-only; the version is the primary key."""
    __tablename__ = "schema_migrations"

    version: int = Field(sa_column=Column(Integer, primary_key=True, autoincrement=False))
    applied_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False)
    )
