"""
Custom Exceptions

This module defines the error taxonomy of the redirect service.

- StoreUnavailable: transport or connectivity failure talking to the store.
  Recoverable while serving, fatal at startup.
- RecordMissing: the seeded counter row is absent, which means the store
  was not initialized correctly.
- MigrationFailed: a schema migration could not complete. Always fatal.
"""

from typing import Optional


class RedirectorException(Exception):
    """Base exception for the redirect service."""
    pass


class StoreUnavailable(RedirectorException):
    """Raised when the durable store cannot be reached or a query fails in transport."""

    def __init__(self, operation: str, original_error: Optional[Exception] = None):
        self.operation = operation
        self.original_error = original_error
        message = f"Store unavailable during {operation}"
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message)


class RecordMissing(RedirectorException):
    """Raised when the singleton counter row does not exist."""

    def __init__(self, table_name: str, record_id: int):
        self.table_name = table_name
        self.record_id = record_id
        super().__init__(f"Record {record_id} missing from '{table_name}'")


class MigrationFailed(RedirectorException):
    """Raised when a schema migration errors; the migration is not marked applied."""

    def __init__(self, version: int, description: str, original_error: Optional[Exception] = None):
        self.version = version
        self.description = description
        self.original_error = original_error
        super().__init__(f"Migration {version} ({description}) failed: {original_error}")
