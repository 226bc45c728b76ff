"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter / ServerDatabaseAdapter: backend-specific engine setup
- DurableStore: counter, request log and migrations on top of an engine

To add a new database backend:
1. Create a new adapter class inheriting from DatabaseAdapter
2. Implement all abstract methods
3. Update get_database_adapter() in sqlite_adapter.py to return the new adapter
"""

from redirector.db.interface import DatabaseAdapter
from redirector.db.store import DurableStore

__all__ = [
    "DatabaseAdapter",
    "DurableStore",
]
