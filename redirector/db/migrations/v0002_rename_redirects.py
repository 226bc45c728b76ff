"""Rename redirects table to redirects_count

Version: 2
"""

from alembic.operations import Operations

version: int = 2
description: str = "rename redirects to redirects_count"


def upgrade(op: Operations) -> None:
    op.rename_table('redirects', 'redirects_count')
