"""Index request_logs.timestamp

Version: 4
The info endpoint counts rows in a rolling window on every call.
"""

from alembic.operations import Operations

version: int = 4
description: str = "index request_logs.timestamp"


def upgrade(op: Operations) -> None:
    op.create_index(
        'ix_request_logs_timestamp',
        'request_logs',
        ['timestamp']
    )
