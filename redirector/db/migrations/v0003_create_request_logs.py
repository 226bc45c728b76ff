"""Create request_logs table

Version: 3
One row per redirect served: when, from where, and what was requested.
"""

import sqlalchemy as sa
from alembic.operations import Operations

version: int = 3
description: str = "create request_logs table"


def upgrade(op: Operations) -> None:
    op.create_table(
        'request_logs',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('remote_addr', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('request_method', sa.String(length=16), nullable=False, server_default=''),
        sa.Column('request_uri', sa.Text(), nullable=False, server_default=''),
        sa.Column('protocol', sa.String(length=16), nullable=False, server_default=''),
        sa.Column('status_code', sa.Integer(), nullable=False),
        sa.Column('user_agent', sa.Text(), nullable=False, server_default=''),
        sa.Column('referer', sa.Text(), nullable=False, server_default=''),
        sa.PrimaryKeyConstraint('id')
    )
