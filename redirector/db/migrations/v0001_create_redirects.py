"""Create redirects counter table

Version: 1
Creates the singleton counter table and seeds row 1 with a count of zero.
"""

import sqlalchemy as sa
from alembic.operations import Operations

version: int = 1
description: str = "create redirects counter table"


def upgrade(op: Operations) -> None:
    redirects = op.create_table(
        'redirects',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id')
    )

    op.bulk_insert(redirects, [{'id': 1, 'count': 0}])
