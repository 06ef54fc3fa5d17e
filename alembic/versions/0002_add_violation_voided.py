"""add violations.voided

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-12 14:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table('violations') as batch_op:
        batch_op.add_column(sa.Column('voided', sa.Boolean(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table('violations') as batch_op:
        batch_op.drop_column('voided')
