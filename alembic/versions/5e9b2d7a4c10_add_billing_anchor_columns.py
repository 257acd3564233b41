"""add billing anchor columns

Revision ID: 5e9b2d7a4c10
Revises: 1a6d0c3f8e72
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5e9b2d7a4c10'
down_revision: Union[str, Sequence[str], None] = '1a6d0c3f8e72'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.add_column('gym_members', sa.Column('billing_anchor_day', sa.Integer(), nullable=True,
                                           comment='Charge day 1-31, unclamped'))
    op.execute("UPDATE gym_members SET billing_anchor_day = EXTRACT(DAY FROM joining_date)")
    op.add_column('gym_payments', sa.Column('prior_joining_date', sa.Date(), nullable=True))
    op.add_column('gym_payments', sa.Column('prior_anchor_day', sa.Integer(), nullable=True))


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_column('gym_payments', 'prior_anchor_day')
    op.drop_column('gym_payments', 'prior_joining_date')
    op.drop_column('gym_members', 'billing_anchor_day')
