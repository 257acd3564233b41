"""create membership tables

Revision ID: 1a6d0c3f8e72
Revises: 
Create Date: 2026-10-12 10:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1a6d0c3f8e72'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

member_status = sa.Enum('ACTIVE', 'INACTIVE', 'DELETED', name='memberstatus')
period_status = sa.Enum('ACTIVE', 'CLOSED', name='periodstatus')
payment_method = sa.Enum('CASH', 'CARD', 'UPI', 'BANK_TRANSFER', name='paymentmethod')
schedule_status = sa.Enum('PENDING', 'OVERDUE', 'PAID', name='paymentschedulestatus')
discount_type = sa.Enum('NONE', 'PERCENTAGE', 'FLAT', name='discounttype')
promo_type = sa.Enum('STANDARD', 'PROMOTIONAL', name='promotype')
history_type = sa.Enum(
    'ENROLLED', 'BASE_DATE_SHIFTED', 'PAYMENT_REVERSED', 'INITIAL_PAYMENT_REVERSED',
    'REACTIVATED', 'STATUS_CHANGED', name='memberhistorytype'
)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'gym_membership_plans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('base_duration_months', sa.Integer(), nullable=False),
        sa.Column('bonus_duration_months', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('discount_type', discount_type, nullable=False),
        sa.Column('discount_value', sa.Numeric(10, 2), nullable=False),
        sa.Column('final_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('promo_type', promo_type, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_gym_membership_plans')),
    )
    op.create_index(op.f('ix_gym_membership_plans_gym_id'), 'gym_membership_plans', ['gym_id'], unique=False)

    op.create_table(
        'gym_members',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('uuid', sa.String(length=36), nullable=False),
        sa.Column('gym_id', sa.String(length=64), nullable=False, comment='Tenant key'),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('status', member_status, nullable=False),
        sa.Column('first_joining_date', sa.Date(), nullable=False, comment='Tenure start, immutable'),
        sa.Column('joining_date', sa.Date(), nullable=False, comment="Billing anchor, its day-of-month is the charge day"),
        sa.Column('membership_plan', sa.String(length=100), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=True),
        sa.Column('plan_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('membership_end_date', sa.Date(), nullable=True),
        sa.Column('next_payment_due_date', sa.Date(), nullable=True),
        sa.Column('last_payment_date', sa.Date(), nullable=True),
        sa.Column('last_payment_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('total_payments_received', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_periods', sa.Integer(), nullable=False),
        sa.Column('current_period_id', sa.Integer(), nullable=True),
        sa.Column('deactivated_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['plan_id'], ['gym_membership_plans.id'],
                                name=op.f('fk_gym_members_plan_id_gym_membership_plans'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_gym_members')),
        sa.UniqueConstraint('gym_id', 'phone', name='uq_gym_members_gym_id_phone'),
    )
    op.create_index(op.f('ix_gym_members_uuid'), 'gym_members', ['uuid'], unique=True)
    op.create_index(op.f('ix_gym_members_gym_id'), 'gym_members', ['gym_id'], unique=False)
    op.create_index(op.f('ix_gym_members_status'), 'gym_members', ['status'], unique=False)
    op.create_index(op.f('ix_gym_members_next_payment_due_date'), 'gym_members', ['next_payment_due_date'], unique=False)

    op.create_table(
        'gym_membership_periods',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.String(length=64), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('period_number', sa.Integer(), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=True),
        sa.Column('plan_name', sa.String(length=100), nullable=False),
        sa.Column('plan_duration_months', sa.Integer(), nullable=False),
        sa.Column('bonus_months', sa.Integer(), nullable=False),
        sa.Column('plan_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('paid_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('next_payment_due', sa.Date(), nullable=False),
        sa.Column('status', period_status, nullable=False),
        sa.Column('end_reason', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['member_id'], ['gym_members.id'],
                                name=op.f('fk_gym_membership_periods_member_id_gym_members'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['plan_id'], ['gym_membership_plans.id'],
                                name=op.f('fk_gym_membership_periods_plan_id_gym_membership_plans'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_gym_membership_periods')),
        sa.UniqueConstraint('member_id', 'period_number', name='uq_gym_membership_periods_member_period'),
    )
    op.create_index(op.f('ix_gym_membership_periods_gym_id'), 'gym_membership_periods', ['gym_id'], unique=False)
    op.create_index(op.f('ix_gym_membership_periods_member_id'), 'gym_membership_periods', ['member_id'], unique=False)
    op.create_index(op.f('ix_gym_membership_periods_status'), 'gym_membership_periods', ['status'], unique=False)

    op.create_table(
        'gym_payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('uuid', sa.String(length=36), nullable=False),
        sa.Column('gym_id', sa.String(length=64), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_method', payment_method, nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False, comment='The cycle date this payment satisfies'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['member_id'], ['gym_members.id'],
                                name=op.f('fk_gym_payments_member_id_gym_members'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_gym_payments')),
    )
    op.create_index(op.f('ix_gym_payments_uuid'), 'gym_payments', ['uuid'], unique=True)
    op.create_index(op.f('ix_gym_payments_gym_id'), 'gym_payments', ['gym_id'], unique=False)
    op.create_index(op.f('ix_gym_payments_member_id'), 'gym_payments', ['member_id'], unique=False)
    op.create_index(op.f('ix_gym_payments_payment_date'), 'gym_payments', ['payment_date'], unique=False)

    op.create_table(
        'gym_payment_schedule',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.String(length=64), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('amount_due', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', schedule_status, nullable=False),
        sa.Column('paid_payment_id', sa.Integer(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['member_id'], ['gym_members.id'],
                                name=op.f('fk_gym_payment_schedule_member_id_gym_members'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['paid_payment_id'], ['gym_payments.id'],
                                name=op.f('fk_gym_payment_schedule_paid_payment_id_gym_payments'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_gym_payment_schedule')),
        sa.UniqueConstraint('member_id', name=op.f('uq_gym_payment_schedule_member_id')),
    )
    op.create_index(op.f('ix_gym_payment_schedule_gym_id'), 'gym_payment_schedule', ['gym_id'], unique=False)

    op.create_table(
        'gym_payment_schedule_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.String(length=64), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('schedule_id', sa.Integer(), nullable=True),
        sa.Column('old_due_date', sa.Date(), nullable=True),
        sa.Column('new_due_date', sa.Date(), nullable=True),
        sa.Column('old_status', sa.String(length=20), nullable=True),
        sa.Column('new_status', sa.String(length=20), nullable=True),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_gym_payment_schedule_history')),
    )
    op.create_index(op.f('ix_gym_payment_schedule_history_gym_id'), 'gym_payment_schedule_history', ['gym_id'], unique=False)
    op.create_index(op.f('ix_gym_payment_schedule_history_member_id'), 'gym_payment_schedule_history', ['member_id'], unique=False)

    op.create_table(
        'gym_member_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.String(length=64), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('change_type', history_type, nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['member_id'], ['gym_members.id'],
                                name=op.f('fk_gym_member_history_member_id_gym_members'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_gym_member_history')),
    )
    op.create_index(op.f('ix_gym_member_history_gym_id'), 'gym_member_history', ['gym_id'], unique=False)
    op.create_index(op.f('ix_gym_member_history_member_id'), 'gym_member_history', ['member_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('gym_member_history')
    op.drop_table('gym_payment_schedule_history')
    op.drop_table('gym_payment_schedule')
    op.drop_table('gym_payments')
    op.drop_table('gym_membership_periods')
    op.drop_table('gym_members')
    op.drop_table('gym_membership_plans')
    for enum_type in (history_type, promo_type, discount_type, schedule_status, payment_method, period_status, member_status):
        enum_type.drop(op.get_bind(), checkfirst=True)
