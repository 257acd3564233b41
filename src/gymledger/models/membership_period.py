# src/gymledger/models/membership_period.py

import enum
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Enum, ForeignKey, Date, DateTime, Numeric, Text, func, UniqueConstraint
)
from sqlalchemy.orm import relationship
from gymledger.db.base import Base

class PeriodStatus(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"

class MembershipPeriod(Base):
    """
    One continuous paid stretch of a member. Immutable once closed;
    period_number is 1-based and never reused for the same member.
    """
    __tablename__ = 'gym_membership_periods'
    __table_args__ = (
        UniqueConstraint('member_id', 'period_number', name='uq_gym_membership_periods_member_period'),
    )

    id = Column(Integer, primary_key=True)
    gym_id = Column(String(64), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey('gym_members.id', ondelete='CASCADE'), nullable=False, index=True)
    period_number = Column(Integer, nullable=False)

    plan_id = Column(Integer, ForeignKey('gym_membership_plans.id', ondelete='SET NULL'), nullable=True)
    plan_name = Column(String(100), nullable=False)
    plan_duration_months = Column(Integer, nullable=False)
    bonus_months = Column(Integer, nullable=False, default=0)
    plan_amount = Column(Numeric(10, 2), nullable=False, default=Decimal('0'))
    paid_amount = Column(Numeric(10, 2), nullable=False, default=Decimal('0'))

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    next_payment_due = Column(Date, nullable=False)

    status = Column(Enum(PeriodStatus), nullable=False, default=PeriodStatus.ACTIVE, index=True)
    end_reason = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    closed_at = Column(DateTime, nullable=True)

    member = relationship("Member", back_populates="periods")
