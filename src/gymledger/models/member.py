# src/gymledger/models/member.py

import enum
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Enum, ForeignKey, Date, DateTime, Numeric, func, UniqueConstraint
)
from sqlalchemy.orm import relationship
from gymledger.db.base import Base
from gymledger.utils.id_generator import generate_uuid

class MemberStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"      # soft delete, handled outside the billing engine

class MembershipPlanType(str, enum.Enum):
    """Fixed-duration plan keys. Plans from the catalogue are referenced by `plan_id` instead."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half_yearly"
    ANNUAL = "annual"

class Member(Base):
    """
    Gym member - the billing anchor and the cached "what is owed next" state.
    `billing_anchor_day` is the charge day, kept unclamped so a 31st anchor
    survives short months; `joining_date` is the anchor date it was taken from.
    `first_joining_date` never moves.
    """
    __tablename__ = 'gym_members'
    __table_args__ = (
        UniqueConstraint('gym_id', 'phone', name='uq_gym_members_gym_id_phone'),
    )

    id = Column(Integer, primary_key=True)
    uuid = Column(String(36), default=generate_uuid, unique=True, index=True, nullable=False)
    gym_id = Column(String(64), nullable=False, index=True, comment="Tenant key")

    full_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False)
    email = Column(String(255), nullable=True)

    status = Column(Enum(MemberStatus), nullable=False, default=MemberStatus.ACTIVE, index=True)

    first_joining_date = Column(Date, nullable=False, comment="Tenure start, immutable")
    joining_date = Column(Date, nullable=False, comment="Date the billing anchor was taken from")
    billing_anchor_day = Column(Integer, nullable=True, comment="Charge day 1-31, unclamped")

    membership_plan = Column(String(100), nullable=False, default=MembershipPlanType.MONTHLY.value,
                             comment="Plan key (monthly/quarterly/...) or the catalogue plan name")
    plan_id = Column(Integer, ForeignKey('gym_membership_plans.id', ondelete='SET NULL'), nullable=True)
    plan_amount = Column(Numeric(10, 2), nullable=False, default=Decimal('0'))

    membership_end_date = Column(Date, nullable=True)
    next_payment_due_date = Column(Date, nullable=True, index=True)
    last_payment_date = Column(Date, nullable=True)
    last_payment_amount = Column(Numeric(10, 2), nullable=True)
    total_payments_received = Column(Numeric(12, 2), nullable=False, default=Decimal('0'))

    total_periods = Column(Integer, nullable=False, default=0)
    # Plain pointer, no FK: periods reference members, a cyclic FK buys nothing here.
    current_period_id = Column(Integer, nullable=True)

    deactivated_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    periods = relationship("MembershipPeriod", back_populates="member", cascade="all, delete-orphan",
                           order_by="MembershipPeriod.period_number")
    payments = relationship("Payment", back_populates="member", cascade="all, delete-orphan")

    @property
    def anchor_day(self) -> int:
        if self.billing_anchor_day is not None:
            return self.billing_anchor_day
        return self.joining_date.day

    @property
    def is_active(self) -> bool:
        return self.status == MemberStatus.ACTIVE
