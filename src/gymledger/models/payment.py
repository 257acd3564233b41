# src/gymledger/models/payment.py

import enum
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Enum, ForeignKey, Date, DateTime, Numeric, Text, func
)
from sqlalchemy.orm import relationship
from gymledger.db.base import Base
from gymledger.utils.id_generator import generate_uuid

class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"

class PaymentScheduleStatus(str, enum.Enum):
    PENDING = "pending"
    OVERDUE = "overdue"
    PAID = "paid"

class Payment(Base):
    """Money received. Never edited in place, only deleted (fully reversed)."""
    __tablename__ = 'gym_payments'

    id = Column(Integer, primary_key=True)
    uuid = Column(String(36), default=generate_uuid, unique=True, index=True, nullable=False)
    gym_id = Column(String(64), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey('gym_members.id', ondelete='CASCADE'), nullable=False, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False, default=PaymentMethod.CASH)
    payment_date = Column(Date, nullable=False, index=True)
    due_date = Column(Date, nullable=False, comment="The cycle date this payment satisfies")
    notes = Column(Text, nullable=True)

    # Set only when this payment moved the billing anchor; reversal restores them.
    prior_joining_date = Column(Date, nullable=True)
    prior_anchor_day = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    member = relationship("Member", back_populates="payments")

    @property
    def shifted_base_date(self) -> bool:
        return self.prior_anchor_day is not None

class PaymentSchedule(Base):
    """
    Single upcoming-obligation row per member. A cache of what is owed next,
    kept in step with Member.next_payment_due_date.
    """
    __tablename__ = 'gym_payment_schedule'

    id = Column(Integer, primary_key=True)
    gym_id = Column(String(64), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey('gym_members.id', ondelete='CASCADE'), nullable=False, unique=True)

    due_date = Column(Date, nullable=False)
    amount_due = Column(Numeric(10, 2), nullable=False, default=Decimal('0'))
    status = Column(Enum(PaymentScheduleStatus), nullable=False, default=PaymentScheduleStatus.PENDING)
    paid_payment_id = Column(Integer, ForeignKey('gym_payments.id', ondelete='SET NULL'), nullable=True)
    paid_at = Column(DateTime, nullable=True)

    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

class PaymentScheduleHistory(Base):
    """Best-effort trail of schedule row changes."""
    __tablename__ = 'gym_payment_schedule_history'

    id = Column(Integer, primary_key=True)
    gym_id = Column(String(64), nullable=False, index=True)
    member_id = Column(Integer, nullable=False, index=True)
    schedule_id = Column(Integer, nullable=True)

    old_due_date = Column(Date, nullable=True)
    new_due_date = Column(Date, nullable=True)
    old_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=True)
    reason = Column(String(255), nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
