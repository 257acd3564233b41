# src/gymledger/models/auditing.py

import enum
from sqlalchemy import Column, Integer, String, Enum, ForeignKey, DateTime, Text, JSON, func
from gymledger.db.base import Base

class MemberHistoryType(str, enum.Enum):
    ENROLLED = "enrolled"
    BASE_DATE_SHIFTED = "base_date_shifted"
    PAYMENT_REVERSED = "payment_reversed"
    INITIAL_PAYMENT_REVERSED = "initial_payment_reversed"
    REACTIVATED = "reactivated"
    STATUS_CHANGED = "status_changed"

class MemberHistory(Base):
    """
    Append-only trail of member state transitions.
    The engine writes it and never reads it back.
    """
    __tablename__ = 'gym_member_history'

    id = Column(Integer, primary_key=True)
    gym_id = Column(String(64), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey('gym_members.id', ondelete='CASCADE'), nullable=False, index=True)

    change_type = Column(Enum(MemberHistoryType), nullable=False)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
