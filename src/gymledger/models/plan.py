# src/gymledger/models/plan.py

import enum
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Enum, Boolean, DateTime, Numeric, Text, func
)
from gymledger.db.base import Base

class DiscountType(str, enum.Enum):
    NONE = "none"
    PERCENTAGE = "percentage"
    FLAT = "flat"

class PromoType(str, enum.Enum):
    STANDARD = "standard"
    PROMOTIONAL = "promotional"

class MembershipPlan(Base):
    """Per-gym plan catalogue. Bonus months extend the paid duration."""
    __tablename__ = 'gym_membership_plans'

    id = Column(Integer, primary_key=True)
    gym_id = Column(String(64), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    base_duration_months = Column(Integer, nullable=False)
    bonus_duration_months = Column(Integer, nullable=False, default=0)

    price = Column(Numeric(10, 2), nullable=False)
    discount_type = Column(Enum(DiscountType), nullable=False, default=DiscountType.NONE)
    discount_value = Column(Numeric(10, 2), nullable=False, default=Decimal('0'))
    final_price = Column(Numeric(10, 2), nullable=False)
    promo_type = Column(Enum(PromoType), nullable=False, default=PromoType.STANDARD)

    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    @property
    def total_duration_months(self) -> int:
        return (self.base_duration_months or 0) + (self.bonus_duration_months or 0)
