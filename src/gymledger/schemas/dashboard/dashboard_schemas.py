# src/gymledger/schemas/dashboard/dashboard_schemas.py

from pydantic import BaseModel, Field
from typing import List
from datetime import date
from decimal import Decimal

class ExpiringMember(BaseModel):
    id: int
    full_name: str
    phone: str
    membership_plan: str
    plan_amount: Decimal
    membership_end_date: date
    days_until_expiry: int

class PendingPayment(BaseModel):
    id: int
    full_name: str
    phone: str
    membership_plan: str
    plan_amount: Decimal
    next_payment_due_date: date
    days_overdue: int

class DueTodaySummary(BaseModel):
    count: int = 0
    amount: Decimal = Decimal('0')
    member_ids: List[int] = Field(default_factory=list)
