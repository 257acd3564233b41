# src/gymledger/schemas/billing/payment_schemas.py

from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from gymledger.models import PaymentMethod, PaymentScheduleStatus, MembershipPlanType

class PaymentCreate(BaseModel):
    member_id: int
    amount: Decimal = Field(..., ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_date: date
    due_date: Optional[date] = Field(None, description="Cycle date this payment satisfies. Defaults to payment_date.")
    plan_type: Optional[MembershipPlanType] = Field(None, description="Switches the member to this fixed plan.")
    notes: Optional[str] = None

    shift_base_date: bool = Field(False, description="Realign the member's billing anchor day.")
    new_anchor_day: Optional[int] = Field(None, ge=1, le=31, description="Explicit anchor day; defaults to payment_date's day.")

    @model_validator(mode='after')
    def check_anchor_requires_shift(self) -> 'PaymentCreate':
        if self.new_anchor_day is not None and not self.shift_base_date:
            raise ValueError("new_anchor_day is only meaningful together with shift_base_date.")
        return self

class PaymentRead(BaseModel):
    id: int
    uuid: str
    member_id: int
    amount: Decimal
    payment_method: PaymentMethod
    payment_date: date
    due_date: date
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class PaymentScheduleRead(BaseModel):
    id: int
    member_id: int
    due_date: date
    amount_due: Decimal
    status: PaymentScheduleStatus
    paid_payment_id: Optional[int] = None
    paid_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class PaymentDeletionResult(BaseModel):
    """Callers branch on this: the member row is never removed by a payment deletion."""
    member_deleted: bool = False
    member_deactivated: bool = False
    member_id: int
    reverted_due_date: Optional[date] = None
