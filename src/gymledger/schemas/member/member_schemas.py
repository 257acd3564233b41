# src/gymledger/schemas/member/member_schemas.py

from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from gymledger.models import MemberStatus, MembershipPlanType, PaymentMethod, PeriodStatus
from gymledger.schemas.billing.payment_schemas import PaymentRead, PaymentScheduleRead

class PlanChoice(BaseModel):
    """Either a catalogue plan id or one of the fixed plan keys."""
    plan_id: Optional[int] = None
    plan_type: Optional[MembershipPlanType] = None

    @model_validator(mode='after')
    def check_one_plan(self):
        if self.plan_id is None and self.plan_type is None:
            raise ValueError("Either plan_id or plan_type is required.")
        if self.plan_id is not None and self.plan_type is not None:
            raise ValueError("Provide plan_id or plan_type, not both.")
        return self

class MemberCreate(PlanChoice):
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=3, max_length=32)
    email: Optional[str] = None
    joining_date: date
    plan_amount: Optional[Decimal] = Field(None, ge=0, description="Defaults to the plan's final price.")
    paid_amount: Optional[Decimal] = Field(None, ge=0, description="Initial payment, may be zero. Defaults to plan_amount.")
    payment_method: PaymentMethod = PaymentMethod.CASH

class RejoinRequest(PlanChoice):
    start_date: date
    paid_amount: Decimal = Field(..., ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None

class MemberStatusUpdate(BaseModel):
    status: MemberStatus

class MemberRead(BaseModel):
    id: int
    uuid: str
    full_name: str
    phone: str
    email: Optional[str] = None
    status: MemberStatus
    first_joining_date: date
    joining_date: date
    anchor_day: int
    membership_plan: str
    plan_id: Optional[int] = None
    plan_amount: Decimal
    membership_end_date: Optional[date] = None
    next_payment_due_date: Optional[date] = None
    last_payment_date: Optional[date] = None
    last_payment_amount: Optional[Decimal] = None
    total_payments_received: Decimal
    total_periods: int
    current_period_id: Optional[int] = None
    deactivated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class MembershipPeriodRead(BaseModel):
    id: int
    period_number: int
    plan_name: str
    plan_duration_months: int
    bonus_months: int
    paid_amount: Decimal
    start_date: date
    end_date: date
    next_payment_due: date
    status: PeriodStatus
    end_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class MemberWithPeriods(BaseModel):
    member: MemberRead
    current_period: Optional[MembershipPeriodRead] = None
    periods: List[MembershipPeriodRead] = Field(default_factory=list)

class MemberWithPayments(BaseModel):
    member: MemberRead
    payments: List[PaymentRead] = Field(default_factory=list)
    schedule: Optional[PaymentScheduleRead] = None

class RejoinResult(BaseModel):
    member: MemberRead
    period: MembershipPeriodRead
    payment: PaymentRead
