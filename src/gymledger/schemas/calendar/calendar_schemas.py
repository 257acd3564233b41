# src/gymledger/schemas/calendar/calendar_schemas.py

import enum
from pydantic import BaseModel
from typing import Optional
from datetime import date
from decimal import Decimal

class CalendarUrgency(str, enum.Enum):
    OVERDUE = "overdue"
    TODAY = "today"
    UPCOMING = "upcoming"
    PAID = "paid"
    INFO = "info"

class CalendarReason(str, enum.Enum):
    """Which classification rule matched. Two rules can share one urgency."""
    PAID = "paid"
    DUE_TODAY = "due_today"
    OVERDUE = "overdue"
    EXPIRES_TODAY = "expires_today"
    UPCOMING = "upcoming"
    EXPIRED = "expired"
    ACTIVE = "active"

class CalendarEvent(BaseModel):
    id: str
    member_id: int
    member_name: str
    member_phone: str
    event_date: date
    urgency: CalendarUrgency
    reason: CalendarReason
    amount: Optional[Decimal] = None
    plan_name: Optional[str] = None
    membership_end_date: Optional[date] = None
    next_payment_due_date: Optional[date] = None
    last_payment_date: Optional[date] = None
    joining_date: date
