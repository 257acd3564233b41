# src/gymledger/services/calendar/calendar_projector.py

"""
Projects active members onto a visible month.

Each member yields at most one event, placed on their anchor day inside the
viewed month. Payment history is never projected separately, so a member
cannot show up twice in the same month.
"""

from datetime import date
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from gymledger.models import Member, MemberStatus
from gymledger.schemas.calendar.calendar_schemas import CalendarEvent, CalendarReason, CalendarUrgency
from gymledger.services.exceptions import ValidationError
from gymledger.services.membership.cycle_calculator import anchored_date, is_multi_month, last_day_of_month

class MonthWindow(NamedTuple):
    start: date
    end: date

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end

def month_window(year: int, month: int) -> MonthWindow:
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}.")
    return MonthWindow(date(year, month, 1), date(year, month, last_day_of_month(year, month)))

def classify(
    member: Member,
    today: date,
    window: MonthWindow,
    plan_months: Optional[int] = None
) -> Tuple[CalendarUrgency, CalendarReason]:
    """First matching rule wins. Due-today is checked before expiry on purpose."""
    due = member.next_payment_due_date
    end = member.membership_end_date

    if (is_multi_month(member.membership_plan, plan_months)
            and end is not None and end >= today
            and member.last_payment_date is not None):
        return CalendarUrgency.PAID, CalendarReason.PAID
    if due is not None and due == today:
        return CalendarUrgency.TODAY, CalendarReason.DUE_TODAY
    if due is not None and due < today:
        return CalendarUrgency.OVERDUE, CalendarReason.OVERDUE
    if end is not None and end == today:
        return CalendarUrgency.TODAY, CalendarReason.EXPIRES_TODAY
    if due is not None and due in window and due > today:
        return CalendarUrgency.UPCOMING, CalendarReason.UPCOMING
    if end is not None and end < today:
        return CalendarUrgency.OVERDUE, CalendarReason.EXPIRED
    return CalendarUrgency.INFO, CalendarReason.ACTIVE

def project_month(
    members: Iterable[Member],
    year: int,
    month: int,
    today: date,
    window: Optional[MonthWindow] = None,
    plan_months: Optional[Dict[int, int]] = None
) -> List[CalendarEvent]:
    """
    One event per active member, keyed by (member id, anchor date).
    `window` narrows the visible range inside the month; `plan_months` maps
    catalogue plan ids to their total duration.
    """
    month_range = month_window(year, month)
    window = window or month_range
    plan_months = plan_months or {}

    events: Dict[str, CalendarEvent] = {}
    for member in members:
        if member.status != MemberStatus.ACTIVE or member.joining_date is None:
            continue
        anchor = anchored_date(year, month, member.anchor_day)
        if anchor not in window:
            continue

        urgency, reason = classify(member, today, window, plan_months.get(member.plan_id))
        event_id = f"{member.id}-{anchor.isoformat()}"
        events[event_id] = CalendarEvent(
            id=event_id,
            member_id=member.id,
            member_name=member.full_name,
            member_phone=member.phone,
            event_date=anchor,
            urgency=urgency,
            reason=reason,
            amount=member.plan_amount,
            plan_name=member.membership_plan,
            membership_end_date=member.membership_end_date,
            next_payment_due_date=member.next_payment_due_date,
            last_payment_date=member.last_payment_date,
            joining_date=member.joining_date,
        )
    return sorted(events.values(), key=lambda e: (e.event_date, e.member_name))
