# src/gymledger/services/membership/cycle_calculator.py

"""
Billing cycle arithmetic.

Every due date and end date in the engine is derived here. The rule is:
add N calendar months to a start date, then land on the member's anchor day,
clamped to the last day of the target month. The anchor day is always passed
in explicitly; it is never inferred from the start date, otherwise a member
anchored on the 31st would drift to the 29th after one February.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import NamedTuple, Optional, Union

from gymledger.services.exceptions import ValidationError

# Fixed durations used when a member has no catalogue plan (or its lookup fails).
PLAN_MONTHS = {
    "monthly": 1,
    "quarterly": 3,
    "half_yearly": 6,
    "annual": 12,
}

MULTI_MONTH_PLANS = frozenset({"quarterly", "half_yearly", "annual"})

class CycleDates(NamedTuple):
    next_due_date: date
    membership_end_date: date

def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]

def anchored_date(year: int, month: int, anchor_day: int) -> date:
    """The anchor day inside (year, month), clamped to the month's length."""
    return date(year, month, min(anchor_day, last_day_of_month(year, month)))

def next_cycle_date(anchor_day: int, from_date: date, months_to_add: int) -> date:
    """
    Adds `months_to_add` calendar months to `from_date` and sets the day to
    min(anchor_day, last day of the resulting month). Pure and deterministic.

    >>> next_cycle_date(31, date(2024, 1, 31), 1)
    datetime.date(2024, 2, 29)
    >>> next_cycle_date(31, date(2024, 2, 29), 1)
    datetime.date(2024, 3, 31)
    """
    if not isinstance(anchor_day, int) or isinstance(anchor_day, bool) or not 1 <= anchor_day <= 31:
        raise ValidationError(f"Anchor day must be an integer between 1 and 31, got {anchor_day!r}.")
    if months_to_add < 0:
        raise ValidationError(f"Months to add must not be negative, got {months_to_add}.")
    from_date = coerce_date(from_date)

    month_index = from_date.month - 1 + months_to_add
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    return anchored_date(year, month, anchor_day)

def membership_end_date(next_due_date: date) -> date:
    """The inclusive last day of a cycle: the day before the next one starts."""
    return next_due_date - timedelta(days=1)

def compute_cycle(anchor_day: int, start_date: date, months_to_add: int) -> CycleDates:
    next_due = next_cycle_date(anchor_day, start_date, months_to_add)
    return CycleDates(next_due_date=next_due, membership_end_date=membership_end_date(next_due))

def months_for_plan(plan_key: Optional[str]) -> int:
    """Fixed-table duration for a plan key. Unknown keys bill monthly."""
    if plan_key is None:
        return 1
    return PLAN_MONTHS.get(str(plan_key).lower(), 1)

def is_multi_month(plan_key: Optional[str], plan_months: Optional[int] = None) -> bool:
    if plan_months is not None:
        return plan_months > 1
    return plan_key is not None and str(plan_key).lower() in MULTI_MONTH_PLANS

def coerce_date(value: Union[date, datetime, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise ValidationError(f"Malformed date: {value!r}. Expected YYYY-MM-DD.")
    raise ValidationError(f"Expected a date, got {type(value).__name__}.")
