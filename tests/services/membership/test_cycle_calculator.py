# tests/services/membership/test_cycle_calculator.py

import pytest
from datetime import date

from gymledger.services.exceptions import ValidationError
from gymledger.services.membership.cycle_calculator import (
    anchored_date,
    coerce_date,
    compute_cycle,
    is_multi_month,
    membership_end_date,
    months_for_plan,
    next_cycle_date,
)

# ==============================================================================
# 1. Month-end clamping
# ==============================================================================

@pytest.mark.parametrize("from_date, expected", [
    (date(2024, 1, 31), date(2024, 2, 29)),   # leap year
    (date(2023, 1, 31), date(2023, 2, 28)),
    (date(2024, 3, 31), date(2024, 4, 30)),
    (date(2100, 1, 31), date(2100, 2, 28)),   # century, not a leap year
    (date(2000, 1, 31), date(2000, 2, 29)),
])
def test_anchor_31_clamps_to_end_of_shorter_month(from_date, expected):
    assert next_cycle_date(31, from_date, 1) == expected

def test_clamped_month_never_rolls_into_the_next():
    for months in range(0, 25):
        result = next_cycle_date(31, date(2024, 1, 31), months)
        expected_month = (1 + months - 1) % 12 + 1
        assert result.month == expected_month

def test_anchor_is_taken_from_the_argument_not_from_the_start_date():
    # Feb 29 as the start date must not pull the anchor down to 29
    assert next_cycle_date(31, date(2024, 2, 29), 1) == date(2024, 3, 31)
    assert next_cycle_date(29, date(2024, 2, 29), 1) == date(2024, 3, 29)

def test_year_rollover():
    assert next_cycle_date(15, date(2024, 11, 15), 3) == date(2025, 2, 15)
    assert next_cycle_date(31, date(2024, 12, 31), 2) == date(2025, 2, 28)
    assert next_cycle_date(1, date(2024, 6, 1), 12) == date(2025, 6, 1)

def test_zero_months_lands_on_anchor_in_the_same_month():
    assert next_cycle_date(31, date(2024, 2, 10), 0) == date(2024, 2, 29)
    assert next_cycle_date(5, date(2024, 2, 10), 0) == date(2024, 2, 5)

# ==============================================================================
# 2. Repeated advancement
# ==============================================================================

@pytest.mark.parametrize("anchor", [1, 15, 28, 29, 30, 31])
@pytest.mark.parametrize("months", [0, 1, 2, 3, 6, 12])
@pytest.mark.parametrize("start", [date(2023, 1, 31), date(2024, 1, 29), date(2024, 8, 30), date(2023, 12, 31)])
def test_two_steps_of_m_equal_one_step_of_2m(anchor, months, start):
    twice = next_cycle_date(anchor, next_cycle_date(anchor, start, months), months)
    once = next_cycle_date(anchor, start, 2 * months)
    assert twice == once

# ==============================================================================
# 3. Companions and plan table
# ==============================================================================

def test_membership_end_date_is_the_day_before_the_next_due_date():
    assert membership_end_date(date(2024, 3, 1)) == date(2024, 2, 29)
    cycle = compute_cycle(31, date(2024, 1, 31), 1)
    assert cycle.next_due_date == date(2024, 2, 29)
    assert cycle.membership_end_date == date(2024, 2, 28)

def test_anchored_date_clamps():
    assert anchored_date(2023, 2, 30) == date(2023, 2, 28)
    assert anchored_date(2024, 4, 31) == date(2024, 4, 30)
    assert anchored_date(2024, 5, 12) == date(2024, 5, 12)

def test_months_for_plan_table_and_fallback():
    assert months_for_plan("monthly") == 1
    assert months_for_plan("quarterly") == 3
    assert months_for_plan("half_yearly") == 6
    assert months_for_plan("ANNUAL") == 12
    assert months_for_plan("Gold 3+1") == 1
    assert months_for_plan(None) == 1

def test_is_multi_month_prefers_explicit_duration():
    assert is_multi_month("quarterly") is True
    assert is_multi_month("monthly") is False
    assert is_multi_month("Gold 3+1", plan_months=4) is True
    assert is_multi_month("quarterly", plan_months=1) is False

# ==============================================================================
# 4. Validation
# ==============================================================================

@pytest.mark.parametrize("anchor", [0, 32, -1, True])
def test_out_of_range_anchor_is_rejected(anchor):
    with pytest.raises(ValidationError):
        next_cycle_date(anchor, date(2024, 1, 1), 1)

def test_negative_months_are_rejected():
    with pytest.raises(ValidationError):
        next_cycle_date(10, date(2024, 1, 1), -1)

def test_coerce_date_accepts_iso_strings_and_rejects_garbage():
    assert coerce_date("2024-02-29") == date(2024, 2, 29)
    assert next_cycle_date(31, "2024-01-31", 1) == date(2024, 2, 29)
    with pytest.raises(ValidationError):
        coerce_date("2023-02-29")
    with pytest.raises(ValidationError):
        coerce_date("31/01/2024")
    with pytest.raises(ValidationError):
        coerce_date(20240131)
