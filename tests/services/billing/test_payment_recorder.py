# tests/services/billing/test_payment_recorder.py

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock
from sqlalchemy.exc import OperationalError

from gymledger.dao.auditing.member_history_dao import MemberHistoryDao
from gymledger.dao.billing.payment_dao import PaymentDao
from gymledger.dao.billing.payment_schedule_dao import PaymentScheduleDao
from gymledger.models import MemberHistoryType, MembershipPlanType, PaymentScheduleStatus
from gymledger.schemas.billing.payment_schemas import PaymentCreate
from gymledger.schemas.plan.plan_schemas import PlanCreate
from gymledger.services.auditing.audit_emitter import AuditAction
from gymledger.services.billing.payment_recorder import PaymentRecorderService
from gymledger.services.exceptions import BackendUnavailableError, NotFoundError, PartialFailureError
from gymledger.services.plan.plan_service import PlanService
from tests.conftest import OTHER_GYM_ID

pytestmark = pytest.mark.asyncio

class FailingPlanLookup:
    def __init__(self):
        self.requested = []

    async def get_plan_duration(self, plan_id: int):
        self.requested.append(plan_id)
        raise NotFoundError(f"Plan {plan_id} not found.")

# ==============================================================================
# 1. Anchor-day scenario
# ==============================================================================

async def test_member_joining_on_the_31st_keeps_the_31st(app_context, create_member):
    """
    Joins 2024-01-31 monthly: first due 2024-02-29 (leap year). Paying on
    2024-02-29 moves the next due date to 2024-03-31, not 2024-03-29.
    """
    member = await create_member(joining_date=date(2024, 1, 31))
    assert member.next_payment_due_date == date(2024, 2, 29)

    service = PaymentRecorderService(app_context)
    await service.record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 2, 29)
    ))
    assert member.next_payment_due_date == date(2024, 3, 31)
    assert member.membership_end_date == date(2024, 3, 31)
    assert member.joining_date == date(2024, 1, 31)

    await service.record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 3, 31)
    ))
    assert member.next_payment_due_date == date(2024, 4, 30)

async def test_record_payment_updates_member_and_schedule(app_context, create_member, db_session, audit_emitter):
    member = await create_member(joining_date=date(2024, 1, 10))
    service = PaymentRecorderService(app_context)

    payment = await service.record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1200"), payment_date=date(2024, 2, 12), notes="late"
    ))

    assert payment.id is not None
    assert payment.due_date == date(2024, 2, 12)   # defaults to payment_date
    assert member.next_payment_due_date == date(2024, 3, 10)
    assert member.last_payment_date == date(2024, 2, 12)
    assert member.last_payment_amount == Decimal("1200")
    assert member.total_payments_received == Decimal("2200")

    schedule = await PaymentScheduleDao(db_session).get_for_member(member.id)
    assert schedule.due_date == date(2024, 3, 10)
    assert schedule.status == PaymentScheduleStatus.PENDING
    assert schedule.paid_payment_id == payment.id

    event = audit_emitter.last(AuditAction.PAYMENT_CREATED)
    assert event.resource_id == str(payment.id)
    assert event.success is True
    assert event.new_values["next_payment_due_date"] == "2024-03-10"

async def test_explicit_due_date_is_stored(app_context, create_member):
    member = await create_member(joining_date=date(2024, 1, 10))
    payment = await PaymentRecorderService(app_context).record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 2, 12), due_date=date(2024, 2, 10)
    ))
    assert payment.due_date == date(2024, 2, 10)

# ==============================================================================
# 2. Plan resolution
# ==============================================================================

async def test_plan_override_switches_plan_and_duration(app_context, create_member):
    member = await create_member(joining_date=date(2024, 1, 10))
    await PaymentRecorderService(app_context).record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("2700"), payment_date=date(2024, 2, 10),
        plan_type=MembershipPlanType.QUARTERLY
    ))
    assert member.membership_plan == "quarterly"
    assert member.next_payment_due_date == date(2024, 5, 10)

async def test_catalogue_plan_uses_base_plus_bonus_months(app_context, create_member):
    plan = await PlanService(app_context).create_plan(PlanCreate(
        name="Summer 3+1", base_duration_months=3, bonus_duration_months=1, base_price=Decimal("3000")
    ))
    member = await create_member(joining_date=date(2024, 1, 31), plan_type=None, plan_id=plan.id)
    assert member.membership_plan == "Summer 3+1"
    assert member.next_payment_due_date == date(2024, 5, 31)

async def test_plan_lookup_failure_falls_back_to_fixed_table(make_context, create_member):
    failing_lookup = FailingPlanLookup()
    context = make_context(plan_lookup=failing_lookup)

    member = await create_member(joining_date=date(2024, 1, 10), context=context)
    member.plan_id = 99
    member.membership_plan = "quarterly"

    await PaymentRecorderService(context).record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 2, 10)
    ))
    assert failing_lookup.requested == [99]
    assert member.next_payment_due_date == date(2024, 5, 10)

# ==============================================================================
# 3. Base-date shift
# ==============================================================================

async def test_shift_base_date_moves_anchor_to_payment_day(app_context, create_member, db_session):
    member = await create_member(joining_date=date(2024, 1, 31))
    await PaymentRecorderService(app_context).record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 2, 5), shift_base_date=True
    ))
    assert member.joining_date == date(2024, 1, 5)
    assert member.first_joining_date == date(2024, 1, 31)
    assert member.next_payment_due_date == date(2024, 3, 5)

    history = await MemberHistoryDao(db_session).get_list(
        where={"member_id": member.id, "change_type": MemberHistoryType.BASE_DATE_SHIFTED}
    )
    assert len(history) == 1
    assert history[0].old_values["anchor_day"] == 31
    assert history[0].new_values["anchor_day"] == 5

async def test_shift_base_date_to_explicit_anchor_is_clamped(app_context, create_member):
    member = await create_member(joining_date=date(2024, 2, 10))
    await PaymentRecorderService(app_context).record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 3, 10),
        shift_base_date=True, new_anchor_day=31
    ))
    # February has no 31st; joining_date is clamped while the anchor keeps 31
    assert member.joining_date == date(2024, 2, 29)
    assert member.billing_anchor_day == 31
    assert member.anchor_day == 31
    assert member.next_payment_due_date == date(2024, 4, 30)

async def test_shifted_31st_anchor_survives_the_next_payment(app_context, create_member):
    member = await create_member(joining_date=date(2024, 2, 10))
    service = PaymentRecorderService(app_context)
    await service.record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 3, 10),
        shift_base_date=True, new_anchor_day=31
    ))

    await service.record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 4, 30)
    ))
    assert member.next_payment_due_date == date(2024, 5, 31)
    assert member.membership_end_date == date(2024, 5, 31)

async def test_shifting_payment_keeps_the_prior_anchor(app_context, create_member):
    member = await create_member(joining_date=date(2024, 1, 15))
    service = PaymentRecorderService(app_context)
    plain = await service.record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 2, 15)
    ))
    shifted = await service.record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 3, 20), shift_base_date=True
    ))
    assert plain.shifted_base_date is False
    assert shifted.shifted_base_date is True
    assert shifted.prior_anchor_day == 15
    assert shifted.prior_joining_date == date(2024, 1, 15)

async def test_failed_history_write_does_not_abort_payment(app_context, create_member):
    member = await create_member(joining_date=date(2024, 1, 31))
    service = PaymentRecorderService(app_context)
    service.history_dao.add = AsyncMock(side_effect=RuntimeError("history table locked"))

    payment = await service.record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 2, 5), shift_base_date=True
    ))
    assert payment.id is not None
    assert member.next_payment_due_date == date(2024, 3, 5)

# ==============================================================================
# 4. Errors
# ==============================================================================

async def test_unknown_member_is_not_found(app_context):
    with pytest.raises(NotFoundError):
        await PaymentRecorderService(app_context).record_payment(PaymentCreate(
            member_id=404, amount=Decimal("10"), payment_date=date(2024, 2, 5)
        ))

async def test_member_of_another_gym_is_not_found(make_context, create_member):
    member = await create_member()
    with pytest.raises(NotFoundError):
        await PaymentRecorderService(make_context(OTHER_GYM_ID)).record_payment(PaymentCreate(
            member_id=member.id, amount=Decimal("10"), payment_date=date(2024, 2, 5)
        ))

async def test_schedule_failure_after_payment_insert_is_partial(app_context, create_member, audit_emitter):
    member = await create_member(joining_date=date(2024, 1, 10))
    service = PaymentRecorderService(app_context)
    service.schedule_dao.get_for_member = AsyncMock(side_effect=RuntimeError("schedule unavailable"))

    with pytest.raises(PartialFailureError) as exc_info:
        await service.record_payment(PaymentCreate(
            member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 2, 10)
        ))
    assert exc_info.value.step == "upsert_schedule"
    assert exc_info.value.member_id == member.id

    failed = [e for e in audit_emitter.events if not e.success]
    assert failed and failed[-1].action == AuditAction.PAYMENT_CREATED
    assert failed[-1].metadata["step"] == "upsert_schedule"

async def test_store_outage_on_first_write_is_backend_unavailable(app_context, create_member):
    member = await create_member(joining_date=date(2024, 1, 10))
    service = PaymentRecorderService(app_context)
    service.payment_dao.add = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("connection refused")))

    with pytest.raises(BackendUnavailableError):
        await service.record_payment(PaymentCreate(
            member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 2, 10)
        ))
    assert await PaymentDao(app_context.db).count_for_member(member.id) == 1
