# tests/services/membership/test_member_service.py

import logging
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

from gymledger.dao.billing.payment_dao import PaymentDao
from gymledger.models import MemberStatus, MembershipPlanType, PaymentMethod, PeriodStatus
from gymledger.schemas.billing.payment_schemas import PaymentCreate
from gymledger.schemas.member.member_schemas import MemberCreate
from gymledger.services.auditing.audit_emitter import AuditAction
from gymledger.services.billing.payment_recorder import PaymentRecorderService
from gymledger.services.exceptions import NotFoundError, PartialFailureError, TenantNotResolvedError, ValidationError
from gymledger.services.membership.member_service import MemberService
from tests.conftest import OTHER_GYM_ID

pytestmark = pytest.mark.asyncio

async def test_create_member_opens_period_one_with_initial_payment(app_context, create_member, db_session, audit_emitter):
    member = await create_member(joining_date=date(2024, 1, 31), phone="9000011111")

    assert member.status == MemberStatus.ACTIVE
    assert member.first_joining_date == date(2024, 1, 31)
    assert member.total_periods == 1
    assert member.next_payment_due_date == date(2024, 2, 29)
    assert member.total_payments_received == Decimal("1000")

    payments = await PaymentDao(db_session).list_for_member(member.id)
    assert [(p.amount, p.payment_date, p.due_date) for p in payments] == [
        (Decimal("1000"), date(2024, 1, 31), date(2024, 1, 31))
    ]

    lookup = await MemberService(app_context).get_member_by_phone("9000011111")
    assert lookup.current_period.id == member.current_period_id
    assert lookup.current_period.period_number == 1
    assert lookup.current_period.status == PeriodStatus.ACTIVE
    assert lookup.current_period.next_payment_due == date(2024, 2, 29)
    assert lookup.current_period.end_date == date(2024, 2, 28)

    assert audit_emitter.actions()[-1] == AuditAction.MEMBER_CREATED

async def test_zero_amount_enrollment(create_member):
    member = await create_member(paid_amount=Decimal("0"))
    assert member.total_payments_received == Decimal("0")
    assert member.last_payment_amount == Decimal("0")
    assert member.next_payment_due_date is not None

async def test_enrollment_partial_failure_is_reported_once(app_context, audit_emitter, caplog):
    service = MemberService(app_context)
    service.recorder.schedule_dao.get_for_member = AsyncMock(side_effect=RuntimeError("schedule unavailable"))

    with caplog.at_level(logging.ERROR, logger="gymledger.services.base_service"):
        with pytest.raises(PartialFailureError) as exc_info:
            await service.create_member(MemberCreate(
                full_name="Asha Rao",
                phone="9000033333",
                joining_date=date(2024, 1, 10),
                plan_type=MembershipPlanType.MONTHLY,
                plan_amount=Decimal("1000"),
                payment_method=PaymentMethod.CASH,
            ))
    assert exc_info.value.step == "upsert_schedule"

    failed = [e for e in audit_emitter.events if not e.success]
    assert len(failed) == 1
    assert failed[0].metadata["step"] == "upsert_schedule"
    assert len([r for r in caplog.records if "Partial failure" in r.getMessage()]) == 1

async def test_duplicate_phone_in_same_gym_is_rejected(create_member, make_context):
    await create_member(phone="9000022222")
    with pytest.raises(ValidationError):
        await create_member(phone="9000022222")
    # another gym may reuse it
    other = await create_member(phone="9000022222", context=make_context(OTHER_GYM_ID))
    assert other.gym_id == OTHER_GYM_ID

async def test_get_member_with_payments(app_context, create_member):
    member = await create_member(joining_date=date(2024, 1, 10))
    await PaymentRecorderService(app_context).record_payment(PaymentCreate(
        member_id=member.id, amount=Decimal("1000"), payment_date=date(2024, 2, 10)
    ))
    detail = await MemberService(app_context).get_member_with_payments(member.id)
    assert [p.payment_date for p in detail.payments] == [date(2024, 2, 10), date(2024, 1, 10)]
    assert detail.schedule.due_date == date(2024, 3, 10)

async def test_update_member_status(app_context, create_member, audit_emitter):
    member = await create_member()
    service = MemberService(app_context)

    await service.update_member_status(member.id, MemberStatus.INACTIVE)
    assert member.status == MemberStatus.INACTIVE
    assert member.deactivated_at is not None
    event = audit_emitter.last(AuditAction.MEMBER_STATUS_CHANGED)
    assert (event.old_values["status"], event.new_values["status"]) == ("active", "inactive")

    await service.update_member_status(member.id, MemberStatus.ACTIVE)
    assert member.deactivated_at is None

    with pytest.raises(ValidationError):
        await service.update_member_status(member.id, MemberStatus.DELETED)

async def test_lookups_are_tenant_scoped(create_member, make_context):
    member = await create_member(phone="9000033333")
    other = MemberService(make_context(OTHER_GYM_ID))
    with pytest.raises(NotFoundError):
        await other.get_member(member.id)
    with pytest.raises(NotFoundError):
        await other.get_member_by_phone("9000033333")
    with pytest.raises(TenantNotResolvedError):
        await MemberService(make_context(None)).get_member(member.id)
