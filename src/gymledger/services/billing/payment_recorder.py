# src/gymledger/services/billing/payment_recorder.py

import logging
from datetime import datetime
from decimal import Decimal

from gymledger.core.context import AppContext
from gymledger.dao.auditing.member_history_dao import MemberHistoryDao
from gymledger.dao.billing.payment_dao import PaymentDao
from gymledger.dao.billing.payment_schedule_dao import PaymentScheduleDao, PaymentScheduleHistoryDao
from gymledger.dao.member.member_dao import MemberDao
from gymledger.models import (
    Member, MemberHistory, MemberHistoryType, Payment, PaymentSchedule,
    PaymentScheduleHistory, PaymentScheduleStatus
)
from gymledger.schemas.billing.payment_schemas import PaymentCreate
from gymledger.services.base_service import BaseService, WriteSequence
from gymledger.services.auditing.audit_emitter import AuditAction, AuditCategory
from gymledger.services.exceptions import NotFoundError, PartialFailureError
from gymledger.services.membership.cycle_calculator import anchored_date, next_cycle_date
from gymledger.services.plan.plan_service import PlanService

logger = logging.getLogger(__name__)

class PaymentRecorderService(BaseService):
    """
    Records a payment and re-derives the member's due and end dates from it.
    Optionally realigns the member's billing anchor day first.
    """
    def __init__(self, context: AppContext):
        super().__init__(context)
        self.member_dao = MemberDao(context.db)
        self.payment_dao = PaymentDao(context.db)
        self.schedule_dao = PaymentScheduleDao(context.db)
        self.schedule_history_dao = PaymentScheduleHistoryDao(context.db)
        self.history_dao = MemberHistoryDao(context.db)
        self.plan_service = PlanService(context)

    async def record_payment(self, payment_in: PaymentCreate) -> Payment:
        gym_id = await self._require_gym_id()
        with self.backend_guard():
            member = await self.member_dao.get_for_gym(gym_id, payment_in.member_id)
        if not member:
            raise NotFoundError(f"Member {payment_in.member_id} not found.")
        try:
            with self.backend_guard():
                return await self._record(gym_id, member, payment_in)
        except PartialFailureError as e:
            self._report_partial_failure(gym_id, AuditCategory.PAYMENT, AuditAction.PAYMENT_CREATED, "payment", None, e)
            raise

    async def _record(self, gym_id: str, member: Member, payment_in: PaymentCreate) -> Payment:
        old_joining_date = member.joining_date
        old_anchor_day = member.anchor_day
        old_due_date = member.next_payment_due_date
        old_end_date = member.membership_end_date

        # 1. Anchor day, possibly shifted. Year and month of the old anchor are kept;
        #    joining_date is clamped but billing_anchor_day keeps the requested day.
        new_joining_date = None
        anchor_day = old_anchor_day
        if payment_in.shift_base_date:
            anchor_day = payment_in.new_anchor_day or payment_in.payment_date.day
            new_joining_date = anchored_date(old_joining_date.year, old_joining_date.month, anchor_day)

        # 2. Cycle length and next due date
        plan_key = payment_in.plan_type.value if payment_in.plan_type else None
        months = await self.plan_service.months_for_member(member, plan_override=plan_key)
        next_due = next_cycle_date(anchor_day, payment_in.payment_date, months)

        sequence = WriteSequence("record_payment", member.id)

        # 3. Payment row
        payment = Payment(
            gym_id=gym_id,
            member_id=member.id,
            amount=payment_in.amount,
            payment_method=payment_in.payment_method,
            payment_date=payment_in.payment_date,
            due_date=payment_in.due_date or payment_in.payment_date,
            notes=payment_in.notes,
        )
        if new_joining_date is not None:
            payment.prior_joining_date = old_joining_date
            payment.prior_anchor_day = old_anchor_day
        async with sequence.step("insert_payment"):
            await self.payment_dao.add(payment)

        # 4. Member row
        async with sequence.step(
            "update_member",
            failure_message=f"Payment {payment.id} was recorded but member {member.id} dates were not updated."
        ):
            member.membership_end_date = next_due
            member.next_payment_due_date = next_due
            member.last_payment_date = payment_in.payment_date
            member.last_payment_amount = payment_in.amount
            member.total_payments_received = (member.total_payments_received or Decimal('0')) + payment_in.amount
            if new_joining_date is not None:
                member.joining_date = new_joining_date
                member.billing_anchor_day = anchor_day
            if plan_key is not None and plan_key != member.membership_plan:
                member.membership_plan = plan_key
                member.plan_id = None
            await self.db.flush()

        # 5. Schedule row follows the member
        async with sequence.step("upsert_schedule"):
            schedule, old_schedule_due, old_schedule_status = await self._upsert_schedule(
                gym_id, member, next_due, payment
            )

        if new_joining_date is not None:
            await self._best_effort("member_history", lambda: self.history_dao.add(MemberHistory(
                gym_id=gym_id,
                member_id=member.id,
                change_type=MemberHistoryType.BASE_DATE_SHIFTED,
                old_values={"joining_date": old_joining_date.isoformat(), "anchor_day": old_anchor_day},
                new_values={"joining_date": new_joining_date.isoformat(), "anchor_day": anchor_day},
                description=f"Billing day moved from {old_anchor_day} to {anchor_day} with payment {payment.id}",
            )))
        await self._best_effort("schedule_history", lambda: self.schedule_history_dao.add(PaymentScheduleHistory(
            gym_id=gym_id,
            member_id=member.id,
            schedule_id=schedule.id,
            old_due_date=old_schedule_due,
            new_due_date=next_due,
            old_status=old_schedule_status,
            new_status=schedule.status.value,
            reason=f"payment {payment.id} recorded",
        )))

        logger.info(
            f"[PaymentRecorder] Payment {payment.id} of {payment.amount} recorded for member {member.id}; "
            f"next due {old_due_date} -> {next_due}."
        )
        self._emit(
            gym_id, AuditCategory.PAYMENT, AuditAction.PAYMENT_CREATED, "payment", payment.id,
            old_values={"next_payment_due_date": old_due_date, "membership_end_date": old_end_date},
            new_values={
                "amount": payment.amount,
                "payment_date": payment.payment_date,
                "next_payment_due_date": next_due,
                "membership_end_date": next_due,
            },
            metadata={
                "member_id": member.id,
                "months": months,
                "payment_method": payment.payment_method,
                "base_date_shifted": new_joining_date is not None,
            },
        )
        return payment

    async def _upsert_schedule(self, gym_id: str, member: Member, due_date, payment: Payment):
        schedule = await self.schedule_dao.get_for_member(member.id)
        if schedule is None:
            old_due, old_status = None, None
            schedule = PaymentSchedule(gym_id=gym_id, member_id=member.id)
            self.db.add(schedule)
        else:
            old_due, old_status = schedule.due_date, schedule.status.value
        schedule.due_date = due_date
        schedule.amount_due = member.plan_amount or Decimal('0')
        schedule.status = PaymentScheduleStatus.PENDING
        schedule.paid_payment_id = payment.id
        schedule.paid_at = datetime.utcnow()
        await self.db.flush()
        return schedule, old_due, old_status
