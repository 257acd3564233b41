# src/gymledger/services/membership/rejoin_service.py

import logging
from datetime import datetime
from decimal import Decimal

from gymledger.core.context import AppContext
from gymledger.dao.auditing.member_history_dao import MemberHistoryDao
from gymledger.dao.billing.payment_dao import PaymentDao
from gymledger.dao.billing.payment_schedule_dao import PaymentScheduleDao
from gymledger.dao.member.member_dao import MemberDao
from gymledger.dao.member.membership_period_dao import MembershipPeriodDao
from gymledger.models import (
    MemberHistory, MemberHistoryType, MemberStatus, MembershipPeriod, Payment,
    PaymentSchedule, PaymentScheduleStatus, PeriodStatus
)
from gymledger.schemas.member.member_schemas import RejoinRequest, RejoinResult, MemberRead, MembershipPeriodRead
from gymledger.schemas.billing.payment_schemas import PaymentRead
from gymledger.services.base_service import BaseService, WriteSequence
from gymledger.services.auditing.audit_emitter import AuditAction, AuditCategory
from gymledger.services.exceptions import AlreadyActiveError, NotFoundError, PartialFailureError
from gymledger.services.membership.cycle_calculator import compute_cycle
from gymledger.services.plan.plan_service import PlanService

logger = logging.getLogger(__name__)

class RejoinService(BaseService):
    """
    Brings an inactive member back on a fresh membership period.

    This handler is the only writer of the member's dates on rejoin: the cycle
    is derived once from the new start date, and the start date becomes the
    new billing anchor. Nothing in the store recalculates dates on insert.
    """
    def __init__(self, context: AppContext):
        super().__init__(context)
        self.member_dao = MemberDao(context.db)
        self.period_dao = MembershipPeriodDao(context.db)
        self.payment_dao = PaymentDao(context.db)
        self.schedule_dao = PaymentScheduleDao(context.db)
        self.history_dao = MemberHistoryDao(context.db)
        self.plan_service = PlanService(context)

    async def rejoin_member(self, member_id: int, rejoin_in: RejoinRequest) -> RejoinResult:
        gym_id = await self._require_gym_id()
        with self.backend_guard():
            member = await self.member_dao.get_for_gym(gym_id, member_id)
        if not member:
            raise NotFoundError(f"Member {member_id} not found.")
        if member.status == MemberStatus.ACTIVE:
            raise AlreadyActiveError(f"Member {member_id} is already active.")

        config = await self.plan_service.resolve_plan_config(rejoin_in.plan_id, rejoin_in.plan_type)
        start_date = rejoin_in.start_date
        cycle = compute_cycle(start_date.day, start_date, config.total_months)
        plan_amount = config.price if config.price is not None else rejoin_in.paid_amount

        old_values = {
            "status": member.status.value,
            "anchor_day": member.anchor_day,
            "joining_date": member.joining_date.isoformat(),
            "next_payment_due_date": member.next_payment_due_date.isoformat() if member.next_payment_due_date else None,
            "membership_end_date": member.membership_end_date.isoformat() if member.membership_end_date else None,
            "membership_plan": member.membership_plan,
            "total_periods": member.total_periods,
        }
        sequence = WriteSequence("rejoin_member", member.id)

        try:
            with self.backend_guard():
                # Numbers are never reused, even if total_periods drifted from the period rows.
                period_number = max(await self.period_dao.max_period_number(member.id), member.total_periods or 0) + 1
                now = datetime.utcnow()

                async with sequence.step("open_period"):
                    stale = await self.period_dao.get_active_for_member(member.id)
                    if stale is not None:
                        stale.status = PeriodStatus.CLOSED
                        stale.end_reason = stale.end_reason or "superseded by rejoin"
                        stale.closed_at = now
                        await self.db.flush()
                    period = MembershipPeriod(
                        gym_id=gym_id,
                        member_id=member.id,
                        period_number=period_number,
                        plan_id=config.plan_id,
                        plan_name=config.name,
                        plan_duration_months=config.base_months,
                        bonus_months=config.bonus_months,
                        plan_amount=plan_amount,
                        paid_amount=rejoin_in.paid_amount,
                        start_date=start_date,
                        end_date=cycle.membership_end_date,
                        next_payment_due=cycle.next_due_date,
                        status=PeriodStatus.ACTIVE,
                        notes=rejoin_in.notes,
                    )
                    await self.period_dao.add(period)

                payment = Payment(
                    gym_id=gym_id,
                    member_id=member.id,
                    amount=rejoin_in.paid_amount,
                    payment_method=rejoin_in.payment_method,
                    payment_date=start_date,
                    due_date=start_date,
                    notes=f"Rejoin - Period #{period_number}" + (f" - {rejoin_in.notes}" if rejoin_in.notes else ""),
                )
                async with sequence.step("insert_payment"):
                    await self.payment_dao.add(payment)

                async with sequence.step(
                    "update_member",
                    failure_message=f"Period #{period_number} and payment {payment.id} were written "
                                    f"but member {member.id} was not reactivated."
                ):
                    member.status = MemberStatus.ACTIVE
                    member.membership_plan = config.name
                    member.plan_id = config.plan_id
                    member.plan_amount = plan_amount
                    member.joining_date = start_date
                    member.billing_anchor_day = start_date.day
                    member.membership_end_date = cycle.membership_end_date
                    member.next_payment_due_date = cycle.next_due_date
                    member.last_payment_date = start_date
                    member.last_payment_amount = rejoin_in.paid_amount
                    member.total_payments_received = (member.total_payments_received or Decimal('0')) + rejoin_in.paid_amount
                    member.current_period_id = period.id
                    member.total_periods = period_number
                    member.deactivated_at = None
                    await self.db.flush()

                async with sequence.step("upsert_schedule"):
                    schedule = await self.schedule_dao.get_for_member(member.id)
                    if schedule is None:
                        schedule = PaymentSchedule(gym_id=gym_id, member_id=member.id)
                        self.db.add(schedule)
                    schedule.due_date = cycle.next_due_date
                    schedule.amount_due = plan_amount
                    schedule.status = PaymentScheduleStatus.PENDING
                    schedule.paid_payment_id = None
                    schedule.paid_at = None
                    await self.db.flush()
        except PartialFailureError as e:
            self._report_partial_failure(gym_id, AuditCategory.MEMBER, AuditAction.MEMBER_STATUS_CHANGED, "member", member.id, e)
            raise

        new_values = {
            "status": MemberStatus.ACTIVE.value,
            "anchor_day": start_date.day,
            "joining_date": start_date.isoformat(),
            "next_payment_due_date": cycle.next_due_date.isoformat(),
            "membership_end_date": cycle.membership_end_date.isoformat(),
            "membership_plan": config.name,
            "total_periods": period_number,
        }
        await self._best_effort("member_history", lambda: self.history_dao.add(MemberHistory(
            gym_id=gym_id,
            member_id=member.id,
            change_type=MemberHistoryType.REACTIVATED,
            old_values=old_values,
            new_values=new_values,
            description=f"Rejoined on {config.name} as period #{period_number}; billing day "
                        f"{old_values['anchor_day']} -> {start_date.day}",
        )))

        logger.info(f"[RejoinService] Member {member.id} rejoined as period #{period_number}, next due {cycle.next_due_date}.")
        self._emit(
            gym_id, AuditCategory.MEMBER, AuditAction.MEMBER_STATUS_CHANGED, "member", member.id,
            old_values=old_values, new_values=new_values,
            metadata={"reason": "rejoined", "period_number": period_number, "period_id": period.id},
        )
        self._emit(
            gym_id, AuditCategory.PAYMENT, AuditAction.PAYMENT_CREATED, "payment", payment.id,
            new_values={"amount": payment.amount, "payment_date": payment.payment_date},
            metadata={"member_id": member.id, "rejoin": True, "payment_method": payment.payment_method},
        )
        return RejoinResult(
            member=MemberRead.model_validate(member),
            period=MembershipPeriodRead.model_validate(period),
            payment=PaymentRead.model_validate(payment),
        )
