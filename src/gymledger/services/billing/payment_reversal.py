# src/gymledger/services/billing/payment_reversal.py

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from gymledger.core.context import AppContext
from gymledger.dao.auditing.member_history_dao import MemberHistoryDao
from gymledger.dao.billing.payment_dao import PaymentDao
from gymledger.dao.billing.payment_schedule_dao import PaymentScheduleDao, PaymentScheduleHistoryDao
from gymledger.dao.member.member_dao import MemberDao
from gymledger.dao.member.membership_period_dao import MembershipPeriodDao
from gymledger.models import (
    Member, MemberHistory, MemberHistoryType, MemberStatus, Payment, PaymentSchedule,
    PaymentScheduleHistory, PaymentScheduleStatus, PeriodStatus
)
from gymledger.schemas.billing.payment_schemas import PaymentDeletionResult
from gymledger.services.base_service import BaseService, WriteSequence
from gymledger.services.auditing.audit_emitter import AuditAction, AuditCategory
from gymledger.services.exceptions import NotFoundError, PartialFailureError
from gymledger.services.membership.cycle_calculator import next_cycle_date
from gymledger.services.plan.plan_service import PlanService

logger = logging.getLogger(__name__)

INITIAL_PAYMENT_REVERSED = "initial payment reversed"

class PaymentReversalService(BaseService):
    """
    Deletes a payment and undoes exactly the date and status effect it had.

    Two paths:
      - the member's only payment: the member is deactivated, never deleted,
        so the row stays addressable by id and phone for a later rejoin.
      - a renewal: the member rolls back to the cycle the preceding payment
        bought, or to the obligation the deleted payment was satisfying.
    """
    def __init__(self, context: AppContext):
        super().__init__(context)
        self.member_dao = MemberDao(context.db)
        self.payment_dao = PaymentDao(context.db)
        self.period_dao = MembershipPeriodDao(context.db)
        self.schedule_dao = PaymentScheduleDao(context.db)
        self.schedule_history_dao = PaymentScheduleHistoryDao(context.db)
        self.history_dao = MemberHistoryDao(context.db)
        self.plan_service = PlanService(context)

    async def delete_payment(self, payment_id: int) -> PaymentDeletionResult:
        gym_id = await self._require_gym_id()
        with self.backend_guard():
            payment = await self.payment_dao.get_for_gym(gym_id, payment_id)
            if not payment:
                raise NotFoundError(f"Payment {payment_id} not found.")
            member = await self.member_dao.get_for_gym(gym_id, payment.member_id)
            if not member:
                raise NotFoundError(f"Member {payment.member_id} for payment {payment_id} not found.")

            payment_count = await self.payment_dao.count_for_member(member.id)
            preceding = await self.payment_dao.get_preceding_payment(payment)
            is_latest = not await self.payment_dao.has_following_payment(payment)

        try:
            with self.backend_guard():
                if preceding is None and payment_count == 1:
                    return await self._reverse_only_payment(gym_id, member, payment)
                return await self._reverse_renewal(gym_id, member, payment, preceding, is_latest)
        except PartialFailureError as e:
            self._report_partial_failure(gym_id, AuditCategory.PAYMENT, AuditAction.PAYMENT_DELETED, "payment", payment_id, e)
            raise

    async def _reverse_only_payment(self, gym_id: str, member: Member, payment: Payment) -> PaymentDeletionResult:
        old_values = self._snapshot(member)
        payment_id, amount = payment.id, payment.amount
        sequence = WriteSequence("delete_payment", member.id)

        async with sequence.step("delete_payment"):
            await self.payment_dao.delete(payment)

        async with sequence.step("delete_schedule"):
            await self.schedule_dao.delete_for_member(member.id)

        async with sequence.step(
            "deactivate_member",
            failure_message=f"Payment {payment_id} deleted but member {member.id} not deactivated; manual follow-up required."
        ):
            now = datetime.utcnow()
            period = await self.period_dao.get_active_for_member(member.id)
            if period is not None:
                period.status = PeriodStatus.CLOSED
                period.end_reason = INITIAL_PAYMENT_REVERSED
                period.closed_at = now
            member.status = MemberStatus.INACTIVE
            member.deactivated_at = now
            member.total_payments_received = Decimal('0')
            member.membership_end_date = None
            member.next_payment_due_date = None
            member.last_payment_date = None
            member.last_payment_amount = None
            member.current_period_id = None
            await self.db.flush()

        new_values = self._snapshot(member)
        await self._best_effort("member_history", lambda: self.history_dao.add(MemberHistory(
            gym_id=gym_id,
            member_id=member.id,
            change_type=MemberHistoryType.INITIAL_PAYMENT_REVERSED,
            old_values=old_values,
            new_values=new_values,
            description=f"Only payment {payment_id} ({amount}) deleted; member deactivated, record kept for rejoin",
        )))

        logger.info(f"[PaymentReversal] Only payment {payment_id} of member {member.id} deleted; member deactivated.")
        self._emit(
            gym_id, AuditCategory.PAYMENT, AuditAction.PAYMENT_DELETED, "payment", payment_id,
            old_values={"amount": amount, **old_values}, new_values=new_values,
            metadata={"member_id": member.id, "only_payment": True},
        )
        self._emit(
            gym_id, AuditCategory.MEMBER, AuditAction.MEMBER_STATUS_CHANGED, "member", member.id,
            old_values={"status": old_values["status"]}, new_values={"status": MemberStatus.INACTIVE},
            metadata={"reason": INITIAL_PAYMENT_REVERSED, "payment_id": payment_id},
        )
        return PaymentDeletionResult(member_deleted=False, member_deactivated=True, member_id=member.id)

    async def _reverse_renewal(
        self,
        gym_id: str,
        member: Member,
        payment: Payment,
        preceding: Optional[Payment],
        is_latest: bool = True,
    ) -> PaymentDeletionResult:
        today = self.context.today()
        # A base-date shift is undone only by deleting the payment that made it;
        # later payments were billed from the shifted anchor.
        restore_anchor = payment.shifted_base_date and is_latest
        anchor_day = payment.prior_anchor_day if restore_anchor else member.anchor_day
        if preceding is not None:
            months = await self.plan_service.months_for_member(member)
            revert_date = next_cycle_date(anchor_day, preceding.due_date, months)
        else:
            revert_date = payment.due_date
        is_active = revert_date >= today

        old_values = self._snapshot(member)
        payment_id, amount = payment.id, payment.amount
        sequence = WriteSequence("delete_payment", member.id)

        async with sequence.step("update_member"):
            member.membership_end_date = revert_date
            member.next_payment_due_date = revert_date
            member.total_payments_received = max(
                (member.total_payments_received or Decimal('0')) - amount, Decimal('0')
            )
            member.last_payment_date = preceding.payment_date if preceding else None
            member.last_payment_amount = preceding.amount if preceding else None
            if restore_anchor:
                member.joining_date = payment.prior_joining_date
                member.billing_anchor_day = payment.prior_anchor_day
            if is_active:
                member.status = MemberStatus.ACTIVE
                member.deactivated_at = None
            elif member.status == MemberStatus.ACTIVE:
                member.status = MemberStatus.INACTIVE
                member.deactivated_at = datetime.utcnow()
            await self.db.flush()

        schedule_status = PaymentScheduleStatus.PENDING if is_active else PaymentScheduleStatus.OVERDUE
        async with sequence.step("update_schedule"):
            schedule, old_schedule_due, old_schedule_status = await self._revert_schedule(
                gym_id, member, revert_date, schedule_status
            )
        await self._best_effort("schedule_history", lambda: self.schedule_history_dao.add(PaymentScheduleHistory(
            gym_id=gym_id,
            member_id=member.id,
            schedule_id=schedule.id,
            old_due_date=old_schedule_due,
            new_due_date=revert_date,
            old_status=old_schedule_status,
            new_status=schedule_status.value,
            reason=f"payment {payment_id} deleted",
        )))

        async with sequence.step("delete_payment"):
            await self.payment_dao.delete(payment)

        new_values = self._snapshot(member)
        await self._best_effort("member_history", lambda: self.history_dao.add(MemberHistory(
            gym_id=gym_id,
            member_id=member.id,
            change_type=MemberHistoryType.PAYMENT_REVERSED,
            old_values=old_values,
            new_values=new_values,
            description=f"Payment {payment_id} ({amount}) deleted; due date reverted to {revert_date.isoformat()}",
        )))

        logger.info(
            f"[PaymentReversal] Payment {payment_id} of member {member.id} deleted; "
            f"due date reverted {old_values['next_payment_due_date']} -> {revert_date}."
        )
        self._emit(
            gym_id, AuditCategory.PAYMENT, AuditAction.PAYMENT_DELETED, "payment", payment_id,
            old_values={"amount": amount, **old_values}, new_values=new_values,
            metadata={
                "member_id": member.id,
                "only_payment": False,
                "had_preceding_payment": preceding is not None,
                "base_date_restored": restore_anchor,
            },
        )
        if old_values["status"] != member.status.value:
            self._emit(
                gym_id, AuditCategory.MEMBER, AuditAction.MEMBER_STATUS_CHANGED, "member", member.id,
                old_values={"status": old_values["status"]}, new_values={"status": member.status},
                metadata={"reason": "payment reversed", "payment_id": payment_id},
            )
        return PaymentDeletionResult(
            member_deleted=False, member_deactivated=False, member_id=member.id, reverted_due_date=revert_date
        )

    async def _revert_schedule(self, gym_id: str, member: Member, due_date: date, status: PaymentScheduleStatus):
        schedule = await self.schedule_dao.get_for_member(member.id)
        if schedule is None:
            # the single row is normally present; recreate it so it stays in step with the member
            old_due, old_status = None, None
            schedule = PaymentSchedule(gym_id=gym_id, member_id=member.id, amount_due=member.plan_amount or Decimal('0'))
            self.db.add(schedule)
        else:
            old_due, old_status = schedule.due_date, schedule.status.value
        schedule.due_date = due_date
        schedule.status = status
        schedule.paid_payment_id = None
        schedule.paid_at = None
        await self.db.flush()
        return schedule, old_due, old_status

    @staticmethod
    def _snapshot(member: Member) -> dict:
        return {
            "status": member.status.value,
            "next_payment_due_date": member.next_payment_due_date.isoformat() if member.next_payment_due_date else None,
            "membership_end_date": member.membership_end_date.isoformat() if member.membership_end_date else None,
            "total_payments_received": str(member.total_payments_received),
            "joining_date": member.joining_date.isoformat(),
            "anchor_day": member.anchor_day,
        }
