# src/gymledger/services/membership/member_service.py

import logging
from datetime import datetime
from decimal import Decimal

from gymledger.core.context import AppContext
from gymledger.dao.auditing.member_history_dao import MemberHistoryDao
from gymledger.dao.billing.payment_dao import PaymentDao
from gymledger.dao.billing.payment_schedule_dao import PaymentScheduleDao
from gymledger.dao.member.member_dao import MemberDao
from gymledger.dao.member.membership_period_dao import MembershipPeriodDao
from gymledger.models import Member, MemberHistory, MemberHistoryType, MemberStatus, MembershipPeriod, PeriodStatus
from gymledger.schemas.billing.payment_schemas import PaymentCreate, PaymentRead, PaymentScheduleRead
from gymledger.schemas.member.member_schemas import (
    MemberCreate, MemberRead, MembershipPeriodRead, MemberWithPayments, MemberWithPeriods
)
from gymledger.services.base_service import BaseService, WriteSequence
from gymledger.services.auditing.audit_emitter import AuditAction, AuditCategory
from gymledger.services.billing.payment_recorder import PaymentRecorderService
from gymledger.services.exceptions import NotFoundError, PartialFailureError, ValidationError
from gymledger.services.membership.cycle_calculator import compute_cycle
from gymledger.services.plan.plan_service import PlanService

logger = logging.getLogger(__name__)

class MemberService(BaseService):
    def __init__(self, context: AppContext):
        super().__init__(context)
        self.dao = MemberDao(context.db)
        self.period_dao = MembershipPeriodDao(context.db)
        self.payment_dao = PaymentDao(context.db)
        self.schedule_dao = PaymentScheduleDao(context.db)
        self.history_dao = MemberHistoryDao(context.db)
        self.plan_service = PlanService(context)
        self.recorder = PaymentRecorderService(context)

    async def create_member(self, member_in: MemberCreate) -> Member:
        """
        Enrolls a member: the member row, period #1 and the initial payment
        (possibly zero). The first cycle is derived by the payment recorder,
        so enrollment and renewals share one date calculation.
        """
        gym_id = await self._require_gym_id()
        with self.backend_guard():
            if await self.dao.get_by_phone(gym_id, member_in.phone):
                raise ValidationError(f"A member with phone {member_in.phone} already exists.")

        config = await self.plan_service.resolve_plan_config(member_in.plan_id, member_in.plan_type)
        plan_amount = member_in.plan_amount
        if plan_amount is None:
            plan_amount = config.price if config.price is not None else Decimal('0')
        paid_amount = member_in.paid_amount if member_in.paid_amount is not None else plan_amount
        joining_date = member_in.joining_date
        cycle = compute_cycle(joining_date.day, joining_date, config.total_months)

        member = Member(
            gym_id=gym_id,
            full_name=member_in.full_name,
            phone=member_in.phone,
            email=member_in.email,
            status=MemberStatus.ACTIVE,
            first_joining_date=joining_date,
            joining_date=joining_date,
            billing_anchor_day=joining_date.day,
            membership_plan=config.name,
            plan_id=config.plan_id,
            plan_amount=plan_amount,
            total_payments_received=Decimal('0'),
            total_periods=1,
        )
        sequence = WriteSequence("create_member")
        try:
            with self.backend_guard():
                async with sequence.step("insert_member"):
                    await self.dao.add(member)
                    sequence.member_id = member.id

                async with sequence.step("open_period"):
                    period = MembershipPeriod(
                        gym_id=gym_id,
                        member_id=member.id,
                        period_number=1,
                        plan_id=config.plan_id,
                        plan_name=config.name,
                        plan_duration_months=config.base_months,
                        bonus_months=config.bonus_months,
                        plan_amount=plan_amount,
                        paid_amount=paid_amount,
                        start_date=joining_date,
                        end_date=cycle.membership_end_date,
                        next_payment_due=cycle.next_due_date,
                        status=PeriodStatus.ACTIVE,
                    )
                    await self.period_dao.add(period)
                    member.current_period_id = period.id
                    await self.db.flush()

                async with sequence.step("initial_payment"):
                    await self.recorder.record_payment(PaymentCreate(
                        member_id=member.id,
                        amount=paid_amount,
                        payment_method=member_in.payment_method,
                        payment_date=joining_date,
                        notes="Initial payment",
                    ))
        except PartialFailureError as e:
            self._report_partial_failure(gym_id, AuditCategory.MEMBER, AuditAction.MEMBER_CREATED, "member", member.id, e)
            raise

        await self._best_effort("member_history", lambda: self.history_dao.add(MemberHistory(
            gym_id=gym_id,
            member_id=member.id,
            change_type=MemberHistoryType.ENROLLED,
            new_values={
                "joining_date": joining_date.isoformat(),
                "membership_plan": config.name,
                "next_payment_due_date": member.next_payment_due_date.isoformat(),
            },
            description=f"Enrolled on {config.name}",
        )))

        logger.info(f"[MemberService] Member {member.id} enrolled in gym {gym_id}, first due {member.next_payment_due_date}.")
        self._emit(
            gym_id, AuditCategory.MEMBER, AuditAction.MEMBER_CREATED, "member", member.id,
            new_values={
                "full_name": member.full_name,
                "membership_plan": member.membership_plan,
                "joining_date": member.joining_date,
                "next_payment_due_date": member.next_payment_due_date,
            },
        )
        return member

    async def get_member(self, member_id: int) -> Member:
        gym_id = await self._require_gym_id()
        with self.backend_guard():
            member = await self.dao.get_for_gym(gym_id, member_id)
        if not member:
            raise NotFoundError(f"Member {member_id} not found.")
        return member

    async def get_member_by_phone(self, phone: str) -> MemberWithPeriods:
        """Rejoin lookup: the member with all periods, newest first."""
        gym_id = await self._require_gym_id()
        with self.backend_guard():
            member = await self.dao.get_by_phone(gym_id, phone)
            if not member:
                raise NotFoundError(f"No member with phone {phone}.")
            periods = await self.period_dao.list_for_member(member.id)

        current = next((p for p in periods if p.status == PeriodStatus.ACTIVE), None)
        if current is None and periods:
            current = periods[0]
        return MemberWithPeriods(
            member=MemberRead.model_validate(member),
            current_period=MembershipPeriodRead.model_validate(current) if current else None,
            periods=[MembershipPeriodRead.model_validate(p) for p in periods],
        )

    async def get_member_with_payments(self, member_id: int) -> MemberWithPayments:
        member = await self.get_member(member_id)
        with self.backend_guard():
            payments = await self.payment_dao.list_for_member(member.id)
            schedule = await self.schedule_dao.get_for_member(member.id)
        return MemberWithPayments(
            member=MemberRead.model_validate(member),
            payments=[PaymentRead.model_validate(p) for p in payments],
            schedule=PaymentScheduleRead.model_validate(schedule) if schedule else None,
        )

    async def update_member_status(self, member_id: int, status: MemberStatus) -> Member:
        """Manual toggle. Dates are left alone; use rejoin to start a new period."""
        if status not in (MemberStatus.ACTIVE, MemberStatus.INACTIVE):
            raise ValidationError(f"Status '{status.value}' cannot be set here.")
        member = await self.get_member(member_id)
        old_status = member.status
        if old_status == status:
            return member

        with self.backend_guard():
            member.status = status
            member.deactivated_at = datetime.utcnow() if status == MemberStatus.INACTIVE else None
            await self.db.flush()

        await self._best_effort("member_history", lambda: self.history_dao.add(MemberHistory(
            gym_id=member.gym_id,
            member_id=member.id,
            change_type=MemberHistoryType.STATUS_CHANGED,
            old_values={"status": old_status.value},
            new_values={"status": status.value},
            description=f"Status changed from {old_status.value} to {status.value}",
        )))
        logger.info(f"[MemberService] Member {member.id} status {old_status.value} -> {status.value}.")
        self._emit(
            member.gym_id, AuditCategory.MEMBER, AuditAction.MEMBER_STATUS_CHANGED, "member", member.id,
            old_values={"status": old_status}, new_values={"status": status},
            metadata={"reason": "manual"},
        )
        return member
