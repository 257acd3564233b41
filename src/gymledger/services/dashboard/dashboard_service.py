# src/gymledger/services/dashboard/dashboard_service.py

from datetime import timedelta
from decimal import Decimal
from typing import List

from gymledger.core.config import settings
from gymledger.core.context import AppContext
from gymledger.dao.member.member_dao import MemberDao
from gymledger.schemas.dashboard.dashboard_schemas import DueTodaySummary, ExpiringMember, PendingPayment
from gymledger.services.base_service import BaseService

class DashboardService(BaseService):
    def __init__(self, context: AppContext):
        super().__init__(context)
        self.member_dao = MemberDao(context.db)

    async def get_expiring_this_week(self, limit: int = 5) -> List[ExpiringMember]:
        gym_id = await self._require_gym_id()
        today = self.context.today()
        week_end = today + timedelta(days=settings.CALENDAR_UPCOMING_WINDOW_DAYS)
        with self.backend_guard():
            members = await self.member_dao.list_expiring_between(gym_id, today, week_end, limit=limit)
        return [
            ExpiringMember(
                id=m.id,
                full_name=m.full_name,
                phone=m.phone,
                membership_plan=m.membership_plan,
                plan_amount=m.plan_amount,
                membership_end_date=m.membership_end_date,
                days_until_expiry=(m.membership_end_date - today).days,
            )
            for m in members
        ]

    async def get_pending_payments(self, limit: int = 5) -> List[PendingPayment]:
        gym_id = await self._require_gym_id()
        today = self.context.today()
        with self.backend_guard():
            members = await self.member_dao.list_due_before(gym_id, today, limit=limit)
        return [
            PendingPayment(
                id=m.id,
                full_name=m.full_name,
                phone=m.phone,
                membership_plan=m.membership_plan,
                plan_amount=m.plan_amount,
                next_payment_due_date=m.next_payment_due_date,
                days_overdue=(today - m.next_payment_due_date).days,
            )
            for m in members
        ]

    async def get_due_today(self) -> DueTodaySummary:
        gym_id = await self._require_gym_id()
        with self.backend_guard():
            members = await self.member_dao.list_due_on(gym_id, self.context.today())
        return DueTodaySummary(
            count=len(members),
            amount=sum((m.plan_amount or Decimal('0') for m in members), Decimal('0')),
            member_ids=[m.id for m in members],
        )
