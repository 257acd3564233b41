# src/gymledger/services/calendar/calendar_service.py

import logging
from datetime import date
from typing import List, Optional

from gymledger.core.context import AppContext
from gymledger.dao.member.member_dao import MemberDao
from gymledger.dao.plan.plan_dao import MembershipPlanDao
from gymledger.schemas.calendar.calendar_schemas import CalendarEvent
from gymledger.services.base_service import BaseService
from gymledger.services.calendar.calendar_projector import MonthWindow, month_window, project_month
from gymledger.services.exceptions import ValidationError

logger = logging.getLogger(__name__)

class CalendarService(BaseService):
    """Read-only. Loads the gym's active members and plan durations, then projects them."""
    def __init__(self, context: AppContext):
        super().__init__(context)
        self.member_dao = MemberDao(context.db)
        self.plan_dao = MembershipPlanDao(context.db)

    async def get_month_events(
        self,
        year: int,
        month: int,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[CalendarEvent]:
        gym_id = await self._require_gym_id()
        full_month = month_window(year, month)
        window = MonthWindow(max(start or full_month.start, full_month.start), min(end or full_month.end, full_month.end))
        if window.start > window.end:
            raise ValidationError(f"Empty calendar window {window.start} - {window.end}.")

        with self.backend_guard():
            members = await self.member_dao.list_active_for_gym(gym_id)
            plans = await self.plan_dao.list_for_gym(gym_id)

        events = project_month(
            members, year, month, self.context.today(),
            window=window,
            plan_months={plan.id: plan.total_duration_months for plan in plans},
        )
        logger.debug(f"[CalendarService] {len(events)} events for gym {gym_id} in {year}-{month:02d}.")
        return events
