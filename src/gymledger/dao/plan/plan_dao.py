# src/gymledger/dao/plan/plan_dao.py

from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from gymledger.dao.base_dao import BaseDao
from gymledger.models import MembershipPlan

class MembershipPlanDao(BaseDao[MembershipPlan]):
    def __init__(self, db_session: AsyncSession):
        super().__init__(MembershipPlan, db_session)

    async def get_for_gym(self, gym_id: str, plan_id: int) -> Optional[MembershipPlan]:
        return await self.get_one(where={"gym_id": gym_id, "id": plan_id})

    async def list_for_gym(self, gym_id: str, active_only: bool = False) -> List[MembershipPlan]:
        where = {"gym_id": gym_id}
        if active_only:
            where["is_active"] = True
        return await self.get_list(
            where=where,
            order=[MembershipPlan.display_order.asc(), MembershipPlan.id.asc()]
        )
