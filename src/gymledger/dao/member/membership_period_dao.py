# src/gymledger/dao/member/membership_period_dao.py

from typing import Optional, List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from gymledger.dao.base_dao import BaseDao
from gymledger.models import MembershipPeriod, PeriodStatus

class MembershipPeriodDao(BaseDao[MembershipPeriod]):
    def __init__(self, db_session: AsyncSession):
        super().__init__(MembershipPeriod, db_session)

    async def list_for_member(self, member_id: int) -> List[MembershipPeriod]:
        """Newest period first."""
        return await self.get_list(
            where={"member_id": member_id},
            order=[MembershipPeriod.period_number.desc()]
        )

    async def get_active_for_member(self, member_id: int) -> Optional[MembershipPeriod]:
        return await self.get_one(where={"member_id": member_id, "status": PeriodStatus.ACTIVE})

    async def max_period_number(self, member_id: int) -> int:
        stmt = select(func.max(MembershipPeriod.period_number)).where(MembershipPeriod.member_id == member_id)
        executed = await self.db_session.execute(stmt)
        return executed.scalar() or 0
