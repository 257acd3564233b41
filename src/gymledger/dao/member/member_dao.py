# src/gymledger/dao/member/member_dao.py

from datetime import date
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from gymledger.dao.base_dao import BaseDao
from gymledger.models import Member, MemberStatus

class MemberDao(BaseDao[Member]):
    def __init__(self, db_session: AsyncSession):
        super().__init__(Member, db_session)

    async def get_for_gym(self, gym_id: str, member_id: int) -> Optional[Member]:
        return await self.get_one(where={"gym_id": gym_id, "id": member_id})

    async def get_by_phone(self, gym_id: str, phone: str) -> Optional[Member]:
        return await self.get_one(where={"gym_id": gym_id, "phone": phone})

    async def list_active_for_gym(self, gym_id: str) -> List[Member]:
        return await self.get_list(
            where={"gym_id": gym_id, "status": MemberStatus.ACTIVE},
            order=[Member.full_name.asc()]
        )

    async def list_expiring_between(self, gym_id: str, start: date, end: date, limit: int = 0) -> List[Member]:
        """Active members whose membership ends inside [start, end]."""
        return await self.get_list(
            where=[
                Member.gym_id == gym_id,
                Member.status == MemberStatus.ACTIVE,
                ("membership_end_date", ">=", start),
                ("membership_end_date", "<=", end),
            ],
            order=[Member.membership_end_date.asc()],
            limit=limit
        )

    async def list_due_before(self, gym_id: str, before: date, limit: int = 0) -> List[Member]:
        """Active members whose next payment was due before `before`."""
        return await self.get_list(
            where=[
                Member.gym_id == gym_id,
                Member.status == MemberStatus.ACTIVE,
                ("next_payment_due_date", "<", before),
            ],
            order=[Member.next_payment_due_date.asc()],
            limit=limit
        )

    async def list_due_on(self, gym_id: str, day: date) -> List[Member]:
        return await self.get_list(
            where={"gym_id": gym_id, "status": MemberStatus.ACTIVE, "next_payment_due_date": day}
        )
