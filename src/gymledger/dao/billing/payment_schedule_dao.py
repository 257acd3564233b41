# src/gymledger/dao/billing/payment_schedule_dao.py

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from gymledger.dao.base_dao import BaseDao
from gymledger.models import PaymentSchedule, PaymentScheduleHistory

class PaymentScheduleDao(BaseDao[PaymentSchedule]):
    def __init__(self, db_session: AsyncSession):
        super().__init__(PaymentSchedule, db_session)

    async def get_for_member(self, member_id: int) -> Optional[PaymentSchedule]:
        return await self.get_one(where={"member_id": member_id})

    async def delete_for_member(self, member_id: int) -> int:
        return await self.delete_where({"member_id": member_id})

class PaymentScheduleHistoryDao(BaseDao[PaymentScheduleHistory]):
    def __init__(self, db_session: AsyncSession):
        super().__init__(PaymentScheduleHistory, db_session)
