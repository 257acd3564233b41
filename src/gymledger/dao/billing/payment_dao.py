# src/gymledger/dao/billing/payment_dao.py

from typing import Optional, List
from sqlalchemy import or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from gymledger.dao.base_dao import BaseDao
from gymledger.models import Payment

class PaymentDao(BaseDao[Payment]):
    def __init__(self, db_session: AsyncSession):
        super().__init__(Payment, db_session)

    async def get_for_gym(self, gym_id: str, payment_id: int) -> Optional[Payment]:
        return await self.get_one(where={"gym_id": gym_id, "id": payment_id})

    async def count_for_member(self, member_id: int) -> int:
        return await self.count(where={"member_id": member_id})

    async def list_for_member(self, member_id: int) -> List[Payment]:
        """Most recent payment first."""
        return await self.get_list(
            where={"member_id": member_id},
            order=[Payment.payment_date.desc(), Payment.id.desc()]
        )

    async def get_preceding_payment(self, payment: Payment) -> Optional[Payment]:
        """
        The payment immediately before `payment` for the same member, ordered by
        payment_date. Same-day payments are ordered by insertion (id).
        """
        return await self.get_one(
            where=[
                Payment.member_id == payment.member_id,
                Payment.id != payment.id,
                or_(
                    Payment.payment_date < payment.payment_date,
                    and_(Payment.payment_date == payment.payment_date, Payment.id < payment.id),
                ),
            ],
            order=[Payment.payment_date.desc(), Payment.id.desc()]
        )

    async def has_following_payment(self, payment: Payment) -> bool:
        """Whether the member has any payment ordered after `payment`."""
        return await self.count(where=[
            Payment.member_id == payment.member_id,
            Payment.id != payment.id,
            or_(
                Payment.payment_date > payment.payment_date,
                and_(Payment.payment_date == payment.payment_date, Payment.id > payment.id),
            ),
        ]) > 0
